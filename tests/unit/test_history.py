from code_mentor.history import HistoryStore, InteractionKind


def test_history_is_newest_first():
    store = HistoryStore()
    store.record(InteractionKind.REVIEW, "a.py (standard)", {"files": []})
    store.record(InteractionKind.EXPLAIN, "b.py", "It prints.")

    items = store.items()
    assert [item.title for item in items] == ["b.py", "a.py (standard)"]
    assert items[0].kind == InteractionKind.EXPLAIN
    assert items[0].data == "It prints."


def test_history_drops_oldest_beyond_limit():
    store = HistoryStore(limit=2)
    for title in ("one", "two", "three"):
        store.record(InteractionKind.REFACTOR, title, {})

    assert len(store) == 2
    assert [item.title for item in store.items()] == ["three", "two"]


def test_history_clear():
    store = HistoryStore()
    store.record(InteractionKind.PR, "owner/repo/1", {"files": []})
    store.clear()
    assert store.items() == []
