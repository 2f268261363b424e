# tests/integration/test_webhook.py
import hashlib
import hmac
import json
import pytest
from httpx import AsyncClient, ASGITransport
from unittest.mock import AsyncMock, patch
from ai_helpers import FakeProvider, review_json
from code_mentor.config import Settings
from code_mentor.main import app, get_history, run_review, verify_signature


PR_EVENT = {
    "action": "opened",
    "number": 7,
    "pull_request": {
        "number": 7,
        "title": "Fix add()",
        "diff_url": "https://github.com/octo/app/pull/7.diff",
        "comments_url": "https://api.github.com/repos/octo/app/issues/7/comments",
        "state": "open",
    },
    "repository": {"id": 1, "full_name": "octo/app"},
    "sender": {"login": "octocat"},
    "installation": {"id": 99},
}

DIFF = """--- a/utils.js
+++ b/utils.js
@@ -1,3 +1,3 @@
 function add(a, b) {
-  return a - b;
+  return a + b;
 }
"""


def _sign(secret: str, body: bytes) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


async def _deliver(event: dict, event_type: str = "pull_request", secret: str | None = "test-secret", signature: str | None = None):
    body = json.dumps(event).encode()
    headers = {"X-GitHub-Event": event_type, "Content-Type": "application/json"}
    if signature is not None:
        headers["X-Hub-Signature-256"] = signature
    elif secret:
        headers["X-Hub-Signature-256"] = _sign(secret, body)

    transport = ASGITransport(app=app)
    with patch("code_mentor.main.get_settings") as mock_settings, \
         patch("code_mentor.main.run_review", new_callable=AsyncMock) as mock_run_review:
        mock_settings.return_value = Settings(_env_file=None, github_webhook_secret="test-secret")

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/webhook/github", content=body, headers=headers)

    return response, mock_run_review


def test_verify_signature():
    body = b'{"action": "opened"}'
    assert verify_signature("s3cret", body, _sign("s3cret", body))
    assert not verify_signature("s3cret", body, _sign("other", body))
    assert not verify_signature("s3cret", body, None)
    assert not verify_signature("s3cret", body, "sha1=abc")


@pytest.mark.asyncio
async def test_webhook_rejects_invalid_signature():
    response, mock_run_review = await _deliver(PR_EVENT, signature="sha256=deadbeef")

    assert response.status_code == 401
    mock_run_review.assert_not_called()


@pytest.mark.asyncio
async def test_webhook_accepts_pr_opened():
    response, mock_run_review = await _deliver(PR_EVENT)

    assert response.status_code == 200
    assert response.json()["status"] == "accepted"
    mock_run_review.assert_called_once_with(
        diff_url=PR_EVENT["pull_request"]["diff_url"],
        comments_url=PR_EVENT["pull_request"]["comments_url"],
        action="opened",
        title="octo/app#7",
    )


@pytest.mark.asyncio
async def test_webhook_ignores_other_actions_and_events():
    response, mock_run_review = await _deliver({**PR_EVENT, "action": "closed"})
    assert response.json()["status"] == "ignored"
    mock_run_review.assert_not_called()

    response, mock_run_review = await _deliver({"zen": "Keep it simple."}, event_type="ping")
    assert response.json()["status"] == "ignored"


@pytest.mark.asyncio
async def test_run_review_posts_greeting_and_digest():
    mock_github = AsyncMock()
    mock_github.fetch_diff.return_value = DIFF
    get_history().clear()

    with patch("code_mentor.main.get_settings") as mock_settings, \
         patch("code_mentor.main.GitHubClient") as mock_github_cls, \
         patch("code_mentor.main.get_provider") as mock_get_provider:
        mock_settings.return_value = Settings(_env_file=None, github_token="t", serper_api_key=None, reviewer_name="Bot")
        mock_github_cls.return_value = mock_github
        mock_get_provider.return_value = FakeProvider(default=review_json(grade="C"))

        await run_review(
            diff_url="https://github.com/octo/app/pull/7.diff",
            comments_url="https://api.github.com/repos/octo/app/issues/7/comments",
            action="opened",
            title="octo/app#7",
        )

    assert mock_github.post_comment.await_count == 2
    greeting = mock_github.post_comment.await_args_list[0].args[1]
    digest = mock_github.post_comment.await_args_list[1].args[1]
    assert "checking this PR" in greeting
    assert "#### utils.js (Score: C)" in digest
    assert get_history().items()[0].title == "octo/app#7"


@pytest.mark.asyncio
async def test_run_review_synchronize_skips_greeting():
    mock_github = AsyncMock()
    mock_github.fetch_diff.return_value = DIFF

    with patch("code_mentor.main.get_settings") as mock_settings, \
         patch("code_mentor.main.GitHubClient") as mock_github_cls, \
         patch("code_mentor.main.get_provider") as mock_get_provider:
        mock_settings.return_value = Settings(_env_file=None, github_token="t", serper_api_key=None)
        mock_github_cls.return_value = mock_github
        mock_get_provider.return_value = FakeProvider()

        await run_review(diff_url="d", comments_url="c", action="synchronize", title="octo/app#7")

    mock_github.post_comment.assert_awaited_once()


@pytest.mark.asyncio
async def test_webhook_rejects_malformed_pull_request_payload():
    response, mock_run_review = await _deliver({"action": "opened", "number": 7})

    assert response.status_code == 400
    mock_run_review.assert_not_called()
