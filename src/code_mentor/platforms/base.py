from abc import ABC, abstractmethod


class GitPlatform(ABC):
    """The two code-hosting calls a review needs: read a diff, post a comment."""

    @abstractmethod
    async def fetch_diff(self, diff_url: str) -> str:
        pass

    @abstractmethod
    async def post_comment(self, comments_url: str, body: str) -> None:
        pass
