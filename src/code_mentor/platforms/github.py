import re
import httpx
from .base import GitPlatform


DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"


def parse_github_pr_url(url: str) -> tuple[str, str, int]:
    """Parse GitHub PR URL -> (owner, repo, pull_number)."""
    match = re.search(r"github\.com/([^/]+)/([^/]+)/pull/(\d+)", url)
    if not match:
        raise ValueError(f"Invalid GitHub PR URL: {url}. Expected .../owner/repo/pull/123")
    return match.group(1), match.group(2), int(match.group(3))


class GitHubClient(GitPlatform):
    def __init__(self, token: str | None = None, api_url: str = "https://api.github.com"):
        self.token = token
        self.api_url = api_url.rstrip("/")

    def _headers(self, accept: str = "application/vnd.github+json") -> dict[str, str]:
        headers = {"Accept": accept, "User-Agent": "code-mentor"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def get_pr_diff(self, owner: str, repo: str, pull_number: int) -> str:
        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{self.api_url}/repos/{owner}/{repo}/pulls/{pull_number}",
                headers=self._headers(accept=DIFF_MEDIA_TYPE),
                timeout=30.0,
            )
            response.raise_for_status()
            return response.text

    async def fetch_diff(self, diff_url: str) -> str:
        async with httpx.AsyncClient(follow_redirects=True) as client:
            response = await client.get(
                diff_url,
                headers=self._headers(accept=DIFF_MEDIA_TYPE),
                timeout=30.0,
            )
            response.raise_for_status()
            return response.text

    async def post_comment(self, comments_url: str, body: str) -> None:
        async with httpx.AsyncClient() as client:
            response = await client.post(
                comments_url,
                headers=self._headers(),
                json={"body": body},
                timeout=30.0,
            )
            response.raise_for_status()
