from .base import GitPlatform
from .github import GitHubClient, parse_github_pr_url

__all__ = ["GitPlatform", "GitHubClient", "parse_github_pr_url"]
