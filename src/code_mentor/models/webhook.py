from pydantic import BaseModel


class GitHubUser(BaseModel):
    login: str


class GitHubRepository(BaseModel):
    id: int
    full_name: str
    html_url: str | None = None


class GitHubInstallation(BaseModel):
    id: int


class GitHubPullRequest(BaseModel):
    number: int
    title: str
    diff_url: str
    comments_url: str
    html_url: str | None = None
    state: str | None = None


class GitHubPullRequestEvent(BaseModel):
    action: str
    number: int | None = None
    pull_request: GitHubPullRequest
    repository: GitHubRepository
    sender: GitHubUser | None = None
    installation: GitHubInstallation | None = None
