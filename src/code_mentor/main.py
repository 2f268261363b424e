# src/code_mentor/main.py
import hmac
import hashlib
import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator
import httpx
from fastapi import FastAPI, Header, HTTPException, BackgroundTasks, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from code_mentor.config import Settings
from code_mentor.errors import InferenceError, InferenceTimeout, MalformedDiffError, SchemaValidationError
from code_mentor.history import HistoryItem, HistoryStore, InteractionKind
from code_mentor.models.conversation import ConversationTurn
from code_mentor.models.review import RefactorResult, ReviewResult
from code_mentor.models.webhook import GitHubPullRequestEvent
from code_mentor.platforms.github import GitHubClient, parse_github_pr_url
from code_mentor.providers.base import LLMProvider
from code_mentor.providers.ollama import OllamaProvider
from code_mentor.providers.openai_compat import OpenAIProvider
from code_mentor.review.engine import ReviewEngine
from code_mentor.review.prompts import ReviewLens
from code_mentor.review.relay import sse_events
from code_mentor.review.report import build_digest
from code_mentor.search.base import ContextAugmenter, NullAugmenter
from code_mentor.search.serper import SerperAugmenter


VERSION = "0.1.0"


@lru_cache
def get_settings() -> Settings:
    return Settings()


logging.basicConfig(level=get_settings().log_level.upper())
logger = logging.getLogger(__name__)


@lru_cache
def get_history() -> HistoryStore:
    return HistoryStore(limit=get_settings().history_limit)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Code Mentor starting...")
    if not get_settings().github_webhook_secret:
        logger.warning("No GITHUB_WEBHOOK_SECRET set, webhook signatures will not be checked")
    yield
    logger.info("Code Mentor shutting down...")


app = FastAPI(title="Code Mentor", version=VERSION, lifespan=lifespan)


class WebhookResponse(BaseModel):
    status: str
    message: str | None = None


class SnippetRequest(BaseModel):
    code: str = Field(min_length=1)
    filename: str = Field(min_length=1)
    mode: ReviewLens = ReviewLens.STANDARD


class CodeRequest(BaseModel):
    code: str = Field(min_length=1)
    filename: str = Field(min_length=1)


class PullRequestReviewRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pr_url: str = Field(alias="prUrl")


class DiffReviewRequest(BaseModel):
    diff: str = Field(min_length=1)


class FollowUpRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original_comment: str = Field(alias="originalComment", min_length=1)
    conversation: list[ConversationTurn] = Field(min_length=1)


class BatchResponse(BaseModel):
    files: list[ReviewResult]
    digest: str | None = None


class ExplainResponse(BaseModel):
    explanation: str


def get_provider(settings: Settings) -> LLMProvider | None:
    """Get LLM provider based on settings."""
    if settings.default_provider == "ollama":
        return OllamaProvider(
            base_url=settings.ollama_url,
            model=settings.ollama_model,
            timeout=settings.inference_timeout,
        )
    elif settings.default_provider == "openai" and settings.openai_api_key:
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            timeout=settings.inference_timeout,
        )
    return None


def get_augmenter(settings: Settings) -> ContextAugmenter:
    if settings.serper_api_key:
        return SerperAugmenter(
            api_key=settings.serper_api_key,
            max_results=settings.search_max_results,
            snippet_chars=settings.search_snippet_chars,
        )
    return NullAugmenter()


def get_engine(settings: Settings) -> ReviewEngine:
    provider = get_provider(settings)
    if not provider:
        raise HTTPException(status_code=503, detail="No LLM provider configured")
    return ReviewEngine(
        provider=provider,
        augmenter=get_augmenter(settings),
        max_concurrency=settings.max_concurrency,
    )


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Check a GitHub X-Hub-Signature-256 header against the raw body."""
    if not signature or not signature.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(f"sha256={expected}", signature)


def _dump(results: list[ReviewResult]) -> list[dict]:
    return [result.model_dump(mode="json", by_alias=True) for result in results]


@app.exception_handler(InferenceTimeout)
async def inference_timeout_handler(request: Request, exc: InferenceTimeout):
    logger.error(f"{request.url.path}: {exc}")
    return JSONResponse(status_code=504, content={"error": "Inference timed out", "details": str(exc)})


@app.exception_handler(InferenceError)
async def inference_error_handler(request: Request, exc: InferenceError):
    logger.error(f"{request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"error": "Inference backend error", "details": str(exc)})


@app.exception_handler(SchemaValidationError)
async def schema_error_handler(request: Request, exc: SchemaValidationError):
    logger.error(f"{request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"error": "Unexpected AI response", "details": str(exc)})


@app.exception_handler(MalformedDiffError)
async def malformed_diff_handler(request: Request, exc: MalformedDiffError):
    return JSONResponse(status_code=400, content={"error": "Malformed diff", "details": str(exc)})


@app.get("/health")
async def health():
    return {"status": "ok", "version": VERSION}


@app.post("/webhook/github", response_model=WebhookResponse)
async def github_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_github_event: str = Header(...),
    x_hub_signature_256: str | None = Header(None),
):
    settings = get_settings()
    body = await request.body()

    if settings.github_webhook_secret and not verify_signature(
        settings.github_webhook_secret, body, x_hub_signature_256
    ):
        raise HTTPException(status_code=401, detail="Invalid webhook signature")

    if x_github_event == "pull_request":
        try:
            event = GitHubPullRequestEvent.model_validate_json(body)
        except ValidationError as e:
            raise HTTPException(status_code=400, detail=f"Invalid pull_request payload: {e.error_count()} errors")

        if event.action in ("opened", "synchronize"):
            background_tasks.add_task(
                run_review,
                diff_url=event.pull_request.diff_url,
                comments_url=event.pull_request.comments_url,
                action=event.action,
                title=f"{event.repository.full_name}#{event.pull_request.number}",
            )
            return WebhookResponse(status="accepted", message="Review scheduled")

    return WebhookResponse(status="ignored", message="Event not relevant")


@app.post("/api/review-snippet", response_model=BatchResponse)
async def review_snippet(request: SnippetRequest):
    logger.info(f"Snippet review for {request.filename} (mode: {request.mode.value})")
    engine = get_engine(get_settings())
    batch = await engine.review_snippet(request.code, request.filename, request.mode)

    get_history().record(InteractionKind.REVIEW, f"{request.filename} ({request.mode.value})", {"files": _dump(batch)})
    return BatchResponse(files=batch)


@app.post("/api/review-diff", response_model=BatchResponse)
async def review_diff(request: DiffReviewRequest):
    settings = get_settings()
    engine = get_engine(settings)
    batch = await engine.review_diff(request.diff)
    digest = build_digest(batch, title=settings.reviewer_name)

    get_history().record(InteractionKind.REVIEW, "diff", {"files": _dump(batch)})
    return BatchResponse(files=batch, digest=digest)


@app.post("/api/review-pr", response_model=BatchResponse)
async def review_pr(request: PullRequestReviewRequest):
    """Review a GitHub pull request by URL."""
    settings = get_settings()
    if not settings.github_token:
        return JSONResponse(
            status_code=500,
            content={"error": "Server is missing GITHUB_TOKEN. This feature is not configured."},
        )

    try:
        owner, repo, pull_number = parse_github_pr_url(request.pr_url)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})

    engine = get_engine(settings)
    github = GitHubClient(token=settings.github_token, api_url=settings.github_api_url)
    try:
        diff_text = await github.get_pr_diff(owner, repo, pull_number)
    except httpx.HTTPStatusError as e:
        if e.response.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={"error": "Pull request not found, or the token cannot access it.", "details": str(e)},
            )
        raise

    batch = await engine.review_diff(diff_text)
    digest = build_digest(batch, title=settings.reviewer_name)

    get_history().record(InteractionKind.PR, f"{owner}/{repo}/{pull_number}", {"files": _dump(batch)})
    return BatchResponse(files=batch, digest=digest)


@app.post("/api/refactor", response_model=RefactorResult)
async def refactor(request: CodeRequest):
    logger.info(f"Refactor request for {request.filename}")
    engine = get_engine(get_settings())
    result = await engine.refactor(request.code, request.filename)

    get_history().record(InteractionKind.REFACTOR, request.filename, result.model_dump(mode="json", by_alias=True))
    return result


@app.post("/api/explain", response_model=ExplainResponse)
async def explain(request: CodeRequest):
    logger.info(f"Explain request for {request.filename}")
    engine = get_engine(get_settings())
    explanation = await engine.explain(request.code, request.filename)

    get_history().record(InteractionKind.EXPLAIN, request.filename, explanation)
    return ExplainResponse(explanation=explanation)


async def recorded_stream(
    tokens: AsyncIterator[str],
    original_comment: str,
    conversation: list[ConversationTurn],
) -> AsyncIterator[str]:
    """Frame tokens as SSE; the exchange is recorded however the stream ends."""
    try:
        async for frame in sse_events(tokens):
            yield frame
    finally:
        get_history().record(
            InteractionKind.FOLLOW_UP,
            original_comment[:80],
            [turn.model_dump(mode="json") for turn in conversation],
        )


@app.post("/api/follow-up")
async def follow_up(body: FollowUpRequest, request: Request):
    """Stream an answer to a question about a review comment as SSE."""
    engine = get_engine(get_settings())
    conversation = body.conversation

    try:
        tokens = await engine.follow_up(body.original_comment, conversation, is_disconnected=request.is_disconnected)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return StreamingResponse(
        recorded_stream(tokens, body.original_comment, conversation),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@app.get("/api/history", response_model=list[HistoryItem])
async def list_history():
    return get_history().items()


@app.delete("/api/history")
async def clear_history():
    get_history().clear()
    return {"status": "cleared"}


async def run_review(diff_url: str, comments_url: str, action: str, title: str):
    """Background task: review a pull request and post the digest."""
    settings = get_settings()
    github = GitHubClient(token=settings.github_token, api_url=settings.github_api_url)

    provider = get_provider(settings)
    if not provider:
        logger.error("No LLM provider configured")
        return

    engine = ReviewEngine(
        provider=provider,
        augmenter=get_augmenter(settings),
        max_concurrency=settings.max_concurrency,
    )

    try:
        if action == "opened":
            await github.post_comment(
                comments_url,
                f"### {settings.reviewer_name}\n\nHello! I'm checking this PR... This might take a few moments.",
            )

        diff_text = await github.fetch_diff(diff_url)
        if not diff_text.strip():
            logger.info(f"No changes found in {title}")
            return

        batch = await engine.review_diff(diff_text)
        await github.post_comment(comments_url, build_digest(batch, title=settings.reviewer_name))

        get_history().record(InteractionKind.PR, title, {"files": _dump(batch)})
        logger.info(f"Review posted for {title}")
    except Exception as e:
        logger.exception(f"Review failed for {title}: {e}")
