# src/code_mentor/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    # GitHub
    github_api_url: str = "https://api.github.com"
    github_token: str | None = None
    github_webhook_secret: str | None = None

    # LLM Providers
    default_provider: str = "ollama"
    ollama_url: str = "http://127.0.0.1:11434"
    ollama_model: str = "qwen2:0.5b"
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    openai_model: str = "gpt-4o-mini"
    inference_timeout: float = 120.0

    # Search augmentation
    serper_api_key: str | None = None
    search_max_results: int = 3
    search_snippet_chars: int = 300

    # Defaults
    max_concurrency: int | None = None
    reviewer_name: str = "AI Code Review"
    history_limit: int = 50
    log_level: str = "INFO"
