from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration."""

    host: str = "127.0.0.1"
    port: int = 8080
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_dir: Path = Path("logs")

    sessions_dir: Path = Path("sessions")
    lock_strategy: Literal["global", "per_session"] = "global"

    openrouter_api_key: str | None = None
    llm_base_url: str = "https://openrouter.ai/api/v1"
    llm_model: str = "tngtech/deepseek-r1t2-chimera:free"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 4000
    llm_timeout_seconds: float = 120.0
    llm_app_referer: str = "game_designer_mcp"
    llm_app_title: str = "Game Designer MCP"

    expand_design_document: bool = True

    design_document_system_prompt: str = (
        "You are an expert game designer. Your task is to create detailed and "
        "comprehensive game design documents based on brief descriptions."
    )
    feature_planner_system_prompt: str = (
        "You are an expert game designer guiding an implementer through a game "
        "one feature at a time. Given the game design and the progress so far, "
        "choose the single most valuable feature to implement next. It must not "
        "repeat a feature that is already planned or reviewed. Respond with ONLY "
        'a JSON object of the form {"name": "<short feature name>", '
        '"description": "<detailed implementation specification>"} and no other text.'
    )
    reviewer_system_prompt: str = (
        "You are an expert game designer reviewing the implementation of a "
        "feature you specified. If the report shows the feature is implemented "
        "as specified, respond with exactly the single word SATISFIED and "
        "nothing else. Otherwise respond with concrete feedback on what is "
        "missing or wrong, and any questions you need answered."
    )
    advisor_system_prompt: str = (
        "You are an expert game designer answering questions from the developer "
        "implementing your design. Answer concisely and stay consistent with the "
        "design document and the features planned so far."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        extra="ignore",
    )


def get_settings() -> Settings:
    """Return the application settings singleton (loaded from env / .env)."""
    global _SETTINGS
    try:
        return _SETTINGS
    except NameError:
        _SETTINGS = Settings()
        return _SETTINGS
