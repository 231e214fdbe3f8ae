"""Application configuration via Pydantic Settings."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite+aiosqlite:///./lore_engine.db"

    # LLM
    llm_provider: str = "mock"  # "openai" | "mock"
    llm_api_key: str = ""
    llm_base_url: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-4o-mini"

    # Player state persistence
    state_store_backend: str = "memory"  # "memory" | "sql"

    # Story memory
    memory_store_backend: str = "memory"  # "memory" | "sql"
    memory_recall_limit: int = 5
    memory_max_per_user: int = 500
    memory_max_content_length: int = 2000
    memory_summary_length: int = 200

    # Auth / JWT
    jwt_secret_key: str = "dev-secret-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 1440  # 24 hours

    # Validation gate
    max_messages: int = 10
    max_message_length: int = 4000
    max_total_length: int = 50000
    max_author_name_length: int = 64
    allowed_tool_names: list[str] = [
        "GetStoryGraph",
        "SearchStory",
        "SaveStoryState",
        "RollDice",
        "GetWorldRules",
    ]
    blocked_patterns: list[str] = [
        "ignore previous instructions",
        "ignore all previous",
        "disregard previous",
        "you are now",
        "pretend you are",
        "act as if you are",
        "new instructions:",
        "system prompt:",
        "override instructions",
        "forget your instructions",
        "ignore your instructions",
    ]

    # Orchestration bounds
    game_max_rounds: int = 8
    chat_max_rounds: int = 5
    max_tool_result_length: int = 32_768
    request_timeout_seconds: float = 60.0
    cleanup_grace_seconds: float = 5.0
    stream_chunk_size: int = 48

    # App
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
