"""Typed settings configuration - single source of truth."""

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str | None = None

    # Managed output area for rendered documents
    output_dir: str = "./output"
    template_path: str = "./templates/template.docx"
    document_extension: str = ".docx"

    # External renderer
    # Streamable HTTP endpoint, or a command spawning the renderer over stdio
    renderer_url: str = "http://localhost:8765/mcp"
    renderer_command: str = ""
    renderer_cwd: str | None = None
    renderer_timeout_s: float = 60.0
    fill_operation: str = "fill_document_simple"

    # Remote storage (Microsoft Graph drive)
    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    graph_user_id: str = ""
    graph_access_token: SecretStr | None = None
    remote_folder: str = "MCP-Output"
    storage_timeout_s: float = 30.0

    # Language model
    openai_api_key: SecretStr | None = None
    openai_model: str = "gpt-4o"

    # File materialization polling (seconds)
    materialize_timeout_s: float = 5.0
    materialize_interval_s: float = 0.5

    # Lock-conflict retry on upload
    lock_retry_attempts: int = 3
    lock_retry_delay_s: float = 2.0

    # Conversation loop
    max_tool_rounds: int = 8

    # Collaborative editor
    editor_save_statuses: tuple[int, ...] = (2, 6)
    editor_public_base_url: str = "http://localhost:8000"

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
