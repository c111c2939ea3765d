"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Kernel settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MAPGRAPH_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="console", description="Logging format (console or json)")

    # Generation
    max_subdivision_depth: int = Field(
        default=12, ge=1, description="Recursion limit for building lot subdivision"
    )
    pit_search_limit: int = Field(
        default=0, ge=0, description="Max cells visited per pit search (0 = unlimited)"
    )


settings = Settings()
