"""Configuration management using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from codeowners_review.cache import DEFAULT_TIME_BUCKET_SECONDS
from codeowners_review.ownership import CODEOWNERS_PATHS, EmptyOwnersPolicy


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CODEOWNERS_REVIEW_",
        env_nested_delimiter="__",
        yaml_file=".env.yaml",
        yaml_file_encoding="utf-8",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
        )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format_json: bool = Field(
        default=False,
        description="Use JSON logging format (False for human-readable logs)",
    )
    log_exclude_loggers: str = Field(
        default="asyncio",
        description="Comma-separated list of logger names to exclude from DEBUG logging",
    )

    # Ownership resolution
    empty_owners_policy: EmptyOwnersPolicy = Field(
        default=EmptyOwnersPolicy.UNOWNED,
        description="Resolution of an ownership rule listing no owners",
    )
    codeowners_paths: list[str] = Field(
        default_factory=lambda: list(CODEOWNERS_PATHS),
        description="Locations probed for the ownership spec, in order",
    )

    # Fetching
    review_state_bucket_seconds: int = Field(
        default=DEFAULT_TIME_BUCKET_SECONDS,
        description="Time window in seconds during which review state is reused",
    )
    roster_concurrency: int = Field(
        default=8,
        description="Max team roster fetches in flight",
    )


settings = Settings()
