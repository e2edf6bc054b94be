import re

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DiffConfig(BaseSettings):
    """
    Options consumed by the diff core.

    Values can be passed directly or picked up from OASDELTA_* environment
    variables (and a local .env file).
    """

    model_config = SettingsConfigDict(
        env_prefix="OASDELTA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    breaking_only: bool = False
    exclude_description: bool = False
    include_examples: bool = False
    path_prefix: str = ""
    path_filter: str = ""
    single_media_type: bool = False

    @field_validator("path_filter")
    @classmethod
    def _check_path_filter(cls, value: str) -> str:
        if value:
            try:
                re.compile(value)
            except re.error as exc:
                raise ValueError(f"invalid path filter {value!r}: {exc}") from exc
        return value

    def path_matcher(self) -> re.Pattern[str] | None:
        if not self.path_filter:
            return None
        return re.compile(self.path_filter)
