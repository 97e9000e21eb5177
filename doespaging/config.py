from functools import lru_cache
from typing import Annotated, Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PAGING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Paging
    PAGE_SIZE: int = 25
    IGNORED_PARAMS: Annotated[list[str], NoDecode] = ["limit", "start", "sort", "dir", "_dc", "rm", "xaction"]

    # Request parameter names
    LIMIT_PARAM: str = "limit"
    START_PARAM: str = "start"
    SORT_PARAM: str = "sort"
    DIR_PARAM: str = "dir"
    DELETE_PARAM: str = "to_delete"

    LOG_LEVEL: str = "info"

    @field_validator("PAGE_SIZE")
    @classmethod
    def check_page_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("PAGE_SIZE must be a positive integer")
        return v

    @field_validator("IGNORED_PARAMS", mode="before")
    @classmethod
    def parse_ignored_params(cls, v: Any) -> list[str]:
        if isinstance(v, str):
            return [key.strip() for key in v.split(",") if key.strip()]
        elif isinstance(v, (list, tuple)):
            return list(v)
        return []


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
