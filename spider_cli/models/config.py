"""
Pydantic models for crawler, fetcher and run configuration.
Provides robust validation for all settings.
"""

from datetime import timedelta
from pathlib import Path
from typing import Literal, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class TwoStageWebConfig(BaseModel):
    """
    Configuration for a crawler that searches a site and then follows the
    first result to a page holding the final download link.
    """

    type: Literal["twostageweb"] = "twostageweb"

    url: str
    search_page: str
    search_get_name: str
    categories: list[str] = Field(default_factory=list)
    categories_get_name: str = ""
    user_agent: str
    # Accepted for compatibility with existing files, not enforced.
    limit: int = 0
    wait: timedelta = timedelta(seconds=5)
    first_stage_match: str
    second_stage_match: str
    keyword_filter: bool = False

    class Config:
        """Pydantic model configuration."""

        str_strip_whitespace = True

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Ensures the base URL is absolute."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Crawler url must start with http:// or https://: {v!r}")
        return v

    @field_validator("first_stage_match", "second_stage_match", "search_get_name")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("Value cannot be empty.")
        return v

    @field_validator("wait")
    @classmethod
    def validate_wait(cls, v: timedelta) -> timedelta:
        if v < timedelta(0):
            raise ValueError("Wait cannot be negative.")
        return v

    @model_validator(mode="after")
    def validate_categories(self) -> "TwoStageWebConfig":
        """Categories need a parameter name to be sent under."""
        if self.categories and not self.categories_get_name:
            raise ValueError("'categories_get_name' is required when categories are set.")
        return self


class QBFetcherConfig(BaseModel):
    """Configuration for delivering links to a qBittorrent Web API."""

    type: Literal["qbfetcher"] = "qbfetcher"

    url: str
    add_url: str = "/api/v2/torrents/add"
    login_url: str = "/api/v2/auth/login"
    username: str = ""
    password: str = Field("", repr=False)
    save_path: str = ""

    class Config:
        """Pydantic model configuration."""

        str_strip_whitespace = True

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Fetcher url must start with http:// or https://: {v!r}")
        return v

    @property
    def requires_login(self) -> bool:
        return bool(self.username)


CrawlerConfig = Union[TwoStageWebConfig]
FetcherConfig = Union[QBFetcherConfig]

# Closed sets of known variants, keyed by the `type` tag used in the files.
CRAWLER_TYPES: dict[str, type[BaseModel]] = {"twostageweb": TwoStageWebConfig}
FETCHER_TYPES: dict[str, type[BaseModel]] = {"qbfetcher": QBFetcherConfig}


class SpiderSettings(BaseModel):
    """Settings for a single pass, assembled from CLI options."""

    contents_path: Path = Path("./contents.toml")
    crawlers_path: Path = Path("./crawlers.toml")
    fetchers_path: Path = Path("./fetchers.toml")
    log_file: Path | None = Path("spider.log")
    json_log_dir: Path | None = None
    max_workers: int = 4
    request_timeout: float = 30.0

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of workers."""
        if v < 1 or v > 32:
            raise ValueError("Max workers must be between 1 and 32.")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Request timeout must be a positive number of seconds.")
        return v
