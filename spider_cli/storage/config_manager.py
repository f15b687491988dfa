"""
Manages loading and validation of the TOML configuration files, and the
write-back of advanced counters to the contents file.
"""

import logging
import os
import tempfile
import tomllib
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import BaseModel, ValidationError

from spider_cli.exceptions import CommitError, ConfigurationError
from spider_cli.models.config import (
    CRAWLER_TYPES,
    FETCHER_TYPES,
    CrawlerConfig,
    FetcherConfig,
)
from spider_cli.models.content import Content

log = logging.getLogger(__name__)


class ConfigManager:
    """
    Handles all operations related to the three configuration files:

    - contents: ``[[content]]`` tables, rewritten when counters advance
    - crawlers: ``[[crawlers]]`` tables tagged with ``type``
    - fetchers: ``[[fetchers]]`` tables tagged with ``type``
    """

    def __init__(
        self,
        contents_path: Path,
        crawlers_path: Path = Path("./crawlers.toml"),
        fetchers_path: Path = Path("./fetchers.toml"),
    ):
        self.contents_path = Path(contents_path)
        self.crawlers_path = Path(crawlers_path)
        self.fetchers_path = Path(fetchers_path)

    def load_contents(self) -> list[Content]:
        """
        Loads and validates all content entries.

        Raises:
            ConfigurationError: If the file is missing, invalid, or validation fails.
        """
        data = self._read_toml(self.contents_path)
        entries = data.get("content", [])
        if not isinstance(entries, list):
            raise ConfigurationError(
                f"'content' in '{self.contents_path}' must be an array of tables."
            )

        contents = []
        for i, entry in enumerate(entries):
            try:
                contents.append(Content(**entry))
            except (ValidationError, TypeError) as e:
                raise ConfigurationError(
                    f"Content entry #{i + 1} in '{self.contents_path}' is invalid:\n{e}"
                ) from e
        log.debug(f"Loaded {len(contents)} content entries from {self.contents_path}")
        return contents

    def load_crawlers(self) -> list[CrawlerConfig]:
        data = self._read_toml(self.crawlers_path)
        return self._parse_variants(
            data.get("crawlers", []), CRAWLER_TYPES, "crawler", self.crawlers_path
        )

    def load_fetchers(self) -> list[FetcherConfig]:
        data = self._read_toml(self.fetchers_path)
        return self._parse_variants(
            data.get("fetchers", []), FETCHER_TYPES, "fetcher", self.fetchers_path
        )

    def commit(self, contents: list[Content]) -> None:
        """
        Rewrites the contents file with the given entries.

        The new file is written next to the old one and moved into place, so a
        failed write never leaves a truncated file behind.

        Raises:
            CommitError: If the file could not be written.
        """
        document = {"content": [content.model_dump() for content in contents]}
        directory = self.contents_path.parent
        tmp_path = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "wb", dir=directory, prefix=".contents-", suffix=".toml", delete=False
            ) as f:
                tmp_path = f.name
                tomli_w.dump(document, f)
            os.replace(tmp_path, self.contents_path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise CommitError(
                f"Failed to write counters to '{self.contents_path}': {e}"
            ) from e
        log.debug(f"Saved {len(contents)} content entries to {self.contents_path}")

    def _read_toml(self, path: Path) -> dict[str, Any]:
        if not path.is_file():
            raise ConfigurationError(f"Configuration file not found at '{path}'.")
        try:
            with open(path, "rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Error parsing '{path}': {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Could not read '{path}': {e}") from e

    def _parse_variants(
        self,
        tables: Any,
        registry: dict[str, type[BaseModel]],
        kind: str,
        path: Path,
    ) -> list[Any]:
        """Validates each table against the model registered for its ``type`` tag."""
        if not isinstance(tables, list):
            raise ConfigurationError(f"'{kind}s' in '{path}' must be an array of tables.")

        parsed = []
        for i, table in enumerate(tables):
            if not isinstance(table, dict):
                raise ConfigurationError(f"{kind.capitalize()} #{i + 1} in '{path}' is not a table.")
            type_tag = str(table.get("type", "")).lower()
            model = registry.get(type_tag)
            if model is None:
                known = ", ".join(sorted(registry))
                raise ConfigurationError(
                    f"Unknown {kind} type '{type_tag}' in entry #{i + 1} of '{path}'."
                    f" Known types: {known}."
                )
            try:
                parsed.append(model(**{**table, "type": type_tag}))
            except ValidationError as e:
                raise ConfigurationError(
                    f"{kind.capitalize()} #{i + 1} in '{path}' is invalid:\n{e}"
                ) from e
        log.debug(f"Loaded {len(parsed)} {kind}(s) from {path}")
        return parsed
