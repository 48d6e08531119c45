import os
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Type

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

# Load .env first (Project specific overrides)
load_dotenv()

CONFIG_PATH = Path.home() / ".gbooks_config.json"

DEFAULT_API_URL = "https://www.googleapis.com/books/v1/volumes"

logger = logging.getLogger("gbooks")


def default_log(level: int, message: str, context: Optional[Dict[str, Any]] = None):
    """Route client log events to the ``gbooks`` logger."""
    if context:
        logger.log(level, "%s %s", message, context)
    else:
        logger.log(level, message)


class QueryParams(BaseModel):
    """
    Default query string sent with every volumes request.
    Unknown provider parameters (orderBy, filter, projection...) are kept and forwarded.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    max_results: int = Field(40, alias="maxResults")
    start_index: int = Field(0, alias="startIndex")
    lang_restrict: Optional[str] = Field("en", alias="langRestrict")
    print_type: Optional[str] = Field("books", alias="printType")

    def to_params(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class CacheOptions(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    # Seconds; 0 keeps entries for the lifetime of the client
    max_age: float = Field(0, alias="maxAge", ge=0)
    max_size: Optional[int] = Field(None, alias="max", ge=1)
    length: int = 1


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    query_params: QueryParams = Field(default_factory=QueryParams, alias="queryParams")
    cache_options: CacheOptions = Field(default_factory=CacheOptions, alias="cacheOptions")
    sets_to_fetch: int = Field(1, alias="setsToFetch")
    api_url: str = Field(DEFAULT_API_URL, alias="apiUrl")
    timeout: float = 10.0
    logger: Callable[..., Any] = default_log


def _aliased(model_cls: Type[BaseModel], values: Dict[str, Any]) -> Dict[str, Any]:
    """Rename field names to their aliases so both spellings land on one key."""
    aliased = {}
    for key, value in values.items():
        field = model_cls.model_fields.get(key)
        aliased[field.alias if field is not None and field.alias else key] = value
    return aliased


def _merge_group(model_cls: Type[BaseModel], *groups: Any) -> BaseModel:
    merged = model_cls().model_dump(by_alias=True)
    for group in groups:
        if isinstance(group, BaseModel):
            group = group.model_dump(by_alias=True)
        merged.update(_aliased(model_cls, dict(group)))
    return model_cls.model_validate(merged)


def resolve_settings(options: Optional[Dict[str, Any]] = None, **overrides) -> Settings:
    """
    Build Settings from partial options.

    query_params and cache_options are merged over the defaults field by field,
    every other key replaces its default outright. Keyword overrides are applied
    after `options`. Keys may use either snake_case names or the camelCase aliases.
    """
    if isinstance(options, Settings):
        options = options.model_dump(by_alias=True)

    merged: Dict[str, Any] = {}
    groups: Dict[str, list] = {"queryParams": [], "cacheOptions": []}
    for source in (options or {}, overrides):
        for key, value in _aliased(Settings, source).items():
            if key in groups:
                if value is not None:
                    groups[key].append(value)
            else:
                merged[key] = value

    merged["queryParams"] = _merge_group(QueryParams, *groups["queryParams"])
    merged["cacheOptions"] = _merge_group(CacheOptions, *groups["cacheOptions"])
    return Settings.model_validate(merged)


class Config:
    """Environment / ~/.gbooks_config.json overrides for the CLI and HTTP surface."""

    def __init__(self):
        self._load_from_file()

    def _load_from_file(self):
        self.file_config = {}
        if CONFIG_PATH.exists():
            try:
                self.file_config = json.loads(CONFIG_PATH.read_text())
            except (OSError, ValueError) as e:
                logger.warning(f"Ignoring unreadable config file {CONFIG_PATH}: {e}")

    def _get(self, key: str):
        return os.getenv(key) or self.file_config.get(key)

    @property
    def API_URL(self):
        return self._get("GBOOKS_API_URL")

    @property
    def LANG_RESTRICT(self):
        return self._get("GBOOKS_LANG_RESTRICT")

    @property
    def PRINT_TYPE(self):
        return self._get("GBOOKS_PRINT_TYPE")

    @property
    def MAX_RESULTS(self):
        return self._get("GBOOKS_MAX_RESULTS")

    @property
    def SETS_TO_FETCH(self):
        return self._get("GBOOKS_SETS_TO_FETCH")

    @property
    def CACHE_MAX_AGE(self):
        return self._get("GBOOKS_CACHE_MAX_AGE")

    @property
    def TIMEOUT(self):
        return self._get("GBOOKS_TIMEOUT")

    def as_options(self) -> Dict[str, Any]:
        """Options for resolve_settings holding only the keys that are configured."""
        options: Dict[str, Any] = {}
        query_params = {}
        if self.LANG_RESTRICT:
            query_params["langRestrict"] = self.LANG_RESTRICT
        if self.PRINT_TYPE:
            query_params["printType"] = self.PRINT_TYPE
        if self.MAX_RESULTS:
            query_params["maxResults"] = self.MAX_RESULTS
        if query_params:
            options["queryParams"] = query_params

        if self.CACHE_MAX_AGE:
            options["cacheOptions"] = {"maxAge": self.CACHE_MAX_AGE}
        if self.SETS_TO_FETCH:
            options["setsToFetch"] = self.SETS_TO_FETCH
        if self.API_URL:
            options["apiUrl"] = self.API_URL
        if self.TIMEOUT:
            options["timeout"] = self.TIMEOUT
        return options

    def save(self, key: str, value: str):
        self.file_config[key] = value
        CONFIG_PATH.write_text(json.dumps(self.file_config, indent=2))


config = Config()
