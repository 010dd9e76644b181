"""
Configuration and result models for the RRR emitter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationInvalid
from .index import DEFAULT_INDEX_PREFIX

BULK_PATH = "/_bulk"
NDJSON_CONTENT_TYPE = "application/x-ndjson"


class EmitterConfig(BaseModel):
    """Immutable sink configuration.

    Accepts both the camelCase option keys (``endpointUrl``, ``indexPrefix``)
    and their snake_case field names.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    endpoint_url: str = Field(alias="endpointUrl")
    index_prefix: str = Field(default=DEFAULT_INDEX_PREFIX, alias="indexPrefix")
    username: Optional[str] = None
    password: Optional[str] = None

    @field_validator("endpoint_url")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("endpoint_url must not be empty")
        return v

    @field_validator("index_prefix", mode="before")
    @classmethod
    def _prefix_default(cls, v):
        return DEFAULT_INDEX_PREFIX if v is None else v

    @property
    def bulk_url(self) -> str:
        return self.endpoint_url.rstrip("/") + BULK_PATH

    @property
    def auth(self) -> Optional[Tuple[str, str]]:
        """Basic auth pair, or None when no credentials are configured."""
        if self.username is None and self.password is None:
            return None
        return (self.username or "", self.password or "")

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]]) -> Optional["EmitterConfig"]:
        """Build from an option mapping; None when the endpoint is missing or invalid."""
        if not options:
            return None
        endpoint = options.get("endpointUrl", options.get("endpoint_url"))
        if not isinstance(endpoint, str) or not endpoint.strip():
            return None
        try:
            return cls.model_validate(dict(options))
        except ValidationError:
            return None

    @classmethod
    def require(cls, options: Optional[Mapping[str, Any]]) -> "EmitterConfig":
        """Like from_options, but raise ConfigurationInvalid instead of returning None."""
        cfg = cls.from_options(options)
        if cfg is None:
            raise ConfigurationInvalid("endpoint url missing or invalid")
        return cfg


@dataclass(frozen=True)
class FlushPolicy:
    """Size/time flush thresholds."""

    max_records: int = 50  # flush once this many records are buffered
    max_interval_ms: int = 1000  # or on tick, once this many ms passed since last flush


@dataclass(frozen=True)
class FlushOutcome:
    """Result of one bulk send, delivered to the completion handler.

    outcome is one of ``success``, ``status_error``, ``transport_error``, ``dropped``.
    """

    outcome: str
    records: int
    status_code: Optional[int] = None
    error: Optional[str] = None
    latency_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.outcome == "success"


@dataclass(frozen=True)
class EmitterHealth:
    name: str
    state: str
    buffered: int
    last_flush: float
    in_flight: int
    flushes: int
    records_sent: int
    status_errors: int
    transport_errors: int
    last_error: Optional[str] = None
