# src/core/models.py — v2
"""Shared Pydantic domain models used by the page and worker contexts.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal
from urllib.parse import urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict, Field

# === CACHE GENERATIONS ===


class CacheGeneration(str, Enum):
    """The two bucket generations owned by a worker version."""

    STATIC = "static"
    DYNAMIC = "dynamic"


class CacheBucketName(BaseModel):
    """Versioned bucket identifier rendered as '{prefix}-{version}-{generation}'."""

    model_config = ConfigDict(frozen=True)

    prefix: str
    version: str
    generation: CacheGeneration

    @property
    def name(self) -> str:
        return f"{self.prefix}-{self.version}-{self.generation.value}"

    def __str__(self) -> str:
        return self.name

    @classmethod
    def parse(cls, name: str) -> CacheBucketName | None:
        """Parse a bucket name; returns None for buckets we do not own."""
        parts = name.split("-")
        if len(parts) != 3:
            return None
        prefix, version, generation = parts
        try:
            gen = CacheGeneration(generation)
        except ValueError:
            return None
        if not prefix or not version:
            return None
        return cls(prefix=prefix, version=version, generation=gen)


# === REQUESTS & RESPONSES ===

RequestMode = Literal["navigate", "cors", "no-cors", "same-origin"]
ResponseType = Literal["basic", "cors", "opaque", "error"]


class FetchRequest(BaseModel):
    """An intercepted request. Identity is method + URL (fragment dropped)."""

    model_config = ConfigDict(frozen=True)

    url: str
    method: str = "GET"
    mode: RequestMode = "cors"
    headers: dict[str, str] = Field(default_factory=dict)

    @property
    def key(self) -> str:
        parts = urlsplit(self.url)
        normalized = urlunsplit(
            (parts.scheme, parts.netloc, parts.path or "/", parts.query, "")
        )
        return f"{self.method.upper()} {normalized}"

    @property
    def scheme(self) -> str:
        return urlsplit(self.url).scheme.lower()

    @property
    def origin(self) -> str:
        parts = urlsplit(self.url)
        return f"{parts.scheme.lower()}://{parts.netloc.lower()}"

    @property
    def path(self) -> str:
        return urlsplit(self.url).path or "/"

    @property
    def host(self) -> str:
        return (urlsplit(self.url).hostname or "").lower()

    @property
    def is_navigation(self) -> bool:
        return self.mode == "navigate"


class ResponseSnapshot(BaseModel):
    """Captured response: status, headers and body bytes."""

    model_config = ConfigDict(frozen=True)

    status: int
    status_text: str = ""
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes = b""
    type: ResponseType = "basic"
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        for k, v in self.headers.items():
            if k.lower() == lowered:
                return v
        return default


class CachedEntry(BaseModel):
    """A response snapshot stored in a bucket under a request key."""

    model_config = ConfigDict(frozen=True)

    key: str
    request: FetchRequest
    response: ResponseSnapshot
    generation: CacheGeneration
    stored_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json(self) -> str:
        """Serialize with the body base64-encoded."""
        data = self.model_dump(mode="json", exclude={"response": {"body"}})
        data["response"]["body_b64"] = base64.b64encode(self.response.body).decode(
            "ascii"
        )
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> CachedEntry:
        data: dict[str, Any] = json.loads(raw)
        response = dict(data["response"])
        response["body"] = base64.b64decode(response.pop("body_b64", ""))
        data["response"] = response
        return cls.model_validate(data)


# === STORAGE WIPE ===


class WipeReport(BaseModel):
    """Which wipe sub-steps succeeded."""

    caches: bool = False
    local_storage: bool = False
    session_storage: bool = False
    databases: bool = False
    caches_deleted: int = 0
    databases_deleted: int = 0
    errors: dict[str, str] = Field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return (
            self.caches
            and self.local_storage
            and self.session_storage
            and self.databases
        )

    @property
    def failed_steps(self) -> list[str]:
        return [
            step
            for step in ("caches", "local_storage", "session_storage", "databases")
            if not getattr(self, step)
        ]


# === VERSIONING ===


class VersionDescriptor(BaseModel):
    """The deployed build identifier served by the version endpoint."""

    model_config = ConfigDict(extra="allow")

    version: str
    build_time: str | None = None


# === PAGE SIGNALS ===

SignalKind = Literal["error", "unhandledrejection", "script_load", "load_timeout"]


class ErrorSignal(BaseModel):
    """A runtime failure observed in the page context."""

    kind: SignalKind
    message: str = ""
    filename: str = ""
    lineno: int = 0
    colno: int = 0


class ScriptTag(BaseModel):
    """A <script src> element and whether it finished loading."""

    src: str
    loaded: bool = True


@dataclass
class FailureCounter:
    """Tab-scoped count of stale-build signals since the last reset."""

    threshold: int = 3
    classified_threshold: int = 2
    count: int = 0
    classified_streak: int = 0

    def record(self, classified: bool) -> None:
        self.count += 1
        self.classified_streak = self.classified_streak + 1 if classified else 0

    def should_escalate(self) -> bool:
        return (
            self.count >= self.threshold
            or self.classified_streak >= self.classified_threshold
        )

    def reset(self) -> None:
        self.count = 0
        self.classified_streak = 0
