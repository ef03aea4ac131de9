"""
Domain Value Objects

Defines the request-scoped data structures representing scores, raw provider
output, provider diagnostics, and model responses.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ProviderMeta:
    """Diagnostic information about where a score came from (never affects scoring math)"""
    provider: str
    model: str | None = None
    latency_ms: int | None = None
    timestamp: str = field(default_factory=_utc_now_iso)
    request_id: str | None = None
    finish_reason: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary format, omitting unset fields"""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class RawProviderResult:
    """Un-normalized provider output (ranges are provider-defined)"""
    meta: ProviderMeta
    overall: float | None = None
    subscores: dict[str, float] = field(default_factory=dict)
    rationale: str | None = None

    @property
    def has_signal(self) -> bool:
        """Whether the result carries any numeric signal"""
        return bool(self.subscores) or self.overall is not None

    @property
    def is_empty(self) -> bool:
        """Whether the result carries neither numbers nor rationale"""
        return not self.has_signal and not self.rationale


@dataclass
class CanonicalScore:
    """Normalized score on the 0-90 scale"""
    overall: int
    subscores: dict[str, int] = field(default_factory=dict)
    rationale: str | None = None
    metadata: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary format"""
        data = {
            "overall": self.overall,
            "subscores": dict(self.subscores),
            "metadata": dict(self.metadata),
        }
        if self.rationale is not None:
            data["rationale"] = self.rationale
        return data


@dataclass
class ModelResponse:
    """Model response"""
    output: str
    latency_ms: int
    model_name: str
    input_tokens: int = 0
    output_tokens: int = 0
    finish_reason: str | None = None
    request_id: str | None = None
