"""
Domain Entities

Defines the scoring request and provider health structures.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pte_scoring_core.domain.constants import Section
from pte_scoring_core.domain.errors import InvalidRequest

_TRUE_STRINGS = {"true", "1", "yes"}
_FALSE_STRINGS = {"false", "0", "no", ""}


def _parse_flag(value, key: str) -> bool:
    """Read a boolean request flag (bool, 0/1, or "true"/"false"/"yes"/"no" strings)"""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise InvalidRequest(f"{key} must be a boolean, got {value!r}")


@dataclass
class ScoringRequest:
    """A single scoring call"""
    section: Section
    question_type: str
    payload: dict = field(default_factory=dict)
    include_rationale: bool = False
    timeout_ms: int | None = None
    provider_priority: list[str] | None = None

    def __post_init__(self):
        if not isinstance(self.section, Section):
            try:
                self.section = Section(str(self.section).strip().lower())
            except ValueError:
                raise InvalidRequest(f"Unknown section: {self.section!r}")
        if not isinstance(self.question_type, str) or not self.question_type.strip():
            raise InvalidRequest("question_type is required")
        if self.payload is None:
            self.payload = {}
        if not isinstance(self.payload, dict):
            raise InvalidRequest("payload must be a mapping")

    @property
    def normalized_question_type(self) -> str:
        """Lowercase snake_case question type"""
        return self.question_type.strip().lower().replace("-", "_").replace(" ", "_")

    @classmethod
    def from_dict(cls, data: dict) -> "ScoringRequest":
        """Create from dictionary (accepts snake_case and camelCase keys)"""
        if not isinstance(data, dict):
            raise InvalidRequest("request must be a mapping")
        if "section" not in data:
            raise InvalidRequest("section is required")
        return cls(
            section=data["section"],
            question_type=data.get("question_type", data.get("questionType", "")),
            payload=data.get("payload") or {},
            include_rationale=_parse_flag(
                data.get("include_rationale", data.get("includeRationale")), "include_rationale"
            ),
            timeout_ms=data.get("timeout_ms", data.get("timeoutMs")),
            provider_priority=data.get("provider_priority", data.get("providerPriority")),
        )


@dataclass
class HealthStatus:
    """Provider health check result"""
    provider: str
    ok: bool
    latency_ms: int | None = None
    model: str | None = None
    error: str | None = None
