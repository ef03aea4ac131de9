"""
Scoring Engine Configuration

Manages loading from environment variables and default values.
Configuration is read once and treated as read-only afterwards.
Unparsable numeric values fall back to their defaults.
"""

import logging
import math
import os
from dataclasses import dataclass, field, asdict

from pte_scoring_core.domain.constants import (
    DEFAULT_EXPLAIN_PRIORITY,
    DEFAULT_SCORING_PRIORITY,
    DEFAULT_TIMEOUT_MS,
    LLM_PROVIDERS,
)
from pte_scoring_core.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _env_int(key: str, default: int) -> int:
    """Convert an environment variable to int (default when absent or unparsable)"""
    val = os.environ.get(key)
    if val is None or not val.strip():
        return default
    try:
        f = float(val)
    except ValueError:
        f = math.nan
    if not math.isfinite(f):
        logger.warning("Ignoring %s=%r: not a number; using %s", key, val, default)
        return default
    return int(f)


def _env_str(key: str, default: str | None) -> str | None:
    """Get an environment variable as a string"""
    return os.environ.get(key, default)


def _env_list(key: str, default: list[str]) -> list[str]:
    """Convert an environment variable to a comma-separated list of lowercase strings"""
    val = os.environ.get(key)
    if val is None or not val.strip():
        return list(default)
    return [x.strip().lower() for x in val.split(",") if x.strip()]


def resolve_timeout_ms(value) -> int:
    """
    Resolve a timeout value, falling back to the default when absent,
    non-numeric, non-finite or non-positive

    Args:
        value: Candidate timeout in milliseconds (any type; numeric strings such as "8000.5" are accepted)

    Returns:
        Timeout in milliseconds
    """
    if isinstance(value, bool):
        return DEFAULT_TIMEOUT_MS
    try:
        ms = float(value)
    except (TypeError, ValueError):
        return DEFAULT_TIMEOUT_MS
    if not math.isfinite(ms) or ms <= 0:
        return DEFAULT_TIMEOUT_MS
    return max(1, int(ms))


def filter_provider_names(names: list[str] | None, default: list[str]) -> list[str]:
    """
    Keep only known LLM provider names (order preserved, duplicates dropped)

    "heuristic" is accepted for compatibility and ignored; the heuristic path is
    always the last resort. Falls back to default when nothing valid remains.
    """
    known = {p.value for p in LLM_PROVIDERS}
    out: list[str] = []
    for name in names or []:
        n = str(name).strip().lower()
        if n in known and n not in out:
            out.append(n)
    return out if out else list(default)


@dataclass
class TimeoutConfig:
    """Provider call time budget"""
    timeout_ms: int = DEFAULT_TIMEOUT_MS


@dataclass
class ProviderConfig:
    """Provider selection configuration"""
    priority: list[str] = field(default_factory=lambda: [p.value for p in DEFAULT_SCORING_PRIORITY])
    explain_priority: list[str] = field(default_factory=lambda: [p.value for p in DEFAULT_EXPLAIN_PRIORITY])
    max_retries: int = 1


@dataclass
class OpenAIConfig:
    """OpenAI (or OpenAI-compatible) backend configuration"""
    api_key: str | None = None
    base_url: str | None = None
    model: str = "gpt-4o-mini"


@dataclass
class GeminiConfig:
    """Google Gemini backend configuration"""
    api_key: str | None = None
    model: str = "gemini-2.5-flash"
    fallback_model: str | None = "gemini-2.5-pro"


@dataclass
class ClaudeConfig:
    """Anthropic Claude backend configuration"""
    api_key: str | None = None
    model: str = "claude-haiku-4-5-20251001"


@dataclass
class ScoringConfig:
    """Overall scoring engine configuration"""
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    providers: ProviderConfig = field(default_factory=ProviderConfig)
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)
    claude: ClaudeConfig = field(default_factory=ClaudeConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary format (credentials are masked)"""
        data = asdict(self)
        for backend in ("openai", "gemini", "claude"):
            if data[backend].get("api_key"):
                data[backend]["api_key"] = "***"
        return {"scoring_config": data}

    @classmethod
    def from_dict(cls, data: dict) -> "ScoringConfig":
        """
        Create from dictionary (handles presence/absence of scoring_config key)

        Raises:
            ConfigurationError: When a section contains an unknown key
        """
        config_data = data.get("scoring_config", data)
        try:
            timeout = TimeoutConfig(**config_data.get("timeout", {}))
            providers = ProviderConfig(**config_data.get("providers", {}))
            openai = OpenAIConfig(**config_data.get("openai", {}))
            gemini = GeminiConfig(**config_data.get("gemini", {}))
            claude = ClaudeConfig(**config_data.get("claude", {}))
        except TypeError as e:
            raise ConfigurationError(f"Invalid scoring configuration: {e}") from e
        timeout.timeout_ms = resolve_timeout_ms(timeout.timeout_ms)
        return cls(
            timeout=timeout,
            providers=providers,
            openai=openai,
            gemini=gemini,
            claude=claude,
        )


def load_config() -> ScoringConfig:
    """
    Load configuration from environment variables

    Uses default values when environment variables are not set or cannot be parsed.

    Returns:
        ScoringConfig
    """
    timeout = TimeoutConfig(
        timeout_ms=resolve_timeout_ms(os.environ.get("PTE_SCORING_TIMEOUT_MS")),
    )
    providers = ProviderConfig(
        priority=filter_provider_names(
            _env_list("PTE_SCORING_PROVIDER_PRIORITY", []),
            [p.value for p in DEFAULT_SCORING_PRIORITY],
        ),
        explain_priority=filter_provider_names(
            _env_list("PTE_SCORING_EXPLAIN_PRIORITY", []),
            [p.value for p in DEFAULT_EXPLAIN_PRIORITY],
        ),
        max_retries=max(1, _env_int("PTE_SCORING_MAX_RETRIES", 1)),
    )
    openai = OpenAIConfig(
        api_key=_env_str("OPENAI_API_KEY", None),
        base_url=_env_str("OPENAI_BASE_URL", None),
        model=_env_str("PTE_OPENAI_MODEL", "gpt-4o-mini"),
    )
    gemini = GeminiConfig(
        api_key=_env_str("GEMINI_API_KEY", None) or _env_str("GOOGLE_API_KEY", None),
        model=_env_str("PTE_GEMINI_MODEL", "gemini-2.5-flash"),
        fallback_model=_env_str("PTE_GEMINI_FALLBACK_MODEL", "gemini-2.5-pro") or None,
    )
    claude = ClaudeConfig(
        api_key=_env_str("ANTHROPIC_API_KEY", None),
        model=_env_str("PTE_CLAUDE_MODEL", "claude-haiku-4-5-20251001"),
    )
    return ScoringConfig(
        timeout=timeout,
        providers=providers,
        openai=openai,
        gemini=gemini,
        claude=claude,
    )
