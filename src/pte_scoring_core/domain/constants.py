"""
Domain Constants

Centrally manages constants shared across the scoring engine.
"""

from enum import Enum


class Section(str, Enum):
    """Test section"""
    SPEAKING = "speaking"
    WRITING = "writing"
    READING = "reading"
    LISTENING = "listening"


class ProviderName(str, Enum):
    """Origin of a raw or canonical score"""
    OPENAI = "openai"
    GEMINI = "gemini"
    CLAUDE = "claude"
    DETERMINISTIC = "deterministic"
    HEURISTIC = "heuristic"
    UNAVAILABLE = "unavailable"


# Canonical scale bounds
CANONICAL_MIN = 0
CANONICAL_MAX = 90

# Default per-call timeout (ms)
DEFAULT_TIMEOUT_MS = 8000

# Rationale length limit after merging
MAX_RATIONALE_CHARS = 2000

# Rubric dimensions per section
SECTION_DIMENSIONS: dict[Section, tuple[str, ...]] = {
    Section.SPEAKING: ("content", "pronunciation", "fluency", "grammar", "vocabulary"),
    Section.WRITING: ("content", "structure", "coherence", "grammar", "vocabulary", "spelling"),
    Section.READING: ("correctness",),
    Section.LISTENING: ("correctness", "wer"),
}

# Default dimension weights (need not sum to 1)
DEFAULT_WEIGHTS: dict[Section, dict[str, float]] = {
    Section.SPEAKING: {
        "content": 0.4,
        "pronunciation": 0.3,
        "fluency": 0.2,
        "grammar": 0.05,
        "vocabulary": 0.05,
    },
    Section.WRITING: {
        "content": 0.35,
        "structure": 0.15,
        "coherence": 0.15,
        "grammar": 0.15,
        "vocabulary": 0.1,
        "spelling": 0.1,
    },
    Section.READING: {
        "correctness": 1.0,
    },
    Section.LISTENING: {
        "correctness": 0.7,
        "wer": 0.3,
    },
}

# Sections that need a subjective judgment
SUBJECTIVE_SECTIONS = frozenset({Section.SPEAKING, Section.WRITING})

# LLM providers in default order
LLM_PROVIDERS = (ProviderName.OPENAI, ProviderName.GEMINI, ProviderName.CLAUDE)

# Default provider order for scoring (speaking/writing) and explanations (reading/listening)
DEFAULT_SCORING_PRIORITY = [ProviderName.OPENAI, ProviderName.GEMINI, ProviderName.CLAUDE]
DEFAULT_EXPLAIN_PRIORITY = [ProviderName.GEMINI, ProviderName.OPENAI, ProviderName.CLAUDE]

# Output token budgets per call kind
MAX_TOKENS_SPEAKING = 500
MAX_TOKENS_WRITING = 600
MAX_TOKENS_EXPLAIN = 250
