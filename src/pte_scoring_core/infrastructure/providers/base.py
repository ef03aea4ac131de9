"""
Provider adapter interface

A ProviderAdapter turns a section-specific input into a RawProviderResult.
Concrete adapters wrap an LLM backend or stand in for a missing one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from pte_scoring_core.domain.constants import DEFAULT_TIMEOUT_MS, Section
from pte_scoring_core.domain.entities import HealthStatus, ScoringRequest
from pte_scoring_core.domain.value_objects import RawProviderResult


def _str_list(value) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(v) for v in value]
    return [str(value)]


@dataclass
class ProviderInput:
    """Provider-facing view of a scoring request"""
    section: Section
    question_type: str
    include_rationale: bool = False
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    # speaking
    transcript: str | None = None
    reference_text: str | None = None
    # writing
    text: str | None = None
    prompt: str | None = None
    # reading
    question: str | None = None
    options: list[str] = field(default_factory=list)
    correct: list[str] = field(default_factory=list)
    user_selected: list[str] = field(default_factory=list)
    # listening
    target_text: str | None = None
    user_text: str | None = None

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0

    def prompt_args(self) -> dict:
        """Arguments for rubric_catalog.build_prompt"""
        return {
            "question_type": self.question_type,
            "include_rationale": self.include_rationale,
            "transcript": self.transcript,
            "reference_text": self.reference_text,
            "text": self.text,
            "prompt": self.prompt,
            "question": self.question,
            "options": self.options,
            "correct": self.correct,
            "user_selected": self.user_selected,
            "target_text": self.target_text,
            "user_text": self.user_text,
        }

    @classmethod
    def from_request(cls, request: ScoringRequest, timeout_ms: int) -> "ProviderInput":
        """Map a request payload (snake_case or camelCase keys) onto provider fields"""
        p = request.payload

        def get(*keys):
            for key in keys:
                if p.get(key) is not None:
                    return p[key]
            return None

        selected = get("userSelected", "user_selected", "selectedOptions", "selected_options")
        if selected is None:
            single = get("selectedOption", "selected_option")
            selected = [single] if single is not None else []
        correct = get("correct", "correctOptions", "correct_options")
        if correct is None:
            single = get("correctOption", "correct_option")
            correct = [single] if single is not None else []
        if isinstance(correct, dict):
            correct = list(correct.values())

        text = get("text", "answer")
        return cls(
            section=request.section,
            question_type=request.question_type,
            include_rationale=request.include_rationale,
            timeout_ms=timeout_ms,
            transcript=get("transcript"),
            reference_text=get("referenceText", "reference_text"),
            text=str(text) if text is not None else None,
            prompt=get("prompt"),
            question=get("question"),
            options=_str_list(get("options")),
            correct=_str_list(correct),
            user_selected=_str_list(selected),
            target_text=get("targetText", "target_text"),
            user_text=get("userText", "user_text"),
        )


class ProviderAdapter(ABC):
    """Abstract base class for judgment providers"""

    name: str

    @abstractmethod
    def health(self) -> HealthStatus:
        """Cheap connectivity check; never raises"""
        pass

    @abstractmethod
    def score_speaking(self, provider_input: ProviderInput) -> RawProviderResult:
        """Score a speaking response on the speaking rubric"""
        pass

    @abstractmethod
    def score_writing(self, provider_input: ProviderInput) -> RawProviderResult:
        """Score a writing response on the writing rubric"""
        pass

    @abstractmethod
    def score_reading(self, provider_input: ProviderInput) -> RawProviderResult:
        """Explain a reading answer (rationale only)"""
        pass

    @abstractmethod
    def score_listening(self, provider_input: ProviderInput) -> RawProviderResult:
        """Explain a listening answer (rationale only)"""
        pass

    def score(self, provider_input: ProviderInput) -> RawProviderResult:
        """Dispatch to the section-specific method"""
        dispatch = {
            Section.SPEAKING: self.score_speaking,
            Section.WRITING: self.score_writing,
            Section.READING: self.score_reading,
            Section.LISTENING: self.score_listening,
        }
        return dispatch[provider_input.section](provider_input)
