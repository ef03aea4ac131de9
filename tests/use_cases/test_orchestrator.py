"""
スコアオーケストレーターのテスト

決定的採点・プロバイダー呼び出し・タイムアウト・ヒューリスティック
フォールバックの流れを、フェイクのプロバイダーで検証する。
"""

import time

import pytest
from unittest.mock import patch

from pte_scoring_core.domain.constants import Section
from pte_scoring_core.domain.entities import HealthStatus, ScoringRequest
from pte_scoring_core.domain.errors import InvalidRequest, ProviderTimeout
from pte_scoring_core.domain.value_objects import ProviderMeta, RawProviderResult
from pte_scoring_core.infrastructure.providers.base import ProviderAdapter, ProviderInput
from pte_scoring_core.scoring.heuristics import heuristic_speaking
from pte_scoring_core.scoring_config import ScoringConfig
from pte_scoring_core.use_cases.orchestrator import (
    ScoreOrchestrator,
    call_with_timeout,
    score_with_orchestrator,
)

TRANSCRIPT = "The quick brown fox jumps over the lazy dog"


class FakeProvider(ProviderAdapter):
    """指定した結果・例外・遅延を返すプロバイダー"""

    def __init__(self, name, subscores=None, overall=None, rationale=None, error=None, delay=0.0):
        self.name = name
        self.subscores = subscores or {}
        self.overall = overall
        self.rationale = rationale
        self.error = error
        self.delay = delay
        self.calls: list[ProviderInput] = []

    def health(self):
        return HealthStatus(provider=self.name, ok=self.error is None)

    def _respond(self, provider_input):
        self.calls.append(provider_input)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return RawProviderResult(
            meta=ProviderMeta(provider=self.name, model=f"{self.name}-model"),
            overall=self.overall,
            subscores=dict(self.subscores),
            rationale=self.rationale,
        )

    def score_speaking(self, provider_input):
        return self._respond(provider_input)

    def score_writing(self, provider_input):
        return self._respond(provider_input)

    def score_reading(self, provider_input):
        return self._respond(provider_input)

    def score_listening(self, provider_input):
        return self._respond(provider_input)


def _speaking(**overrides):
    data = {
        "section": "speaking",
        "question_type": "describe_image",
        "payload": {"transcript": TRANSCRIPT},
    }
    data.update(overrides)
    return data


class TestCallWithTimeout:
    def test_returns_result(self):
        provider = FakeProvider("openai", subscores={"content": 70})
        raw = call_with_timeout(provider, ProviderInput(section=Section.SPEAKING, question_type="x"), 1.0)
        assert raw.subscores == {"content": 70}

    def test_timeout_raises_without_waiting(self):
        provider = FakeProvider("openai", subscores={"content": 70}, delay=1.0)
        start = time.monotonic()
        with pytest.raises(ProviderTimeout, match="timeout_after_50ms"):
            call_with_timeout(provider, ProviderInput(section=Section.SPEAKING, question_type="x"), 0.05)
        assert time.monotonic() - start < 0.9

    def test_provider_error_propagates(self):
        provider = FakeProvider("openai", error=RuntimeError("boom"))
        with pytest.raises(RuntimeError, match="boom"):
            call_with_timeout(provider, ProviderInput(section=Section.SPEAKING, question_type="x"), 1.0)


class TestDeterministicPath:
    """決定的に採点できる問題はプロバイダーを呼ばない"""

    def test_multi_select_end_to_end(self):
        provider = FakeProvider("openai", subscores={"correctness": 10})
        result = score_with_orchestrator(
            {
                "section": "reading",
                "questionType": "multiple_choice_multiple",
                "payload": {"selectedOptions": ["A", "B"], "correctOptions": ["A", "B", "C"]},
            },
            providers=[provider],
        )
        assert result.overall == 60
        assert result.subscores == {"correctness": 60}
        assert result.metadata["provider"] == "deterministic"
        assert "orchestratorLatencyMs" in result.metadata
        assert provider.calls == []

    def test_recall_without_false_positives(self):
        result = score_with_orchestrator(
            {
                "section": "reading",
                "questionType": "multiple_choice_multiple",
                "payload": {"selectedOptions": ["A", "C"], "correctOptions": ["A", "C", "D"]},
            },
            providers=[],
        )
        assert result.overall == 60
        assert result.metadata["tp"] == 2
        assert result.metadata["fp"] == 0

    def test_dictation(self):
        result = score_with_orchestrator(
            {
                "section": "listening",
                "question_type": "write_from_dictation",
                "payload": {"targetText": "the cat sat down", "userText": "the dog sat down"},
            },
            providers=[],
        )
        assert result.subscores == {"wer": 75, "correctness": 68}
        assert result.overall == 70

    def test_deterministic_is_repeatable(self):
        request = {
            "section": "reading",
            "question_type": "reorder_paragraphs",
            "payload": {"userOrder": ["A", "C", "B"], "correctOrder": ["A", "B", "C"]},
        }
        orchestrator = ScoreOrchestrator(config=ScoringConfig(), providers=[])
        first = orchestrator.score(request)
        second = orchestrator.score(request)
        assert first.overall == second.overall == 60
        assert first.subscores == second.subscores

    def test_missing_payload_fields_raise(self):
        with pytest.raises(InvalidRequest, match="selectedOptions"):
            score_with_orchestrator(
                {"section": "reading", "question_type": "multiple_choice_multiple", "payload": {}},
                providers=[],
            )

    def test_unsupported_question_type_raises(self):
        with pytest.raises(InvalidRequest, match="No scoring path"):
            score_with_orchestrator(
                {"section": "listening", "question_type": "summarize_spoken_text", "payload": {}},
                providers=[],
            )

    def test_unknown_section_raises(self):
        with pytest.raises(InvalidRequest):
            score_with_orchestrator({"section": "maths", "question_type": "x"}, providers=[])


class TestExplanation:
    """include_rationale 指定時の説明付与"""

    def _request(self):
        return ScoringRequest(
            section=Section.READING,
            question_type="multiple_choice_single",
            payload={"selectedOption": "B", "correctOption": "C", "question": "Q?"},
            include_rationale=True,
        )

    def test_rationale_attached_numbers_unchanged(self):
        explainer = FakeProvider("gemini", subscores={"correctness": 90}, rationale="C is stated in line 2.")
        result = ScoreOrchestrator(config=ScoringConfig(), providers=[explainer]).score(self._request())
        assert result.overall == 0
        assert result.subscores == {"correctness": 0}
        assert result.rationale.endswith("C is stated in line 2.")
        assert result.metadata["provider"] == "deterministic"
        assert explainer.calls[0].user_selected == ["B"]

    def test_failed_explanation_is_silent(self):
        explainer = FakeProvider("gemini", error=RuntimeError("down"))
        result = ScoreOrchestrator(config=ScoringConfig(), providers=[explainer]).score(self._request())
        assert result.overall == 0
        assert "aiError" not in result.metadata

    def test_next_provider_tried_for_explanation(self):
        first = FakeProvider("gemini", error=RuntimeError("down"))
        second = FakeProvider("openai", rationale="Because.")
        result = ScoreOrchestrator(config=ScoringConfig(), providers=[first, second]).score(self._request())
        assert "Because." in result.rationale

    def test_no_providers_called_without_rationale(self):
        explainer = FakeProvider("gemini", rationale="x")
        request = self._request()
        request.include_rationale = False
        ScoreOrchestrator(config=ScoringConfig(), providers=[explainer]).score(request)
        assert explainer.calls == []


class TestSubjectivePath:
    def test_first_provider_with_signal_wins(self):
        first = FakeProvider("openai", subscores={"content": 80, "pronunciation": 70, "fluency": 60})
        second = FakeProvider("gemini", subscores={"content": 10})
        result = score_with_orchestrator(_speaking(), providers=[first, second])
        assert result.overall == 72
        assert result.metadata["provider"] == "openai"
        assert "aiError" not in result.metadata
        assert second.calls == []

    def test_failing_provider_is_skipped(self):
        first = FakeProvider("openai", error=RuntimeError("503 Service Unavailable"))
        second = FakeProvider("gemini", subscores={"content": 100})
        result = score_with_orchestrator(_speaking(), providers=[first, second])
        assert result.metadata["provider"] == "gemini"
        assert result.subscores == {"content": 90}

    def test_empty_response_moves_to_next_provider(self):
        first = FakeProvider("openai", rationale="no numbers")
        second = FakeProvider("claude", overall=65)
        result = score_with_orchestrator(_speaking(), providers=[first, second])
        assert result.overall == 65
        assert result.metadata["provider"] == "claude"

    def test_all_fail_falls_back_to_heuristic(self):
        providers = [
            FakeProvider("openai", error=RuntimeError("503")),
            FakeProvider("gemini", error=ValueError("bad key")),
        ]
        result = score_with_orchestrator(_speaking(), providers=providers)
        expected = heuristic_speaking(TRANSCRIPT)
        assert result.overall == expected.overall
        assert result.subscores == expected.subscores
        assert result.metadata["fallback"] == "heuristic"
        assert "openai: 503" in result.metadata["aiError"]
        assert "gemini: bad key" in result.metadata["aiError"]
        assert result.metadata["providers"][-1] == {"provider": "heuristic"}

    def test_rationale_only_response_survives_fallback(self):
        """数値なしで根拠だけ返ったとき、根拠はヒューリスティック結果に残る"""
        providers = [FakeProvider("openai", rationale="Clear delivery, weak content.")]
        result = score_with_orchestrator(_speaking(), providers=providers)
        expected = heuristic_speaking(TRANSCRIPT)
        assert result.metadata["fallback"] == "heuristic"
        assert result.overall == expected.overall
        assert result.rationale.startswith("Clear delivery, weak content.")
        assert result.rationale.endswith(expected.rationale)

    def test_slow_provider_times_out(self):
        slow = FakeProvider("openai", subscores={"content": 80}, delay=2.0)
        start = time.monotonic()
        result = score_with_orchestrator(_speaking(timeout_ms=100), providers=[slow])
        assert time.monotonic() - start < 1.5
        assert result.metadata["fallback"] == "heuristic"
        assert "timeout" in result.metadata["aiError"]

    def test_deadline_shared_across_providers(self):
        slow = FakeProvider("openai", subscores={"content": 80}, delay=1.0)
        never = FakeProvider("gemini", subscores={"content": 80})
        result = score_with_orchestrator(_speaking(timeout_ms=150), providers=[slow, never])
        assert result.metadata["fallback"] == "heuristic"
        assert never.calls == []

    def test_no_providers_falls_back(self):
        result = score_with_orchestrator(_speaking(), providers=[])
        assert result.metadata["fallback"] == "heuristic"
        assert result.metadata["aiError"] == "no providers configured"

    def test_writing_fallback(self):
        result = score_with_orchestrator(
            {"section": "writing", "question_type": "write_essay", "payload": {"text": "Cities grow."}},
            providers=[FakeProvider("openai", error=RuntimeError("down"))],
        )
        assert result.metadata["fallback"] == "heuristic"
        assert set(result.subscores) == {"content", "structure", "vocabulary"}

    def test_unconfigured_backends_fall_back(self):
        """APIキー未設定の場合もヒューリスティックで返す"""
        result = ScoreOrchestrator(config=ScoringConfig()).score(_speaking())
        assert result.metadata["fallback"] == "heuristic"
        assert "API_KEY is not set" in result.metadata["aiError"]
        assert "openai: OPENAI_API_KEY is not set" in result.metadata["aiError"]
        unavailable = [p for p in result.metadata["providers"] if p["provider"] == "unavailable"]
        assert len(unavailable) == 3
        assert unavailable[0]["error"].startswith("openai:")

    def test_missing_transcript_raises(self):
        with pytest.raises(InvalidRequest, match="transcript"):
            score_with_orchestrator(_speaking(payload={}), providers=[])

    def test_missing_text_raises(self):
        with pytest.raises(InvalidRequest, match="text"):
            score_with_orchestrator(
                {"section": "writing", "question_type": "write_essay", "payload": {"text": 5}},
                providers=[],
            )

    def test_result_always_within_scale(self):
        wild = FakeProvider("openai", subscores={"content": 1000, "fluency": -20}, overall=500)
        result = score_with_orchestrator(_speaking(), providers=[wild])
        assert 0 <= result.overall <= 90
        assert all(0 <= v <= 90 for v in result.subscores.values())


class TestProviderSelection:
    """設定から構築したプロバイダーの順序"""

    def _fakes(self):
        return {
            "openai": FakeProvider("openai", subscores={"content": 50}),
            "gemini": FakeProvider("gemini", subscores={"content": 60}),
            "claude": FakeProvider("claude", subscores={"content": 70}),
        }

    def test_config_priority(self):
        fakes = self._fakes()
        with patch(
            "pte_scoring_core.use_cases.orchestrator.create_provider",
            side_effect=lambda name, config: fakes[name],
        ):
            orchestrator = ScoreOrchestrator(config=ScoringConfig())
        result = orchestrator.score(_speaking())
        assert result.metadata["provider"] == "openai"

    def test_request_priority_overrides_config(self):
        fakes = self._fakes()
        with patch(
            "pte_scoring_core.use_cases.orchestrator.create_provider",
            side_effect=lambda name, config: fakes[name],
        ):
            orchestrator = ScoreOrchestrator(config=ScoringConfig())
        result = orchestrator.score(_speaking(provider_priority=["claude", "openai"]))
        assert result.metadata["provider"] == "claude"
        assert fakes["openai"].calls == []

    def test_explain_priority_used_for_rationale(self):
        fakes = self._fakes()
        fakes["gemini"].rationale = "From gemini."
        with patch(
            "pte_scoring_core.use_cases.orchestrator.create_provider",
            side_effect=lambda name, config: fakes[name],
        ):
            orchestrator = ScoreOrchestrator(config=ScoringConfig())
        request = ScoringRequest(
            section=Section.READING,
            question_type="multiple_choice_single",
            payload={"selectedOption": "A", "correctOption": "A"},
            include_rationale=True,
        )
        result = orchestrator.score(request)
        assert "From gemini." in result.rationale
        assert fakes["openai"].calls == []
