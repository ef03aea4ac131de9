"""
Deterministic scorers

Pure, offline graders for objectively checkable question types:

- Reading: multiple choice (single), multiple choice (multiple) with partial
  credit, fill in the blanks, reorder paragraphs (pairwise order agreement)
- Listening: write from dictation (word error rate + correctness)

Listening multiple choice / fill-in-blank variants reuse the reading graders.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from pte_scoring_core.domain.constants import DEFAULT_WEIGHTS, ProviderName, Section
from pte_scoring_core.domain.value_objects import CanonicalScore
from pte_scoring_core.scoring.scale_math import (
    accuracy_to_canonical,
    edit_rate_to_canonical,
    weighted_average,
)
from pte_scoring_core.scoring.text_scorers import normalize_answer, word_error_rate


def _result(
    section: Section,
    task: str,
    subscores: dict[str, int],
    rationale: str,
    weights: dict[str, float] | None = None,
    **details,
) -> CanonicalScore:
    """Assemble a deterministic CanonicalScore"""
    overall = weighted_average(subscores, weights or DEFAULT_WEIGHTS[section])
    metadata = {
        "provider": ProviderName.DETERMINISTIC.value,
        "section": section.value,
        "task": task,
    }
    metadata.update(details)
    return CanonicalScore(
        overall=overall,
        subscores=subscores,
        rationale=rationale,
        metadata=metadata,
    )


def score_single_select(
    selected_option: str,
    correct_option: str,
    section: Section = Section.READING,
) -> CanonicalScore:
    """
    Multiple choice, single answer

    Comparison is trimmed and case-insensitive. Correct scores 90, anything else 0.
    """
    is_correct = bool(normalize_answer(correct_option)) and (
        normalize_answer(selected_option) == normalize_answer(correct_option)
    )
    rationale = (
        "Selected option matches the correct answer."
        if is_correct
        else "Selected option does not match the correct answer."
    )
    return _result(
        section,
        "multiple_choice_single",
        {"correctness": accuracy_to_canonical(1.0 if is_correct else 0.0)},
        rationale,
        weights={"correctness": 1.0},
    )


def score_multi_select(
    selected_options: list[str],
    correct_options: list[str],
    section: Section = Section.READING,
) -> CanonicalScore:
    """
    Multiple choice, multiple answers, with an over-selection penalty

    ratio = max(0, TP - FP) / |Correct|, clamped to [0, 1]. An empty correct
    set scores 0.
    """
    selected = {normalize_answer(s) for s in selected_options or []}
    selected.discard("")
    correct = {normalize_answer(c) for c in correct_options or []}
    correct.discard("")

    tp = len(selected & correct)
    fp = len(selected - correct)
    if correct:
        ratio = min(1.0, max(0, tp - fp) / len(correct))
    else:
        ratio = 0.0

    rationale = (
        f"{tp} of {len(correct)} correct options selected, "
        f"{fp} incorrect selection{'s' if fp != 1 else ''} penalized."
    )
    return _result(
        section,
        "multiple_choice_multiple",
        {"correctness": accuracy_to_canonical(ratio)},
        rationale,
        weights={"correctness": 1.0},
        tp=tp,
        fp=fp,
        correct_count=len(correct),
        accuracy=round(ratio, 4),
    )


def score_fill_in_blanks(
    answers: dict,
    correct: dict,
    section: Section = Section.READING,
) -> CanonicalScore:
    """
    Fill in the blanks

    Each blank is compared after normalization (trimmed, case-insensitive,
    trailing punctuation stripped); every blank carries equal weight.
    Blank keys are matched as strings, so {1: "x"} and {"1": "x"} line up.
    """
    answers_by_key = {str(k): v for k, v in (answers or {}).items()}
    total = len(correct or {})
    hits = 0
    wrong = []
    for key, expected in (correct or {}).items():
        user = answers_by_key.get(str(key))
        if normalize_answer(user or "") == normalize_answer(expected or ""):
            hits += 1
        else:
            wrong.append({"key": str(key), "user": user, "expected": expected})

    ratio = hits / total if total else 0.0
    return _result(
        section,
        "fill_in_blanks",
        {"correctness": accuracy_to_canonical(ratio)},
        f"{hits} of {total} blanks correct.",
        weights={"correctness": 1.0},
        total=total,
        correct=hits,
        wrong=wrong,
    )


def score_reorder_paragraphs(
    user_order: list,
    correct_order: list,
    section: Section = Section.READING,
) -> CanonicalScore:
    """
    Reorder paragraphs, scored by pairwise order agreement

    Every unordered pair of items whose relative order in the user's sequence
    matches the correct sequence earns one point; accuracy is points over
    n * (n - 1) / 2. Items not in the correct order are ignored.
    """
    position = {item: i for i, item in enumerate(correct_order or [])}
    seen = set()
    filtered = []
    for item in user_order or []:
        if item in position and item not in seen:
            seen.add(item)
            filtered.append(item)

    n = len(filtered)
    if n <= 1:
        ratio = 1.0 if n == 1 and len(position) == 1 else 0.0
        return _result(
            section,
            "reorder_paragraphs",
            {"correctness": accuracy_to_canonical(ratio)},
            "Single paragraph is trivially ordered." if ratio else "Not enough paragraphs to compare.",
            weights={"correctness": 1.0},
            pairs=0,
            correct_pairs=0,
        )

    agree = 0
    total_pairs = n * (n - 1) // 2
    for i in range(n):
        for j in range(i + 1, n):
            if position[filtered[i]] < position[filtered[j]]:
                agree += 1

    ratio = agree / total_pairs
    return _result(
        section,
        "reorder_paragraphs",
        {"correctness": accuracy_to_canonical(ratio)},
        f"{agree} of {total_pairs} paragraph pairs in the correct relative order.",
        weights={"correctness": 1.0},
        pairs=total_pairs,
        correct_pairs=agree,
    )


def score_dictation(
    target_text: str,
    user_text: str | None,
    weights: dict[str, float] | None = None,
) -> CanonicalScore:
    """
    Write from dictation

    Both texts are normalized (lowercase, punctuation removed, whitespace
    collapsed) and compared with a word-level edit distance.

    - subscores.wer = edit_rate_to_canonical(edits / max(1, target tokens))
    - subscores.correctness = accuracy_to_canonical(1 - min(1, wer)), only when
      the candidate text is present
    - overall = weighted average with the listening weights
    """
    wer, edits, ref_len = word_error_rate(target_text or "", user_text or "")
    subscores = {"wer": edit_rate_to_canonical(wer)}
    if user_text is not None and target_text is not None:
        subscores["correctness"] = accuracy_to_canonical(1 - min(1.0, wer))

    words_right = max(0, ref_len - edits)
    rationale = (
        f"{edits} word edit{'s' if edits != 1 else ''} against a {ref_len}-word sentence "
        f"(WER {wer:.2f}); about {words_right} of {ref_len} words correct."
    )
    return _result(
        Section.LISTENING,
        "write_from_dictation",
        subscores,
        rationale,
        weights=weights,
        wer=round(wer, 4),
        edits=edits,
        reference_length=ref_len,
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DeterministicRoute:
    """A deterministic scorer bound to a question-type fragment"""
    section: Section
    fragment: str
    extract: Callable[[dict, Section], CanonicalScore | None]
    required: tuple[str, ...]


def _single(payload: dict, section: Section) -> CanonicalScore | None:
    selected = payload.get("selectedOption", payload.get("selected_option"))
    correct = payload.get("correctOption", payload.get("correct_option"))
    if selected is None or correct is None:
        return None
    return score_single_select(str(selected), str(correct), section)


def _multiple(payload: dict, section: Section) -> CanonicalScore | None:
    selected = payload.get("selectedOptions", payload.get("selected_options"))
    correct = payload.get("correctOptions", payload.get("correct_options"))
    if not isinstance(selected, list) or not isinstance(correct, list):
        return None
    return score_multi_select([str(s) for s in selected], [str(c) for c in correct], section)


def _blanks(payload: dict, section: Section) -> CanonicalScore | None:
    answers = payload.get("answers")
    correct = payload.get("correct")
    if not isinstance(answers, dict) or not isinstance(correct, dict):
        return None
    return score_fill_in_blanks(answers, correct, section)


def _reorder(payload: dict, section: Section) -> CanonicalScore | None:
    user = payload.get("userOrder", payload.get("user_order", payload.get("order")))
    correct = payload.get("correctOrder", payload.get("correct_order"))
    if not isinstance(user, list) or not isinstance(correct, list):
        return None
    return score_reorder_paragraphs(user, correct, section)


def _dictation(payload: dict, section: Section) -> CanonicalScore | None:
    target = payload.get("targetText", payload.get("target_text"))
    user = payload.get("userText", payload.get("user_text"))
    if not isinstance(target, str) or not isinstance(user, str):
        return None
    return score_dictation(target, user)


# Order matters: "multiple_choice_single" must not be shadowed by a broader fragment
DETERMINISTIC_ROUTES: tuple[DeterministicRoute, ...] = (
    DeterministicRoute(Section.READING, "multiple_choice_single", _single, ("selectedOption", "correctOption")),
    DeterministicRoute(Section.READING, "multiple_choice_multiple", _multiple, ("selectedOptions", "correctOptions")),
    DeterministicRoute(Section.READING, "fill_in_blanks", _blanks, ("answers", "correct")),
    DeterministicRoute(Section.READING, "reorder_paragraphs", _reorder, ("userOrder", "correctOrder")),
    DeterministicRoute(Section.LISTENING, "write_from_dictation", _dictation, ("targetText", "userText")),
    DeterministicRoute(Section.LISTENING, "wfd", _dictation, ("targetText", "userText")),
    DeterministicRoute(Section.LISTENING, "multiple_choice_single", _single, ("selectedOption", "correctOption")),
    DeterministicRoute(Section.LISTENING, "multiple_choice_multiple", _multiple, ("selectedOptions", "correctOptions")),
    DeterministicRoute(Section.LISTENING, "fill_in_blanks", _blanks, ("answers", "correct")),
)


def find_deterministic_route(section: Section, question_type: str) -> DeterministicRoute | None:
    """
    Find the deterministic scorer registered for a section / question type

    Matching is by fragment, so "reading_writing_fill_in_blanks" resolves to
    the fill-in-blanks scorer.
    """
    qt = (question_type or "").strip().lower().replace("-", "_")
    for route in DETERMINISTIC_ROUTES:
        if route.section == section and route.fragment in qt:
            return route
    return None
