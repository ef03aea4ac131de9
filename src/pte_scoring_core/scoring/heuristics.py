"""
Heuristic fallback scoring

Rough, offline estimates used when no provider produced a usable signal.
They are derived from observable properties of the response only (length,
speaking rate, filler words, lexical variety) and are intentionally
conservative.
"""

from __future__ import annotations

from pte_scoring_core.domain.constants import ProviderName, Section
from pte_scoring_core.domain.value_objects import CanonicalScore
from pte_scoring_core.rubric_catalog import get_weights
from pte_scoring_core.scoring.scale_math import clamp_canonical, weighted_average
from pte_scoring_core.scoring.text_scorers import tokenize_words

FILLERS = frozenset({
    "um", "uh", "er", "ah", "like", "hmm", "mmm", "uhh", "umm", "kinda", "sorta",
})

# Two-word filler phrases
FILLER_PHRASES = frozenset({("you", "know"), ("sort", "of"), ("kind", "of")})

# Speaking rate assumed when no duration is supplied (words per minute)
ASSUMED_WPM = 130.0


def filler_rate(words: list[str]) -> float:
    """Share of tokens that are filler words or filler phrases"""
    if not words:
        return 0.0
    count = 0
    for i, w in enumerate(words):
        if w in FILLERS:
            count += 1
        if i + 1 < len(words) and (w, words[i + 1]) in FILLER_PHRASES:
            count += 1
    return count / len(words)


def _rough_pronunciation(wpm: float, fillers: float) -> float:
    score = 70
    if wpm < 70:
        score -= 10
    if wpm > 170:
        score -= 10
    score -= min(20, round(fillers * 100))
    return score


def _rough_fluency(wpm: float, fillers: float) -> float:
    score = 72
    if wpm < 80:
        score -= 12
    if wpm > 180:
        score -= 8
    score -= min(25, round(fillers * 120))
    return score


def _reference_recall(words: list[str], reference: list[str]) -> float:
    """Share of distinct reference words that appear in the response"""
    ref = set(reference)
    if not ref:
        return 0.0
    return len(ref & set(words)) / len(ref)


def heuristic_speaking(
    transcript: str,
    reference_text: str | None = None,
    duration_ms: float | None = None,
) -> CanonicalScore:
    """
    Rough speaking estimate from the transcript

    - pronunciation / fluency favour a moderate speaking rate and few fillers
    - content uses recall of the reference words when a reference exists,
      otherwise speech density
    """
    words = tokenize_words(transcript)
    fillers = filler_rate(words)

    if duration_ms and duration_ms > 0:
        wpm = len(words) / max(duration_ms / 60000.0, 0.001)
    else:
        wpm = ASSUMED_WPM if words else 0.0

    if not words or (duration_ms is not None and 0 < duration_ms < 500):
        content = 20
    elif reference_text:
        content = 20 + 55 * _reference_recall(words, tokenize_words(reference_text))
    else:
        content = 68
        if wpm < 80:
            content -= 12
        if wpm > 190:
            content -= 10

    subscores = {
        "content": clamp_canonical(content),
        "pronunciation": clamp_canonical(_rough_pronunciation(wpm, fillers) if words else 0),
        "fluency": clamp_canonical(_rough_fluency(wpm, fillers) if words else 0),
    }
    return CanonicalScore(
        overall=weighted_average(subscores, get_weights(Section.SPEAKING)),
        subscores=subscores,
        rationale="Heuristic scoring (AI unavailable).",
        metadata={
            "provider": ProviderName.HEURISTIC.value,
            "section": Section.SPEAKING.value,
            "word_count": len(words),
            "words_per_minute": round(wpm, 1),
            "filler_rate": round(fillers, 3),
        },
    )


def heuristic_writing(text: str, prompt: str | None = None) -> CanonicalScore:
    """
    Rough writing estimate from the response text

    - content grows with length up to a plateau, and with prompt-word overlap
      when a prompt is given
    - vocabulary follows the type/token ratio
    - structure follows the number of sentences
    """
    words = tokenize_words(text)
    word_count = len(words)
    if word_count == 0:
        subscores = {"content": 0, "structure": 0, "vocabulary": 0}
    else:
        content = 25 + min(40, word_count / 5)
        if prompt:
            content += 10 * _reference_recall(words, tokenize_words(prompt))
        variety = len(set(words)) / word_count
        vocabulary = 30 + 40 * min(1.0, variety / 0.6)
        sentences = max(1, sum((text or "").count(ch) for ch in ".!?"))
        structure = 35 + min(30, sentences * 5)
        subscores = {
            "content": clamp_canonical(content),
            "structure": clamp_canonical(structure),
            "vocabulary": clamp_canonical(vocabulary),
        }
    return CanonicalScore(
        overall=weighted_average(subscores, get_weights(Section.WRITING)),
        subscores=subscores,
        rationale="Heuristic scoring (AI unavailable).",
        metadata={
            "provider": ProviderName.HEURISTIC.value,
            "section": Section.WRITING.value,
            "word_count": word_count,
        },
    )
