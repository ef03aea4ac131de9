"""
Text normalization and comparison helpers

Implements answer normalization, word tokenization, and word-level edit
distance used by the deterministic scorers.
"""

from __future__ import annotations

import re
import string
import unicodedata

# Punctuation stripped from the end of an answer (e.g. "hello." -> "hello")
_TRAILING_PUNCT_RE = re.compile(r"[\s" + re.escape(string.punctuation) + r"…“”‘’]+$")

# Anything that is not a letter, digit, whitespace or apostrophe
_NON_WORD_RE = re.compile(r"[^\w\s']|_", re.UNICODE)


def normalize_text(text: str) -> str:
    """
    Normalize text

    - Unicode normalization (NFKC)
    - Convert to lowercase
    - Collapse consecutive whitespace to a single space
    - Strip leading and trailing whitespace

    Args:
        text: Text to normalize

    Returns:
        Normalized text
    """
    if text is None:
        return ""
    text = unicodedata.normalize("NFKC", str(text))
    text = text.lower()
    text = re.sub(r"\s+", " ", text)
    return text.strip()


def normalize_answer(text: str) -> str:
    """
    Normalize a short answer for exact comparison

    Applies normalize_text and strips trailing punctuation, so "HELLO " and
    "hello." both normalize to "hello".
    """
    text = normalize_text(text)
    return _TRAILING_PUNCT_RE.sub("", text)


def tokenize_words(text: str) -> list[str]:
    """
    Split text into lowercase word tokens with punctuation removed

    Curly apostrophes are folded to straight ones and kept inside words
    ("don't" stays one token); stray apostrophes at word edges are dropped.

    Args:
        text: Raw text

    Returns:
        List of tokens
    """
    text = normalize_text(text).replace("’", "'").replace("‘", "'")
    text = _NON_WORD_RE.sub(" ", text)
    tokens = []
    for token in text.split():
        token = token.strip("'")
        if token:
            tokens.append(token)
    return tokens


def word_edit_distance(reference: list[str], hypothesis: list[str]) -> int:
    """
    Levenshtein distance over token sequences

    Insertions, deletions and substitutions all cost 1.

    Args:
        reference: Reference tokens
        hypothesis: Candidate tokens

    Returns:
        Minimum number of edits
    """
    m, n = len(reference), len(hypothesis)
    if m == 0:
        return n
    if n == 0:
        return m

    # Two-row dynamic programming table
    prev = list(range(n + 1))
    for i in range(1, m + 1):
        curr = [i] + [0] * n
        for j in range(1, n + 1):
            cost = 0 if reference[i - 1] == hypothesis[j - 1] else 1
            curr[j] = min(
                prev[j] + 1,         # deletion
                curr[j - 1] + 1,     # insertion
                prev[j - 1] + cost,  # substitution
            )
        prev = curr
    return prev[n]


def word_error_rate(reference_text: str, hypothesis_text: str) -> tuple[float, int, int]:
    """
    Word error rate of hypothesis_text against reference_text

    Returns:
        (wer, edits, reference token count); wer = edits / max(1, reference count)
    """
    ref = tokenize_words(reference_text)
    hyp = tokenize_words(hypothesis_text)
    edits = word_edit_distance(ref, hyp)
    return edits / max(1, len(ref)), edits, len(ref)
