"""
Rubric Catalog

Maps each test section to its rubric dimensions and default weights, and
builds the judgment prompts sent to LLM-backed providers.

Prompt kinds:
- score: speaking / writing, returns numeric dimensions on 0-90 plus rationale
- explain: reading / listening, returns a rationale only

Prompts are built from the arguments alone, so identical input always gives
byte-identical output.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from pte_scoring_core.domain.constants import DEFAULT_WEIGHTS, SECTION_DIMENSIONS, Section
from pte_scoring_core.domain.errors import InvalidRequest

PROMPT_KIND_SCORE = "score"
PROMPT_KIND_EXPLAIN = "explain"


@dataclass(frozen=True)
class PromptPair:
    """System and user instructions for one judgment call"""
    system: str
    user: str


def get_weights(section: Section) -> dict[str, float]:
    """Return a copy of the default dimension weights for a section"""
    return dict(DEFAULT_WEIGHTS.get(Section(section), {}))


def dimensions_for(section: Section) -> tuple[str, ...]:
    """Return the rubric dimensions for a section"""
    return SECTION_DIMENSIONS.get(Section(section), ())


def _schema_skeleton(fields: tuple[str, ...], include_rationale: bool) -> list[str]:
    """Literal JSON skeleton listing each numeric field and the rationale slot"""
    lines = ["{", '  "overall": number,']
    for name in fields:
        lines.append(f'  "{name}": number,')
    lines.append(f'  "rationale": "{"string" if include_rationale else ""}"')
    lines.append("}")
    return lines


def _build_score_prompt(section: Section, args: dict) -> PromptPair:
    """Prompt for speaking / writing rubric scoring"""
    fields = dimensions_for(section)
    include_rationale = bool(args.get("include_rationale"))
    question_type = args.get("question_type", "")
    label = section.value.upper()

    system_parts = [
        "You are a certified Pearson PTE Academic examiner.",
        f"Score the {label} response strictly per PTE criteria on a 0-90 scale for each dimension.",
        "Return ONLY strict JSON (no markdown) with keys: overall, " + ", ".join(fields) + ", rationale.",
        "Each dimension must be an integer from 0 to 90. overall is weighted per PTE norms.",
    ]
    if include_rationale:
        system_parts.append("Be concise. Keep rationale under 5 sentences.")
    else:
        system_parts.append("Leave rationale as an empty string.")

    user_parts = [f"Task: {question_type}"]
    if section == Section.SPEAKING:
        reference = args.get("reference_text")
        user_parts.append(
            f"Reference/Prompt Text: {reference}" if reference else "No reference text provided."
        )
        user_parts.append(f'Transcript: """{args.get("transcript", "")}"""')
    else:
        prompt = args.get("prompt")
        user_parts.append(f'Prompt: """{prompt}"""' if prompt else "No prompt text provided.")
        user_parts.append(f'Student Response: """{args.get("text", "")}"""')
    user_parts.append("")
    user_parts.append("JSON schema:")
    user_parts.extend(_schema_skeleton(fields, include_rationale))

    return PromptPair(system=" ".join(system_parts), user="\n".join(user_parts))


def _build_reading_explanation(args: dict) -> PromptPair:
    """Prompt for a reading explanation (rationale only)"""
    system = " ".join([
        "You are a PTE Reading coach. Explain succinctly why the correct answers are correct.",
        "Keep response under 5 sentences. No personal data. Neutral tone.",
        "Return ONLY JSON with key: rationale (string, 1-3 sentences).",
    ])
    options = args.get("options") or []
    user = "\n".join([
        f"Task: {args.get('question_type', '')}",
        f'Question: """{args.get("question") or ""}"""',
        f"Options: {json.dumps(list(options), ensure_ascii=False)}",
        f"Correct: {json.dumps(list(args.get('correct') or []), ensure_ascii=False)}",
        f"UserSelected: {json.dumps(list(args.get('user_selected') or []), ensure_ascii=False)}",
        "",
        "JSON schema:",
        '{ "rationale": "string" }',
    ])
    return PromptPair(system=system, user=user)


def _build_listening_explanation(args: dict) -> PromptPair:
    """Prompt for a listening explanation (rationale only)"""
    system = " ".join([
        "You are a PTE Listening coach. Provide a brief explanation and key differences.",
        "Return ONLY JSON with key: rationale.",
        "Keep under 4 sentences.",
    ])
    parts = [f"Task: {args.get('question_type', '')}"]
    if args.get("transcript"):
        parts.append(f'Audio Transcript: """{args["transcript"]}"""')
    if args.get("target_text"):
        parts.append(f'Target Text: """{args["target_text"]}"""')
    if args.get("user_text"):
        parts.append(f'User Text: """{args["user_text"]}"""')
    parts.extend(["", "JSON schema:", '{ "rationale": "string" }'])
    return PromptPair(system=system, user="\n".join(parts))


def build_prompt(section: Section, kind: str, args: dict) -> PromptPair:
    """
    Build the judgment prompt for a section

    Args:
        section: Test section
        kind: "score" (speaking / writing) or "explain" (reading / listening)
        args: Prompt arguments (question_type, transcript, reference_text, text,
              prompt, question, options, correct, user_selected, target_text,
              user_text, include_rationale)

    Returns:
        PromptPair

    Raises:
        InvalidRequest: When the section / kind combination is not supported
    """
    section = Section(section)
    if kind == PROMPT_KIND_SCORE and section in (Section.SPEAKING, Section.WRITING):
        return _build_score_prompt(section, args)
    if kind == PROMPT_KIND_EXPLAIN and section == Section.READING:
        return _build_reading_explanation(args)
    if kind == PROMPT_KIND_EXPLAIN and section == Section.LISTENING:
        return _build_listening_explanation(args)
    raise InvalidRequest(f"No prompt for section={section.value}, kind={kind}")
