"""
Mistake classification: turns an alignment edit script into typed mistakes.

- Missing  -> missing (missed_word), plus tajweed when the word needs madd/ghunnah
- Extra    -> extra (extra_word)
- Match below the similarity threshold -> substitution (incorrect_word), with
  harakat / pronunciation / tajweed tags from the first differing letter
- Match at or above the threshold -> correct, no mistake (unless the opt-in
  strict harakat check finds different vowel marks on the same letters)

Tajweed tags are textual heuristics; they never verify the audio itself.
"""
from typing import List, Optional, Sequence

from core.normalization import STRICT, normalize
from core.types import (
    DEFAULT_ENGINE_CONFIG,
    AlignmentEntry,
    EngineConfig,
    Extra,
    Match,
    Missing,
    Mistake,
    MistakeCategory,
    MistakeKind,
    TajweedRule,
)
from tajweed.rules import extra_word_hints, missing_word_hints, substitution_hints


def _differs_only_in_harakat(entry: Match) -> bool:
    if entry.expected_token.normalized != entry.detected_token.normalized:
        return False
    return normalize(entry.expected_token.raw, STRICT) != normalize(entry.detected_token.raw, STRICT)


def _classify_match(entry: Match, index: int, config: EngineConfig) -> Optional[Mistake]:
    harakat_only = _differs_only_in_harakat(entry)
    if entry.similarity >= config.match_similarity_threshold:
        if not (config.strict_harakat and harakat_only):
            return None

    spoken = entry.detected_token.raw
    expected = entry.expected_token.raw
    categories = {MistakeCategory.INCORRECT_WORD}
    if harakat_only:
        categories.add(MistakeCategory.HARAKAT)

    hints = substitution_hints(spoken, expected)
    if any(h.rule == TajweedRule.MAKHRAJ for h in hints):
        categories.add(MistakeCategory.PRONUNCIATION)
    if hints:
        categories.add(MistakeCategory.TAJWEED)

    return Mistake(
        index=index,
        kind=MistakeKind.SUBSTITUTION,
        categories=frozenset(categories),
        spoken_word=spoken,
        expected_word=expected,
        similarity=entry.similarity,
        hints=tuple(hints),
    )


def classify(
    alignment: Sequence[AlignmentEntry],
    config: Optional[EngineConfig] = None,
) -> List[Mistake]:
    """
    Walk the alignment and emit mistakes in expected-sequence order.

    Mistake.index is the position of the expected word concerned; an extra
    word gets the index of the next expected word, so indices never decrease.
    """
    config = config or DEFAULT_ENGINE_CONFIG
    mistakes: List[Mistake] = []
    expected_index = 0

    for entry in alignment:
        if isinstance(entry, Match):
            mistake = _classify_match(entry, expected_index, config)
            if mistake is not None:
                mistakes.append(mistake)
            expected_index += 1

        elif isinstance(entry, Missing):
            expected = entry.expected_token.raw
            hints = missing_word_hints(expected)
            categories = {MistakeCategory.MISSED_WORD}
            if hints:
                categories.add(MistakeCategory.TAJWEED)
            mistakes.append(Mistake(
                index=expected_index,
                kind=MistakeKind.MISSING,
                categories=frozenset(categories),
                expected_word=expected,
                hints=tuple(hints),
            ))
            expected_index += 1

        elif isinstance(entry, Extra):
            spoken = entry.detected_token.raw
            hints = extra_word_hints(spoken)
            categories = {MistakeCategory.EXTRA_WORD}
            if hints:
                categories.add(MistakeCategory.TAJWEED)
            mistakes.append(Mistake(
                index=expected_index,
                kind=MistakeKind.EXTRA,
                categories=frozenset(categories),
                spoken_word=spoken,
                hints=tuple(hints),
            ))

    return mistakes
