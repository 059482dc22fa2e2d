"""
Text-based tajweed cues for recitation mistakes.

Works on the written words only (expected vs. transcribed), not on audio, so
every hint is a heuristic pointer for the student, not an acoustic verdict:
- Makhraj: first differing letter comes from another articulation point
- Tafkhim: the expected letter is one of the seven heavy letters
- Qalqalah: the expected letter is one of the five echo letters
- Madd: the word carries a long vowel that was skipped or shortened
- Ghunnah: the word carries a doubled nasal (shadda on noon/meem)

Also counts rule issues per family for the rule sub-scores.
"""
import re
import unicodedata
from typing import Dict, List, Optional, Sequence, Tuple

from core.normalization import COARSE, normalize
from core.types import Mistake, MistakeKind, TajweedHint, TajweedRule

# Articulation points. Noon and meem are listed twice; the first group wins.
MAKHRAJ_GROUPS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("throat", ("ء", "ه", "ع", "ح", "غ", "خ")),
    ("tongue_tip", ("ت", "د", "ط", "ث", "ذ", "ظ", "ص", "ز", "س", "ن", "ر", "ل")),
    ("tongue_middle", ("ج", "ش", "ي")),
    ("tongue_back", ("ق", "ك")),
    ("lips", ("ب", "م", "ف", "و")),
    ("nasal", ("ن", "م")),
)

_LETTER_GROUP: Dict[str, str] = {}
for _group, _letters in MAKHRAJ_GROUPS:
    for _letter in _letters:
        _LETTER_GROUP.setdefault(_letter, _group)

HEAVY_LETTERS = frozenset(["ص", "ض", "ط", "ظ", "ق", "غ", "خ"])
QALQALAH_LETTERS = frozenset(["ق", "ط", "ب", "ج", "د"])
MADD_LETTERS = frozenset(["ا", "و", "ي", "ى", "آ"])

# Noon or meem followed (after any other vowel marks) by a shadda
_DOUBLED_NASAL_RE = re.compile(r'[نم][\u064B-\u0650\u0652-\u065F\u0670]*\u0651')

# Rule families used by the sub-scores
RULE_FAMILIES: Dict[str, Tuple[TajweedRule, ...]] = {
    "articulation": (TajweedRule.MAKHRAJ, TajweedRule.TAFKHIM),
    "elongation": (TajweedRule.MADD,),
    "nasalization": (TajweedRule.GHUNNAH,),
    "echo": (TajweedRule.QALQALAH,),
}


def makhraj_group(letter: str) -> Optional[str]:
    """Articulation group of a base letter, or None for letters outside the table."""
    return _LETTER_GROUP.get(letter)


def needs_madd(word: str) -> bool:
    """True when a long-vowel letter follows another letter in the word."""
    letters = normalize(word, COARSE)
    return any(ch in MADD_LETTERS for ch in letters[1:])


def needs_ghunnah(word: str) -> bool:
    """True when the word has a doubled noon or meem (shadda)."""
    if not word:
        return False
    return bool(_DOUBLED_NASAL_RE.search(unicodedata.normalize("NFC", word)))


def first_letter_difference(spoken: str, expected: str) -> Optional[Tuple[str, str]]:
    """
    First position where the two (normalized) words differ.
    Returns (spoken_letter, expected_letter); a side that ran out is "".
    None when the words are equal.
    """
    for index in range(max(len(spoken), len(expected))):
        spoken_letter = spoken[index] if index < len(spoken) else ""
        expected_letter = expected[index] if index < len(expected) else ""
        if spoken_letter != expected_letter:
            return spoken_letter, expected_letter
    return None


def missing_word_hints(expected_word: str) -> List[TajweedHint]:
    hints = []
    if needs_madd(expected_word):
        hints.append(TajweedHint(
            TajweedRule.MADD, "Madd: Maintain elongation on the long vowel that was skipped."
        ))
    if needs_ghunnah(expected_word):
        hints.append(TajweedHint(
            TajweedRule.GHUNNAH, "Ghunnah: Sustain nasalization on the doubled م or ن in the omitted word."
        ))
    return hints


def substitution_hints(spoken_word: str, expected_word: str) -> List[TajweedHint]:
    """Hints for a misread word, keyed on the first letter that differs."""
    spoken = normalize(spoken_word, COARSE)
    expected = normalize(expected_word, COARSE)
    hints: List[TajweedHint] = []

    difference = first_letter_difference(spoken, expected)
    if difference and difference[1]:
        spoken_letter, expected_letter = difference
        expected_group = makhraj_group(expected_letter)
        spoken_group = makhraj_group(spoken_letter) if spoken_letter else None
        if expected_group and expected_group != spoken_group:
            area = expected_group.replace("_", " ")
            hints.append(TajweedHint(
                TajweedRule.MAKHRAJ, f"Makhraj: Articulate the letter from the {area} area."
            ))
        if expected_letter in HEAVY_LETTERS:
            hints.append(TajweedHint(
                TajweedRule.TAFKHIM, f'Tafkhim: Keep the letter "{expected_letter}" heavy during pronunciation.'
            ))
        if expected_letter in QALQALAH_LETTERS:
            hints.append(TajweedHint(
                TajweedRule.QALQALAH, f'Qalqalah: Add the echo/bounce when pronouncing "{expected_letter}".'
            ))

    if needs_madd(expected_word) and len(spoken) < len(expected):
        hints.append(TajweedHint(TajweedRule.MADD, "Madd: Preserve the required elongation for long vowels."))
    if needs_ghunnah(expected_word) and not needs_ghunnah(spoken_word):
        hints.append(TajweedHint(TajweedRule.GHUNNAH, "Ghunnah: Maintain the nasal sound on doubled م or ن."))
    return hints


def extra_word_hints(spoken_word: str) -> List[TajweedHint]:
    spoken = normalize(spoken_word, COARSE)
    if spoken and spoken[0] in HEAVY_LETTERS:
        return [TajweedHint(
            TajweedRule.TAFKHIM, "Tafkhim: Ensure added letters do not introduce unnecessary heavy sounds."
        )]
    return []


def rule_issue_counts(mistakes: Sequence[Mistake]) -> Dict[str, float]:
    """
    Count rule issues per family. A mistake counts at most once per family.
    A substitution without any hint counts half an articulation issue and every
    missing word half an elongation issue.
    """
    counts = {family: 0.0 for family in RULE_FAMILIES}
    for mistake in mistakes:
        rules = {hint.rule for hint in mistake.hints}
        for family, family_rules in RULE_FAMILIES.items():
            if rules.intersection(family_rules):
                counts[family] += 1
        if not mistake.hints and mistake.kind == MistakeKind.SUBSTITUTION and not mistake.is_harakat_only:
            counts["articulation"] += 0.5
        if mistake.kind == MistakeKind.MISSING:
            counts["elongation"] += 0.5
    return counts
