"""
Text-based tajweed cues attached to recitation mistakes.
Hints: makhraj, tafkhim, qalqalah, madd, ghunnah; plus per-family issue counts.
"""
from tajweed.rules import (
    extra_word_hints,
    makhraj_group,
    missing_word_hints,
    rule_issue_counts,
    substitution_hints,
)

__all__ = [
    "extra_word_hints",
    "makhraj_group",
    "missing_word_hints",
    "rule_issue_counts",
    "substitution_hints",
]
