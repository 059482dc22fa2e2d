"""
Recitation scoring: turns classified mistakes into bounded 0-100 scores.

- accuracy:     share of expected words recited correctly
- completeness: accuracy minus a penalty per missing word (timing score)
- fluency:      accuracy minus penalties per substitution / extra word
- overall:      mean of the above, plus the rule sub-score average when tracked

Rule sub-scores (articulation, elongation, nasalization, echo) start at 100
and lose 100 * issues / words, never dropping below the configured floor:
text heuristics cannot justify a lower rule score with any confidence.

Also provides lightweight per-word feedback for live sessions.
"""
import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

from alignment.word_alignment import align
from core.types import (
    DEFAULT_ENGINE_CONFIG,
    EngineConfig,
    Extra,
    Match,
    MetricScores,
    Mistake,
    MistakeKind,
)
from tajweed.rules import rule_issue_counts


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    """Round and clamp into [0, 100]. NaN is treated as 0."""
    if value != value:
        return 0
    return max(0, min(100, round_half_up(value)))


def rule_scores(
    mistakes: Sequence[Mistake],
    expected_token_count: int,
    config: Optional[EngineConfig] = None,
) -> Dict[str, int]:
    """Articulation / elongation / nasalization / echo sub-scores."""
    config = config or DEFAULT_ENGINE_CONFIG
    counts = rule_issue_counts(mistakes)
    if expected_token_count <= 0:
        return {family: 100 for family in counts}
    out = {}
    for family, issues in counts.items():
        score = round_half_up(100 - issues / expected_token_count * 100)
        out[family] = max(config.minimum_rule_score_floor, min(100, score))
    return out


def score(
    mistakes: Sequence[Mistake],
    expected_token_count: int,
    config: Optional[EngineConfig] = None,
) -> MetricScores:
    """
    Aggregate mistakes into MetricScores. Never raises; an empty reference is
    scored as a degenerate one-word verse (no division by zero).

    Harakat-only substitutions (opt-in strict check) keep the word counted as
    correct and only cost fluency.
    """
    config = config or DEFAULT_ENGINE_CONFIG
    expected_token_count = max(0, int(expected_token_count))
    total = expected_token_count or 1

    missing = sum(1 for m in mistakes if m.kind == MistakeKind.MISSING)
    extras = sum(1 for m in mistakes if m.kind == MistakeKind.EXTRA)
    harakat = sum(1 for m in mistakes if m.is_harakat_only)
    substitutions = sum(1 for m in mistakes if m.kind == MistakeKind.SUBSTITUTION) - harakat

    correct = max(0, expected_token_count - substitutions - missing)
    accuracy = clamp_score(correct / total * 100)
    completeness = clamp_score(accuracy - config.missing_penalty_weight * missing)
    fluency = clamp_score(
        accuracy
        - config.substitution_penalty_weight * substitutions
        - config.extra_penalty_weight * extras
        - config.harakat_penalty_weight * harakat
    )

    if not config.track_rule_scores:
        overall = clamp_score((accuracy + completeness + fluency) / 3)
        return MetricScores(accuracy, completeness, fluency, overall)

    rules = rule_scores(mistakes, expected_token_count, config)
    rule_average = clamp_score(sum(rules.values()) / len(rules))
    overall = clamp_score((accuracy + completeness + fluency + rule_average) / 4)
    return MetricScores(
        accuracy=accuracy,
        completeness=completeness,
        fluency=fluency,
        overall=overall,
        articulation=rules["articulation"],
        elongation=rules["elongation"],
        nasalization=rules["nasalization"],
        echo=rules["echo"],
    )


def get_word_feedback(
    reference_text: str,
    partial_transcript: str,
    config: Optional[EngineConfig] = None,
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """
    Lightweight word-level feedback for live sessions: no classification or scoring.

    Returns (feedback, extras):
        feedback: one entry per reference word
            {"expected": str, "detected": str | None, "status": "correct"|"incorrect"|"missing", "similarity": float}
        extras: {"word": str} for each transcribed word with no reference counterpart.
    """
    config = config or DEFAULT_ENGINE_CONFIG
    feedback: List[Dict[str, Any]] = []
    extras: List[Dict[str, Any]] = []
    for entry in align(reference_text or "", partial_transcript or ""):
        if isinstance(entry, Match):
            status = "correct" if entry.similarity >= config.match_similarity_threshold else "incorrect"
            feedback.append({
                "expected": entry.expected_token.raw,
                "detected": entry.detected_token.raw,
                "status": status,
                "similarity": round(entry.similarity, 4),
            })
        elif isinstance(entry, Extra):
            extras.append({"word": entry.detected_token.raw})
        else:
            feedback.append({
                "expected": entry.expected_token.raw,
                "detected": None,
                "status": "missing",
                "similarity": 0.0,
            })
    return feedback, extras
