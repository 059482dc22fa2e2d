"""
Session summary assembly: the result object handed to the UI and to the
hasanat/XP ledger after each transcription event.

create_session_summary runs the whole pipeline:
    tokenize -> align -> classify -> score -> assemble
Each call builds a new summary; callers replace their stored one wholesale.
"""
import logging
import re
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence

from alignment.word_alignment import align
from core.mistakes import classify
from core.normalization import count_arabic_letters, tokenize
from core.scoring import round_half_up, score
from core.types import (
    DEFAULT_ENGINE_CONFIG,
    MISTAKE_CATEGORY_ORDER,
    AnalysisProfile,
    BreakdownEntry,
    EngineConfig,
    MetricScores,
    Mistake,
    MistakeKind,
    SessionSummary,
)

logger = logging.getLogger(__name__)

NO_RECITATION_FEEDBACK = "We could not capture any recitation in this session."

# (minimum overall score, message), checked top to bottom
FEEDBACK_LADDER = (
    (90, "Beautiful recitation. Keep up the precise pacing and clarity."),
    (75, "Strong recitation overall. Review the highlighted words to polish them further."),
    (60, "Good effort. Focus on the flagged words to steady your recitation."),
)
REVISIT_FEEDBACK = "Let's revisit the verse slowly and pay attention to each highlighted mistake."

_DEFAULT_ERROR_MESSAGES = {
    MistakeKind.MISSING: "Expected word was not articulated in the recitation.",
    MistakeKind.EXTRA: "An extra word or sound was detected beyond the written ayah.",
    MistakeKind.SUBSTITUTION: "Pronunciation differed from the expected wording.",
}

ANALYSIS_ENGINES: Dict[str, Dict[str, Any]] = {
    "openai": {
        "description": "Hosted Whisper transcription with word-level alignment.",
        "stack": ("Whisper API speech recognition", "Word-level alignment", "Recitation feedback heuristics"),
    },
    "local": {
        "description": "Server-side Whisper model with word-level alignment.",
        "stack": ("Local Whisper speech recognition", "Word-level alignment", "Recitation feedback heuristics"),
    },
    "on-device": {
        "description": "Client-side speech recognition paired with lightweight word alignment.",
        "stack": ("Browser speech recognition", "Word-level alignment", "Recitation feedback heuristics"),
    },
}


def build_analysis_profile(engine: str = "on-device", latency_ms: Optional[int] = None) -> AnalysisProfile:
    meta = ANALYSIS_ENGINES.get(engine, ANALYSIS_ENGINES["on-device"])
    return AnalysisProfile(
        engine=engine,
        latency_ms=latency_ms,
        description=meta["description"],
        stack=tuple(meta["stack"]),
    )


def qualitative_feedback(transcription: str, overall: int) -> str:
    if not transcription.strip():
        return NO_RECITATION_FEEDBACK
    for minimum, message in FEEDBACK_LADDER:
        if overall >= minimum:
            return message
    return REVISIT_FEEDBACK


def reward_points(accuracy: int, expected_token_count: int, config: Optional[EngineConfig] = None) -> int:
    """Hasanat-style reward: grows with accuracy and verse length, never below the floor."""
    config = config or DEFAULT_ENGINE_CONFIG
    total = expected_token_count or 1
    earned = round_half_up(accuracy / 100 * total * config.reward_per_word_factor)
    return max(config.reward_floor, earned)


def mistake_breakdown(mistakes: Sequence[Mistake]) -> List[BreakdownEntry]:
    """Count per category, in display order, zero counts omitted."""
    counts = Counter(category for m in mistakes for category in m.categories)
    return [BreakdownEntry(c, counts[c]) for c in MISTAKE_CATEGORY_ORDER if counts[c] > 0]


def error_messages(mistakes: Sequence[Mistake]) -> List[Dict[str, Any]]:
    errors = []
    for m in mistakes:
        if m.hints:
            message = " ".join(h.message for h in m.hints)
        else:
            message = _DEFAULT_ERROR_MESSAGES[m.kind]
        errors.append({
            "kind": m.kind.value,
            "message": message,
            "expected": m.expected_word,
            "transcribed": m.spoken_word,
            "categories": m.to_dict()["categories"],
        })
    return errors


def word_spans(transcription: str) -> List[Dict[str, Any]]:
    """Character spans of each transcribed word (for highlighting)."""
    return [
        {"word": match.group(0), "start": match.start(), "end": match.end()}
        for match in re.finditer(r"\S+", transcription)
    ]


def assemble(
    transcription: str,
    expected_text: str,
    mistakes: Sequence[Mistake],
    metrics: MetricScores,
    duration_seconds: Optional[float] = None,
    ayah_id: Optional[str] = None,
    analysis: Optional[AnalysisProfile] = None,
    config: Optional[EngineConfig] = None,
) -> SessionSummary:
    """Combine mistakes and metrics into the external SessionSummary."""
    transcription = (transcription or "").strip()
    expected_text = (expected_text or "").strip()
    expected_count = len(tokenize(expected_text))

    return SessionSummary(
        transcription=transcription,
        expected_text=expected_text,
        mistakes=tuple(mistakes),
        mistake_breakdown=tuple(mistake_breakdown(mistakes)),
        metrics=metrics,
        qualitative_feedback=qualitative_feedback(transcription, metrics.overall),
        reward_points=reward_points(metrics.accuracy, expected_count, config),
        letter_count=count_arabic_letters(expected_text or transcription),
        errors=tuple(error_messages(mistakes)),
        words=tuple(word_spans(transcription)),
        analysis=analysis,
        duration_seconds=duration_seconds,
        ayah_id=ayah_id,
    )


def create_session_summary(
    transcription: str,
    expected_text: str,
    duration_seconds: Optional[float] = None,
    ayah_id: Optional[str] = None,
    analysis: Optional[AnalysisProfile] = None,
    config: Optional[EngineConfig] = None,
) -> SessionSummary:
    """
    Full pipeline for one transcription event. Never raises on odd input:
    empty or noisy text degrades to zero scores / empty mistake lists.
    """
    config = config or DEFAULT_ENGINE_CONFIG
    transcription = (transcription or "").strip()
    expected_text = (expected_text or "").strip()

    alignment = align(expected_text, transcription)
    mistakes = classify(alignment, config)
    metrics = score(mistakes, len(tokenize(expected_text)), config)
    logger.debug(
        "Summary: %d mistakes, accuracy=%d overall=%d", len(mistakes), metrics.accuracy, metrics.overall
    )
    return assemble(
        transcription,
        expected_text,
        mistakes,
        metrics,
        duration_seconds=duration_seconds,
        ayah_id=ayah_id,
        analysis=analysis or build_analysis_profile(),
        config=config,
    )
