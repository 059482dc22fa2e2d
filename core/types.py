"""
Value types shared by the recitation engine: tokens, alignment entries,
mistakes, metric scores and the session summary.

Everything here is immutable; the pipeline always returns new values.
`to_dict()` methods produce flat JSON-serializable records for the API.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union


class MistakeCategory(str, Enum):
    """Closed set of mistake categories, declared in display order."""
    MISSED_WORD = "missed_word"
    INCORRECT_WORD = "incorrect_word"
    EXTRA_WORD = "extra_word"
    HARAKAT = "harakat"
    PRONUNCIATION = "pronunciation"
    TAJWEED = "tajweed"


MISTAKE_CATEGORY_ORDER: List[MistakeCategory] = list(MistakeCategory)

MISTAKE_CATEGORY_META: Dict[MistakeCategory, Dict[str, str]] = {
    MistakeCategory.MISSED_WORD: {
        "label": "Missed words",
        "description": "Expected ayah tokens that were not recited during the session.",
    },
    MistakeCategory.INCORRECT_WORD: {
        "label": "Incorrect words",
        "description": "Spoken tokens that differ from the Mushaf text.",
    },
    MistakeCategory.EXTRA_WORD: {
        "label": "Extra words",
        "description": "Words or sounds added beyond the written ayah.",
    },
    MistakeCategory.HARAKAT: {
        "label": "Vowel marks",
        "description": "Correct letters recited with different short vowels.",
    },
    MistakeCategory.PRONUNCIATION: {
        "label": "Pronunciation",
        "description": "A letter was articulated from a different point of articulation.",
    },
    MistakeCategory.TAJWEED: {
        "label": "Tajweed cues",
        "description": "Text-based hints on elongation, nasalization, heaviness or echo.",
    },
}


class MistakeKind(str, Enum):
    MISSING = "missing"
    EXTRA = "extra"
    SUBSTITUTION = "substitution"


class TajweedRule(str, Enum):
    """Rule families a tajweed hint can point at."""
    MAKHRAJ = "makhraj"
    TAFKHIM = "tafkhim"
    MADD = "madd"
    GHUNNAH = "ghunnah"
    QALQALAH = "qalqalah"


@dataclass(frozen=True)
class Token:
    """A whitespace token: raw surface form plus its coarse comparison key."""
    raw: str
    normalized: str


@dataclass(frozen=True)
class Match:
    expected_token: Token
    detected_token: Token
    similarity: float


@dataclass(frozen=True)
class Missing:
    expected_token: Token


@dataclass(frozen=True)
class Extra:
    detected_token: Token


AlignmentEntry = Union[Match, Missing, Extra]


@dataclass(frozen=True)
class TajweedHint:
    rule: TajweedRule
    message: str


def _ordered(categories) -> List[str]:
    return [c.value for c in MISTAKE_CATEGORY_ORDER if c in categories]


@dataclass(frozen=True)
class Mistake:
    """
    One discrepancy between recitation and reference.

    index: position in the expected token sequence (extra words carry the
    index of the next expected word, so the UI can place them).
    """
    index: int
    kind: MistakeKind
    categories: FrozenSet[MistakeCategory]
    spoken_word: Optional[str] = None
    expected_word: Optional[str] = None
    similarity: Optional[float] = None
    hints: Tuple[TajweedHint, ...] = ()

    @property
    def is_harakat_only(self) -> bool:
        """Same letters, different vowel marks: a lower-severity substitution."""
        return self.kind == MistakeKind.SUBSTITUTION and MistakeCategory.HARAKAT in self.categories

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "index": self.index,
            "kind": self.kind.value,
            "categories": _ordered(self.categories),
        }
        if self.spoken_word is not None:
            out["spoken_word"] = self.spoken_word
        if self.expected_word is not None:
            out["expected_word"] = self.expected_word
        if self.similarity is not None:
            out["similarity"] = round(self.similarity, 4)
        out["tajweed_hints"] = [{"rule": h.rule.value, "message": h.message} for h in self.hints]
        return out


@dataclass(frozen=True)
class MetricScores:
    """Integer scores in [0, 100]; rule sub-scores are None when not tracked."""
    accuracy: int
    completeness: int
    fluency: int
    overall: int
    articulation: Optional[int] = None
    elongation: Optional[int] = None
    nasalization: Optional[int] = None
    echo: Optional[int] = None

    @property
    def rule_scores(self) -> Dict[str, int]:
        scores = {
            "articulation": self.articulation,
            "elongation": self.elongation,
            "nasalization": self.nasalization,
            "echo": self.echo,
        }
        return {k: v for k, v in scores.items() if v is not None}

    def to_dict(self) -> Dict[str, int]:
        out = {
            "accuracy": self.accuracy,
            "completeness": self.completeness,
            "fluency": self.fluency,
            "overall": self.overall,
        }
        out.update(self.rule_scores)
        return out


@dataclass(frozen=True)
class AnalysisProfile:
    """Which transcription engine produced the text the summary was built on."""
    engine: str
    latency_ms: Optional[int]
    description: str
    stack: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engine": self.engine,
            "latency_ms": self.latency_ms,
            "description": self.description,
            "stack": list(self.stack),
        }


@dataclass(frozen=True)
class BreakdownEntry:
    category: MistakeCategory
    count: int

    def to_dict(self) -> Dict[str, Any]:
        meta = MISTAKE_CATEGORY_META[self.category]
        return {
            "category": self.category.value,
            "label": meta["label"],
            "description": meta["description"],
            "count": self.count,
        }


@dataclass(frozen=True)
class SessionSummary:
    """External result of one transcription event; replaced wholesale by callers."""
    transcription: str
    expected_text: str
    mistakes: Tuple[Mistake, ...]
    mistake_breakdown: Tuple[BreakdownEntry, ...]
    metrics: MetricScores
    qualitative_feedback: str
    reward_points: int
    letter_count: int
    errors: Tuple[Dict[str, Any], ...] = ()
    words: Tuple[Dict[str, Any], ...] = ()
    analysis: Optional[AnalysisProfile] = None
    duration_seconds: Optional[float] = None
    ayah_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transcription": self.transcription,
            "expected_text": self.expected_text,
            "mistakes": [m.to_dict() for m in self.mistakes],
            "mistake_breakdown": [b.to_dict() for b in self.mistake_breakdown],
            "metrics": self.metrics.to_dict(),
            "qualitative_feedback": self.qualitative_feedback,
            "reward_points": self.reward_points,
            "letter_count": self.letter_count,
            "errors": [dict(e) for e in self.errors],
            "words": [dict(w) for w in self.words],
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "duration_seconds": self.duration_seconds,
            "ayah_id": self.ayah_id,
        }


@dataclass(frozen=True)
class EngineConfig:
    """
    Tunables for classification, scoring and rewards.

    The threshold, floor and penalty weights are empirical defaults, to be
    tuned against real recitation samples.
    """
    match_similarity_threshold: float = 0.75
    missing_penalty_weight: float = 10.0
    substitution_penalty_weight: float = 5.0
    extra_penalty_weight: float = 4.0
    harakat_penalty_weight: float = 2.0
    minimum_rule_score_floor: int = 45
    reward_floor: int = 5
    reward_per_word_factor: float = 4.0
    # Flag words that differ only in vowel marks (ASR output rarely carries harakat)
    strict_harakat: bool = False
    track_rule_scores: bool = True


DEFAULT_ENGINE_CONFIG = EngineConfig()
