"""
Edit-distance primitives and ASR evaluation metrics.

- levenshtein: unit-cost insert/delete/substitute distance (rapidfuzz).
- word_similarity: 1 - distance / longer length, on coarse-normalized words.
- wer / cer: word and character error rate of a transcription against the verse.
"""
from typing import Sequence, Tuple, Union

from rapidfuzz.distance import Levenshtein

from core.normalization import COARSE, normalize, split_words


def levenshtein(a: Union[str, Sequence[str]], b: Union[str, Sequence[str]]) -> int:
    """
    Classic Levenshtein distance. Works on strings (per character) and on
    lists of words (per word).
    """
    return Levenshtein.distance(a, b)


def word_similarity(a: str, b: str) -> float:
    """
    Similarity in [0, 1] of two words after coarse normalization.
    Two empty keys are identical (1.0); empty vs non-empty shares nothing (0.0).
    """
    norm_a = normalize(a, COARSE)
    norm_b = normalize(b, COARSE)
    if not norm_a and not norm_b:
        return 1.0
    if not norm_a or not norm_b:
        return 0.0
    distance = levenshtein(norm_a, norm_b)
    return 1.0 - distance / max(len(norm_a), len(norm_b))


def _comparison_words(text: str) -> list:
    return [w for w in (normalize(raw, COARSE) for raw in split_words(text)) if w]


def wer(reference: str, hypothesis: str) -> float:
    """
    Word Error Rate: (S + D + I) / N where N = number of reference words.
    Returns value in [0, +inf); 0 = perfect match.
    """
    ref_words = _comparison_words(reference)
    hyp_words = _comparison_words(hypothesis or "")
    if not ref_words:
        return 0.0 if not hyp_words else 1.0
    return levenshtein(ref_words, hyp_words) / len(ref_words)


def cer(reference: str, hypothesis: str) -> float:
    """
    Character Error Rate over the words joined without spaces (standard for Arabic).
    Returns value in [0, +inf); 0 = perfect match.
    """
    ref_chars = "".join(_comparison_words(reference))
    hyp_chars = "".join(_comparison_words(hypothesis or ""))
    if not ref_chars:
        return 0.0 if not hyp_chars else 1.0
    return levenshtein(ref_chars, hyp_chars) / len(ref_chars)


def wer_cer(reference: str, hypothesis: str) -> Tuple[float, float]:
    """Compute both WER and CER for reference vs hypothesis."""
    return wer(reference, hypothesis), cer(reference, hypothesis)
