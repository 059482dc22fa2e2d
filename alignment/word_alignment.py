"""
Word-level alignment of the expected verse against a transcription.

Wagner-Fischer edit distance over words instead of characters. The cost of
pairing expected word i with detected word j is 1 - word_similarity, so a
slightly misheard word still pairs up as a (low cost) match, while a word with
no resemblance is cheaper to drop (cost 1) and insert (cost 1).

Does not need audio or ASR; operates on the two texts only.
"""
import logging
from typing import List

from core.metrics import word_similarity
from core.normalization import tokenize
from core.types import AlignmentEntry, Extra, Match, Missing, Token

logger = logging.getLogger(__name__)

MATCH = "match"
DELETE = "delete"
INSERT = "insert"


def align_tokens(expected: List[Token], detected: List[Token]) -> List[AlignmentEntry]:
    """
    Align two token lists. Returns the edit script in forward order.

    Ties are broken match > delete > insert, which avoids spurious
    missing/extra pairs when both options cost the same.
    """
    m, n = len(expected), len(detected)

    # dp[i][j] = min cost to align expected[:i] with detected[:j]
    dp = [[0.0] * (n + 1) for _ in range(m + 1)]
    action = [[MATCH] * (n + 1) for _ in range(m + 1)]
    similarity = [[0.0] * n for _ in range(m)]

    for i in range(1, m + 1):
        dp[i][0] = float(i)
        action[i][0] = DELETE
    for j in range(1, n + 1):
        dp[0][j] = float(j)
        action[0][j] = INSERT

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            sim = word_similarity(expected[i - 1].raw, detected[j - 1].raw)
            similarity[i - 1][j - 1] = sim

            best = dp[i - 1][j - 1] + (1.0 - sim)
            choice = MATCH
            delete_cost = dp[i - 1][j] + 1.0
            if delete_cost < best:
                best, choice = delete_cost, DELETE
            insert_cost = dp[i][j - 1] + 1.0
            if insert_cost < best:
                best, choice = insert_cost, INSERT

            dp[i][j] = best
            action[i][j] = choice

    # Backtrack from dp[m][n] to dp[0][0]
    entries: List[AlignmentEntry] = []
    i, j = m, n
    while i > 0 or j > 0:
        step = action[i][j]
        if i > 0 and j > 0 and step == MATCH:
            entries.append(Match(expected[i - 1], detected[j - 1], similarity[i - 1][j - 1]))
            i -= 1
            j -= 1
        elif i > 0 and (j == 0 or step == DELETE):
            entries.append(Missing(expected[i - 1]))
            i -= 1
        else:
            entries.append(Extra(detected[j - 1]))
            j -= 1
    entries.reverse()

    logger.debug("Aligned %d expected / %d detected words, cost=%.3f", m, n, dp[m][n])
    return entries


def align(expected_text: str, detected_text: str) -> List[AlignmentEntry]:
    """
    Align the reference verse with a transcription, word by word.

    Args:
        expected_text: Canonical verse text (any diacritics, Uthmani marks).
        detected_text: Transcription; may be empty, partial or noisy.

    Returns:
        List of Match / Missing / Extra entries. Every expected token appears
        exactly once (as Match or Missing) and every detected token exactly
        once (as Match or Extra), both in their original order.
    """
    return align_tokens(tokenize(expected_text), tokenize(detected_text))
