"""
Unit tests for word-level alignment (Wagner-Fischer over words).
Run: python -m pytest tests/test_alignment.py -v
"""

import unittest
from unittest.mock import patch

from alignment.word_alignment import align
from core.normalization import tokenize
from core.types import Extra, Match, Missing

BASMALA = "بِسْمِ اللَّهِ الرَّحْمَٰنِ الرَّحِيمِ"


def _kinds(entries):
    return [type(e).__name__ for e in entries]


class TestAlignmentIdentity(unittest.TestCase):

    def test_same_text_only_matches(self):
        for text in (BASMALA, "قُلْ هُوَ اللَّهُ أَحَدٌ", "رب العالمين"):
            entries = align(text, text)
            self.assertEqual(len(entries), len(tokenize(text)))
            for entry in entries:
                self.assertIsInstance(entry, Match)
                self.assertEqual(entry.similarity, 1.0)

    def test_diacritics_do_not_break_matches(self):
        entries = align(BASMALA, "بسم الله الرحمن الرحيم")
        self.assertEqual(_kinds(entries), ["Match"] * 4)


class TestAlignmentEdits(unittest.TestCase):

    def test_missing_word_in_middle(self):
        entries = align(BASMALA, "بسم الرحمن الرحيم")
        self.assertEqual(_kinds(entries), ["Match", "Missing", "Match", "Match"])
        self.assertEqual(entries[1].expected_token.normalized, "الله")

    def test_extra_word_at_end(self):
        entries = align("رَبِّ الْعَالَمِينَ", "رب العالمين زائد")
        self.assertEqual(_kinds(entries), ["Match", "Match", "Extra"])
        self.assertEqual(entries[2].detected_token.raw, "زائد")

    def test_dissimilar_word_pairs_as_substitution(self):
        # one low-similarity match (cost 1) beats missing + extra (cost 2)
        entries = align("قل", "كتب")
        self.assertEqual(len(entries), 1)
        self.assertIsInstance(entries[0], Match)
        self.assertEqual(entries[0].similarity, 0.0)

    def test_empty_sides(self):
        self.assertEqual(align("", ""), [])
        self.assertTrue(all(isinstance(e, Missing) for e in align(BASMALA, "")))
        self.assertTrue(all(isinstance(e, Extra) for e in align("", "بسم الله")))


class TestAlignmentCoverage(unittest.TestCase):
    """Every expected token appears once as Match/Missing, every detected one as Match/Extra."""

    CASES = [
        (BASMALA, "بسم الرحمن الرحيم زائد"),
        (BASMALA, "زائد"),
        ("قُلْ هُوَ اللَّهُ أَحَدٌ", "كل هو الله احد الصمد"),
        ("الحمد لله", "لله الحمد"),
        ("", "بسم"),
        (BASMALA, ""),
    ]

    def test_coverage(self):
        for expected, detected in self.CASES:
            entries = align(expected, detected)
            exp = [e.expected_token for e in entries if isinstance(e, (Match, Missing))]
            det = [e.detected_token for e in entries if isinstance(e, (Match, Extra))]
            self.assertEqual(exp, tokenize(expected))
            self.assertEqual(det, tokenize(detected))


class TestAlignmentTieBreaks(unittest.TestCase):
    """Equal-cost paths resolve match > delete > insert."""

    def test_match_preferred_over_delete(self):
        # pairing هو with كتب and dropping قل costs 2, same as the alternatives; the pairing wins
        entries = align("قل هو", "كتب")
        self.assertEqual(_kinds(entries), ["Missing", "Match"])
        self.assertEqual(entries[0].expected_token.normalized, "قل")
        self.assertEqual(entries[1].expected_token.normalized, "هو")
        self.assertEqual(entries[1].detected_token.raw, "كتب")

    def test_match_preferred_when_all_three_tie(self):
        # swapped words: two substitutions cost 2, as does missing + match + extra
        entries = align("قل هو", "هو قل")
        self.assertEqual(_kinds(entries), ["Match", "Match"])
        self.assertEqual([e.similarity for e in entries], [0.0, 0.0])

    def test_delete_preferred_over_insert(self):
        # with the pairing priced out, delete and insert tie at the last cell;
        # delete is taken there, so the extra word comes first in forward order
        with patch("alignment.word_alignment.word_similarity", return_value=-2.0):
            entries = align("قل", "كتب")
        self.assertEqual(_kinds(entries), ["Extra", "Missing"])
        self.assertEqual(entries[0].detected_token.raw, "كتب")
        self.assertEqual(entries[1].expected_token.normalized, "قل")


if __name__ == "__main__":
    unittest.main()
