"""
Unit tests for edit distance, word similarity and WER/CER.
Run: python -m pytest tests/test_metrics.py -v
"""

import unittest

from core.metrics import cer, levenshtein, wer, wer_cer, word_similarity


class TestLevenshtein(unittest.TestCase):

    def test_known_distance(self):
        self.assertEqual(levenshtein("kitten", "sitting"), 3)
        self.assertEqual(levenshtein("", "abc"), 3)
        self.assertEqual(levenshtein("بسم", "بسم"), 0)

    def test_symmetric(self):
        pairs = [("kitten", "sitting"), ("", "الله"), ("الرحمن", "الرحيم"), ("قل", "كل هو")]
        for a, b in pairs:
            self.assertEqual(levenshtein(a, b), levenshtein(b, a))

    def test_word_sequences(self):
        self.assertEqual(levenshtein(["بسم", "الله"], ["بسم", "زائد", "الله"]), 1)


class TestWordSimilarity(unittest.TestCase):

    def test_empty_inputs(self):
        self.assertEqual(word_similarity("", ""), 1.0)
        self.assertEqual(word_similarity("", "بسم"), 0.0)
        self.assertEqual(word_similarity("بسم", ""), 0.0)

    def test_diacritics_ignored(self):
        self.assertEqual(word_similarity("الْحَمْدُ", "الحمد"), 1.0)

    def test_partial_similarity(self):
        self.assertAlmostEqual(word_similarity("قل", "كل"), 0.5)
        self.assertEqual(word_similarity("قل", "كتب"), 0.0)

    def test_bounds(self):
        words = ["", "بسم", "الله", "الرحمن", "a", "ًٌ", "الرحيم زائد"]
        for a in words:
            for b in words:
                sim = word_similarity(a, b)
                self.assertGreaterEqual(sim, 0.0)
                self.assertLessEqual(sim, 1.0)


class TestErrorRates(unittest.TestCase):
    REF = "بسم الله الرحمن الرحيم"

    def test_perfect(self):
        self.assertEqual(wer(self.REF, self.REF), 0.0)
        self.assertEqual(cer(self.REF, "بِسْمِ اللَّهِ الرَّحْمَٰنِ الرَّحِيمِ"), 0.0)

    def test_missing_word(self):
        w, c = wer_cer(self.REF, "بسم الله الرحيم")
        self.assertAlmostEqual(w, 0.25)
        self.assertAlmostEqual(c, 6 / 19)

    def test_empty_reference(self):
        self.assertEqual(wer("", ""), 0.0)
        self.assertEqual(wer("", "بسم"), 1.0)
        self.assertEqual(cer("", "بسم"), 1.0)

    def test_empty_hypothesis(self):
        self.assertEqual(wer(self.REF, ""), 1.0)
        self.assertEqual(cer(self.REF, None), 1.0)


if __name__ == "__main__":
    unittest.main()
