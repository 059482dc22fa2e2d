"""
Unit tests for Arabic text normalization and tokenization.
Run: python -m pytest tests/test_normalization.py -v
"""

import unittest

from core.normalization import (
    COARSE,
    STRICT,
    count_arabic_letters,
    is_arabic_letter,
    normalize,
    split_words,
    tokenize,
)


class TestNormalize(unittest.TestCase):

    def test_strips_harakat_in_coarse_mode(self):
        self.assertEqual(normalize("الْحَمْدُ"), "الحمد")
        self.assertEqual(normalize("لِلَّهِ", COARSE), "لله")

    def test_strict_mode_keeps_harakat(self):
        self.assertNotEqual(normalize("الْحَمْدُ", STRICT), "الحمد")
        self.assertEqual(normalize("الحمد", STRICT), "الحمد")

    def test_superscript_alef_removed(self):
        self.assertEqual(normalize("الرَّحْمَٰنِ"), "الرحمن")

    def test_tatweel_removed(self):
        self.assertEqual(normalize("الحمـــد"), "الحمد")

    def test_punctuation_and_case(self):
        self.assertEqual(normalize("Hello,"), "hello")
        self.assertEqual(normalize("الله،"), "الله")

    def test_empty_and_none(self):
        self.assertEqual(normalize(""), "")
        self.assertEqual(normalize(None), "")
        self.assertEqual(normalize("ًٌٍ"), "")


class TestTokenize(unittest.TestCase):

    def test_split_on_any_whitespace(self):
        self.assertEqual(split_words("  بسم\tالله\nالرحمن  "), ["بسم", "الله", "الرحمن"])
        self.assertEqual(split_words(""), [])

    def test_tokens_keep_raw_and_key(self):
        tokens = tokenize("بِسْمِ اللَّهِ")
        self.assertEqual([t.raw for t in tokens], ["بِسْمِ", "اللَّهِ"])
        self.assertEqual([t.normalized for t in tokens], ["بسم", "الله"])

    def test_skips_tokens_without_letters(self):
        tokens = tokenize("بسم ، الله ...")
        self.assertEqual([t.normalized for t in tokens], ["بسم", "الله"])

    def test_empty_text(self):
        self.assertEqual(tokenize(""), [])
        self.assertEqual(tokenize(None), [])


class TestLetterCount(unittest.TestCase):

    def test_counts_only_arabic_letters(self):
        self.assertEqual(count_arabic_letters("بِسْمِ"), 3)
        self.assertEqual(count_arabic_letters("بِسْمِ اللَّهِ الرَّحْمَٰنِ الرَّحِيمِ"), 19)

    def test_latin_and_empty(self):
        self.assertEqual(count_arabic_letters("abc 123"), 0)
        self.assertEqual(count_arabic_letters(""), 0)
        self.assertFalse(is_arabic_letter("a"))
        self.assertTrue(is_arabic_letter("ب"))


if __name__ == "__main__":
    unittest.main()
