import re
import unicodedata
from typing import List, Optional

from core.types import Token

# Tatweel, zero-width non-joiner and zero-width joiner
_INVISIBLE_RE = re.compile(r'[\u0640\u200c\u200d]')

# Harakat, tanwin, shadda, sukun, hamza/maddah marks, superscript alef and
# Quranic annotation marks (small high letters, waqf signs)
_DIACRITICS_RE = re.compile(r'[\u0610-\u061A\u064B-\u065F\u0670\u06D6-\u06DC\u06DF-\u06E8\u06EA-\u06ED]')

COARSE = "coarse"
STRICT = "strict"

_ARABIC_BLOCKS = (
    ("\u0600", "\u06FF"),
    ("\u0750", "\u077F"),
    ("\u08A0", "\u08FF"),
    ("\uFB50", "\uFDFF"),
    ("\uFE70", "\uFEFF"),
)


def _keep_letters_marks_numbers(text: str) -> str:
    return "".join(ch for ch in text if unicodedata.category(ch)[0] in "LMN")


def normalize(word: Optional[str], mode: str = COARSE) -> str:
    """
    Comparison key for a single word.

    coarse: no diacritics, only letters/marks/numbers, lowercased. Used for word
    identity and edit distance.
    strict: same but keeps the vowel marks, so two words can be checked for
    "same letters, different harakat".
    """
    if not word:
        return ""
    text = unicodedata.normalize("NFC", word)
    text = _INVISIBLE_RE.sub("", text)
    if mode != STRICT:
        text = _DIACRITICS_RE.sub("", text)
    return _keep_letters_marks_numbers(text).lower()


def split_words(text: Optional[str]) -> List[str]:
    """NFC-normalize, trim and split on any whitespace."""
    if not text:
        return []
    return unicodedata.normalize("NFC", text).split()


def tokenize(text: Optional[str]) -> List[Token]:
    """
    Word tokens with coarse comparison keys.
    Stand-alone waqf/ayah marks and punctuation carry nothing to pronounce and are skipped.
    """
    tokens = []
    for raw in split_words(text):
        key = normalize(raw, COARSE)
        if key:
            tokens.append(Token(raw=raw, normalized=key))
    return tokens


def is_arabic_letter(ch: str) -> bool:
    if _INVISIBLE_RE.match(ch) or not unicodedata.category(ch).startswith("L"):
        return False
    return any(lo <= ch <= hi for lo, hi in _ARABIC_BLOCKS)


def count_arabic_letters(text: Optional[str]) -> int:
    """Number of Arabic-script letters (marks and punctuation excluded)."""
    if not text:
        return 0
    return sum(1 for ch in unicodedata.normalize("NFC", text) if is_arabic_letter(ch))
