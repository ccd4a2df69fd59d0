"""
Canonicalization of recognized speech for keyword matching.
"""

import re
import unicodedata

_WHITESPACE = re.compile(r"\s+")
# Applied after NFKC, so full-width forms have already become ASCII.
_TERMINAL_PUNCTUATION = re.compile(r"[.,!?。、…‥｡､]+")

_KATAKANA_START = 0x30A1  # ァ
_KATAKANA_END = 0x30F6  # ヶ
_KANA_OFFSET = 0x60
_ITERATION_MARKS = {"ヽ": "ゝ", "ヾ": "ゞ"}


def _fold_kana(text: str) -> str:
    chars = []
    for char in text:
        code = ord(char)
        if _KATAKANA_START <= code <= _KATAKANA_END:
            chars.append(chr(code - _KANA_OFFSET))
        else:
            chars.append(_ITERATION_MARKS.get(char, char))
    return "".join(chars)


def normalize(text: str) -> str:
    """
    Reduce an utterance to the form used for substring matching.

    Width variants are unified first (NFKC), then whitespace and sentence
    punctuation are removed, case is folded, the text is recomposed and
    katakana is folded to hiragana so that "タロ" and "たろ" compare equal.

    The function is idempotent: ``normalize(normalize(x)) == normalize(x)``.
    """
    text = unicodedata.normalize("NFKC", text)
    text = _WHITESPACE.sub("", text)
    text = _TERMINAL_PUNCTUATION.sub("", text)
    text = text.casefold()
    # Removals can leave a kana next to a combining sound mark.
    text = unicodedata.normalize("NFKC", text)
    return _fold_kana(text)
