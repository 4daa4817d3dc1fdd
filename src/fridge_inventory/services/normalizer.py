"""Ingredient name normalization used for catalog comparison keys."""

import unicodedata

_HIRAGANA = (
    "あいうえお"
    "かきくけこ"
    "がぎぐげご"
    "さしすせそ"
    "ざじずぜぞ"
    "たちつてと"
    "だぢづでど"
    "なにぬねの"
    "はひふへほ"
    "ばびぶべぼ"
    "ぱぴぷぺぽ"
    "まみむめも"
    "やゆよ"
    "らりるれろ"
    "わゐゑをん"
    "ゃゅょ"
    "っ"
)
_KATAKANA = (
    "アイウエオ"
    "カキクケコ"
    "ガギグゲゴ"
    "サシスセソ"
    "ザジズゼゾ"
    "タチツテト"
    "ダヂヅデド"
    "ナニヌネノ"
    "ハヒフヘホ"
    "バビブベボ"
    "パピプペポ"
    "マミムメモ"
    "ヤユヨ"
    "ラリルレロ"
    "ワヰヱヲン"
    "ャュョ"
    "ッ"
)
KANA_TABLE = str.maketrans(_HIRAGANA, _KATAKANA)

_FULLWIDTH_OFFSET = 0xFEE0
_FULLWIDTH_RANGES = (
    (ord("０"), ord("９")),
    (ord("Ａ"), ord("Ｚ")),
    (ord("ａ"), ord("ｚ")),
)
WIDTH_TABLE: dict[int, int] = {
    code: code - _FULLWIDTH_OFFSET
    for start, end in _FULLWIDTH_RANGES
    for code in range(start, end + 1)
}
WIDTH_TABLE[ord("　")] = ord(" ")


def normalize(raw: str | None) -> str:
    """Return the comparison key for a free-text ingredient name.

    Steps run in a fixed order: trim, fold full-width alphanumerics and the
    ideographic space, map hiragana to katakana, drop punctuation and
    whitespace, then lowercase.
    """
    if raw is None:
        return ""
    text = str(raw).strip()
    if not text:
        return ""
    text = text.translate(WIDTH_TABLE)
    text = text.translate(KANA_TABLE)
    text = "".join(char for char in text if not _is_separator(char))
    return text.lower()


def _is_separator(char: str) -> bool:
    """Return True for punctuation and whitespace code points."""
    if char.isspace():
        return True
    category = unicodedata.category(char)
    return category.startswith(("P", "Z"))
