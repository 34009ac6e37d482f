"""
Normalize a title to the prefix used by title-initial confirms.
"""

import re
import unicodedata

TITLE_INITIAL_LENGTH = 3

_BRACKET_PREFIXES = [
    re.compile(p)
    for p in (
        r"^【[^】]*】",
        r"^\([^)]*\)",
        r"^\[[^\]]*\]",
        r"^\{[^}]*\}",
        r"^＜[^＞]*＞",
        r"^<[^>]*>",
        r"^「[^」]*」",
        r"^『[^』]*』",
        r"^（[^）]*）",
        r"^［[^］]*］",
        r"^｛[^｝]*｝",
    )
]

_SYMBOL_PREFIXES = [
    re.compile(r"^[!\"#$%&'()*+,\-./:;<=>?@\[\\\]^_`{|}~]"),
    re.compile(r"^[！＂＃＄％＆＇（）＊＋，－．／：；＜＝＞？＠［＼］＾＿｀｛｜｝～]"),
    re.compile(r"^[★☆◆◇■□・…〜ー—–]"),
]

_LEADING_SPACE = re.compile(r"^[\s　]+")


def _strip_prefixes(text: str, patterns, max_rounds: int) -> str:
    """Remove at most max_rounds leading matches of any pattern, trimming spaces after each."""
    for _ in range(max_rounds):
        for pattern in patterns:
            if pattern.match(text):
                text = pattern.sub("", text, count=1)
                break
        else:
            break
        text = _LEADING_SPACE.sub("", text)
    return text


def normalize_title_initial(title: str, length: int = TITLE_INITIAL_LENGTH) -> str:
    """
    Leading characters of a title after NFKC normalization.

    Strips up to 3 bracketed prefixes (e.g. "【new】", "(R18)") and up to 10
    leading symbols. Returns "?" when nothing is left.
    """
    if not isinstance(title, str):
        return "?"
    normalized = unicodedata.normalize("NFKC", title)
    normalized = _strip_prefixes(normalized, _BRACKET_PREFIXES, 3)
    normalized = _strip_prefixes(normalized, _SYMBOL_PREFIXES, 10)
    trimmed = normalized.strip()
    if not trimmed:
        return "?"
    return trimmed[:length]
