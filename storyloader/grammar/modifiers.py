"""Named text modifiers applied to the final output of Parser.parse."""

from __future__ import annotations

import re
from typing import Callable

Modifier = Callable[[str], str]

_ARTICLE_RE = re.compile(r"\b(a|an|A|An|AN)(\s+)([A-Za-z][\w'-]*)")
_SILENT_H = ("hour", "honest", "honor", "honour", "heir")
_CONSONANT_SOUND = ("uni", "use", "usu", "uti", "eu", "one", "once", "ewe")
_SENTENCE_START_RE = re.compile(r"(^|[.!?]\s+)([a-z])")
_SPACE_BEFORE_PUNCT_RE = re.compile(r"\s+([,.!?;:])")
_MULTI_SPACE_RE = re.compile(r"[ \t]{2,}")


def _wants_an(word: str) -> bool:
    lower = word.lower()
    if lower.startswith(_SILENT_H):
        return True
    if lower.startswith(_CONSONANT_SOUND):
        return False
    return lower[0] in "aeiou"


def english_articles(text: str) -> str:
    """Make 'a'/'an' agree with the following word."""

    def fix(match: re.Match[str]) -> str:
        article, space, word = match.groups()
        wanted = "an" if _wants_an(word) else "a"
        if article.isupper() and len(article) > 1:
            wanted = wanted.upper()
        elif article[0].isupper():
            wanted = wanted.capitalize()
        return f"{wanted}{space}{word}"

    return _ARTICLE_RE.sub(fix, text)


def english_capitalization(text: str) -> str:
    """Capitalize the first letter of each sentence."""
    return _SENTENCE_START_RE.sub(lambda m: m.group(1) + m.group(2).upper(), text)


def punctuation_cleanup(text: str) -> str:
    """Drop spaces before punctuation and collapse runs of spaces."""
    text = _SPACE_BEFORE_PUNCT_RE.sub(r"\1", text)
    return _MULTI_SPACE_RE.sub(" ", text)


BUILTIN_MODIFIERS: dict[str, Modifier] = {
    "englishArticles": english_articles,
    "englishCapitalization": english_capitalization,
    "punctuationCleanup": punctuation_cleanup,
}
