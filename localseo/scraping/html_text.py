"""
Markup to lightweight markdown text normalization.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, NavigableString

_DROPPED_TAGS = ("script", "style", "noscript", "template", "svg")
_HEADING_LEVELS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4}

# Entities that survive as literal text when pages double-escape them.
_LITERAL_ENTITIES = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&auml;": "ä",
    "&ouml;": "ö",
    "&uuml;": "ü",
    "&Auml;": "Ä",
    "&Ouml;": "Ö",
    "&Uuml;": "Ü",
    "&szlig;": "ß",
}

_INLINE_WHITESPACE = re.compile(r"[ \t\r\f\v]+")
_EXCESS_BLANK_LINES = re.compile(r"\n{3,}")


def _inline_text(tag) -> str:
    return _INLINE_WHITESPACE.sub(" ", tag.get_text(" ")).strip()


def html_to_text(html: str) -> str:
    """
    Convert page markup to compact markdown-like text.

    Headings h1-h4 become `#` lines, paragraphs are blank-line separated,
    list items become `- ` lines and links become `[text](href)`. Absolute
    links without text become `(href)`.
    """

    if not html or not html.strip():
        return ""

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(list(_DROPPED_TAGS)):
        if not tag.decomposed:
            tag.decompose()

    for br in soup.find_all("br"):
        br.replace_with(NavigableString("\n"))

    for anchor in soup.find_all("a"):
        text = _inline_text(anchor)
        href = (anchor.get("href") or "").strip()
        if text and href:
            anchor.replace_with(NavigableString(f"[{text}]({href})"))
        elif href.lower().startswith(("http://", "https://")):
            # icon-only links (social footers) keep their target
            anchor.replace_with(NavigableString(f" ({href}) "))
        else:
            anchor.replace_with(NavigableString(text))

    for name, level in _HEADING_LEVELS.items():
        for heading in soup.find_all(name):
            text = _inline_text(heading)
            heading.replace_with(NavigableString(f"\n\n{'#' * level} {text}\n\n" if text else "\n"))

    for item in soup.find_all("li"):
        text = _inline_text(item)
        item.replace_with(NavigableString(f"\n- {text}\n" if text else "\n"))

    for paragraph in soup.find_all("p"):
        text = paragraph.get_text()
        paragraph.replace_with(NavigableString(f"\n\n{text.strip()}\n\n"))

    raw = soup.get_text()
    for entity, replacement in _LITERAL_ENTITIES.items():
        raw = raw.replace(entity, replacement)
    raw = raw.replace("\xa0", " ")

    lines = [_INLINE_WHITESPACE.sub(" ", line).strip() for line in raw.split("\n")]
    text = "\n".join(lines)
    return _EXCESS_BLANK_LINES.sub("\n\n", text).strip()
