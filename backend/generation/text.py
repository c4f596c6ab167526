"""Cleanup of generated markdown before it is assembled and rendered."""

import re

_TOPIC_PREFIX_RE = re.compile(r"^(generate|create|write)( me)? (a (book|research paper|paper) )?(about |on )?", re.IGNORECASE)
_GREETING_RE = re.compile(
    r"^(?:Hi|Hello|Hey|Sure|Certainly|Here is|Here's)\b[^\n]{0,120}[:!][ \t]*(?:\n+|$)", re.IGNORECASE
)
_LAYOUT_TAG_RE = re.compile(r"</?(?:header|footer|figure|figcaption)[^>]*>", re.IGNORECASE)
_TOC_LINE_RE = re.compile(r"^\s*#*\s*Table of Contents\s*$", re.IGNORECASE | re.MULTILINE)
_DIVIDER_RE = re.compile(r"^[=_~]{5,}\s*$", re.MULTILINE)
_TRAILING_STAR_RE = re.compile(r"[ \t]+\*[ \t]*$", re.MULTILINE)
_LEADING_HEADING_RE = re.compile(r"^\s*#{1,2}\s+[^\n]*\n?")


def normalize_topic(prompt: str) -> str:
    """Strip request phrasing ("write me a book about ...") from a prompt."""
    topic = _TOPIC_PREFIX_RE.sub("", prompt.strip()).strip()
    return topic or prompt.strip()


def clean_ai_text(text: str) -> str:
    """Remove chatter and layout artefacts from a model reply."""
    if not text:
        return ""
    clean = _GREETING_RE.sub("", text.strip(), count=1)
    clean = _LAYOUT_TAG_RE.sub("", clean)
    clean = _TOC_LINE_RE.sub("", clean)
    clean = _DIVIDER_RE.sub("", clean)
    clean = _TRAILING_STAR_RE.sub("", clean)
    clean = clean.replace("\\$", "$")
    clean = re.sub(r"\n{3,}", "\n\n", clean)
    return clean.strip()


def drop_leading_heading(text: str) -> str:
    """Drop a leading title heading (# or ##); the renderer prints the unit heading itself."""
    return _LEADING_HEADING_RE.sub("", text, count=1).strip()
