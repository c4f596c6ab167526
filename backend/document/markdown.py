"""Minimal markdown block parser shared by the PDF and DOCX renderers.

Handles the subset LLM replies actually use:
- Headings (# to ####)
- Fenced code blocks (```)
- Pipe tables
- Bullet and numbered lists
- Blockquotes
- Horizontal rules
- Paragraphs (consecutive non-blank lines joined with spaces)

Inline markup (**bold**, *italic*, `code`) is split into spans by
parse_inline().
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_HEADING_RE = re.compile(r"^(#{1,6})\s+(.+?)\s*#*\s*$")
_BULLET_RE = re.compile(r"^\s*[-*+•]\s+(.+)$")
_NUMBERED_RE = re.compile(r"^\s*\d+[.)]\s+(.+)$")
_RULE_RE = re.compile(r"^\s*(?:[-*_]\s*){3,}$")
_TABLE_SEPARATOR_RE = re.compile(r"^\|?\s*:?-{2,}:?\s*(\|\s*:?-{2,}:?\s*)*\|?$")
# Emphasis markers must hug their text and sit outside words, so snake_case
# names and arithmetic like "2 * 3" stay literal. $...$ math is matched first
# and passed through untouched.
_INLINE_RE = re.compile(
    r"(?P<math>\$[^$\n]+\$)"
    r"|\*\*(?!\s)(?P<strong>.+?)(?<!\s)\*\*"
    r"|(?<!\w)__(?!\s)(?P<strong_u>.+?)(?<!\s)__(?!\w)"
    r"|(?<![\w*])\*(?![\s*])(?P<em>.+?)(?<![\s*])\*(?![\w*])"
    r"|(?<!\w)_(?!\s)(?P<em_u>.+?)(?<!\s)_(?!\w)"
    r"|`(?P<code>[^`]+)`"
)


@dataclass
class Heading:
    level: int
    text: str


@dataclass
class Paragraph:
    text: str


@dataclass
class CodeBlock:
    code: str
    language: str = ""


@dataclass
class ListBlock:
    items: list[str] = field(default_factory=list)
    ordered: bool = False


@dataclass
class Quote:
    text: str


@dataclass
class Table:
    headers: list[str]
    rows: list[list[str]] = field(default_factory=list)


@dataclass
class Rule:
    pass


Block = Heading | Paragraph | CodeBlock | ListBlock | Quote | Table | Rule


@dataclass
class Span:
    text: str
    bold: bool = False
    italic: bool = False
    code: bool = False


def parse_blocks(content: str) -> list[Block]:
    """Split markdown text into a flat list of blocks."""
    blocks: list[Block] = []
    lines = content.replace("\r\n", "\n").split("\n")
    i = 0

    while i < len(lines):
        line = lines[i]
        stripped = line.strip()

        if not stripped:
            i += 1
            continue

        if stripped.startswith("```"):
            language = stripped[3:].strip()
            code_lines = []
            i += 1
            while i < len(lines) and not lines[i].strip().startswith("```"):
                code_lines.append(lines[i])
                i += 1
            blocks.append(CodeBlock(code="\n".join(code_lines).rstrip(), language=language))
            i += 1  # closing fence
            continue

        heading = _HEADING_RE.match(stripped)
        if heading:
            blocks.append(Heading(level=len(heading.group(1)), text=heading.group(2).strip()))
            i += 1
            continue

        if _RULE_RE.match(stripped):
            blocks.append(Rule())
            i += 1
            continue

        if _is_table_row(stripped) and i + 1 < len(lines) and _TABLE_SEPARATOR_RE.match(lines[i + 1].strip()):
            table = Table(headers=_split_row(stripped))
            i += 2
            while i < len(lines) and _is_table_row(lines[i].strip()):
                table.rows.append(_split_row(lines[i].strip()))
                i += 1
            blocks.append(table)
            continue

        if stripped.startswith(">"):
            quoted = []
            while i < len(lines) and lines[i].strip().startswith(">"):
                quoted.append(lines[i].strip().lstrip(">").strip())
                i += 1
            blocks.append(Quote(text=" ".join(q for q in quoted if q)))
            continue

        if _BULLET_RE.match(line) or _NUMBERED_RE.match(line):
            ordered = bool(_NUMBERED_RE.match(line))
            block = ListBlock(ordered=ordered)
            while i < len(lines):
                match = _BULLET_RE.match(lines[i]) or _NUMBERED_RE.match(lines[i])
                if not match:
                    break
                block.items.append(match.group(1).strip())
                i += 1
            blocks.append(block)
            continue

        paragraph = [stripped]
        i += 1
        while i < len(lines) and _continues_paragraph(lines[i]):
            paragraph.append(lines[i].strip())
            i += 1
        blocks.append(Paragraph(text=" ".join(paragraph)))

    return blocks


def parse_inline(text: str) -> list[Span]:
    """Split a line of text into styled spans."""
    spans: list[Span] = []
    last = 0
    for match in _INLINE_RE.finditer(text):
        kind = match.lastgroup
        if kind == "math":
            continue
        if match.start() > last:
            spans.append(Span(text[last:match.start()]))
        value = match.group(kind)
        if kind in ("strong", "strong_u"):
            spans.append(Span(value, bold=True))
        elif kind in ("em", "em_u"):
            spans.append(Span(value, italic=True))
        else:
            spans.append(Span(value, code=True))
        last = match.end()
    if last < len(text):
        spans.append(Span(text[last:]))
    return spans


def plain_text(text: str) -> str:
    """Drop inline markup, keeping the text."""
    return "".join(span.text for span in parse_inline(text))


def _continues_paragraph(line: str) -> bool:
    stripped = line.strip()
    if not stripped:
        return False
    if stripped.startswith(("```", ">", "#")):
        return False
    if _BULLET_RE.match(line) or _NUMBERED_RE.match(line) or _RULE_RE.match(stripped):
        return False
    return not _is_table_row(stripped)


def _is_table_row(line: str) -> bool:
    return line.startswith("|") and line.endswith("|") and "|" in line[1:-1]


def _split_row(line: str) -> list[str]:
    return [cell.strip() for cell in line.strip("|").split("|")]
