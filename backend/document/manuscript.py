"""Assembled document structure handed from the generator to the renderers."""

from dataclasses import dataclass, field


@dataclass
class TocEntry:
    title: str
    subtopics: list[str] = field(default_factory=list)


@dataclass
class Unit:
    """One chapter or paper section, body in markdown."""

    heading: str
    body: str


@dataclass
class Manuscript:
    title: str
    units: list[Unit] = field(default_factory=list)
    toc: list[TocEntry] = field(default_factory=list)
    subtitle: str = "Generated by Bookgen.ai"
    notice: str = "Caution: AI can make mistakes."
