"""Table-of-contents parsing for book outlines."""

import logging
import re

from document.manuscript import TocEntry

logger = logging.getLogger(__name__)

MIN_SUBTOPICS = 3

_CHAPTER_RE = re.compile(r"^\s*(?:#+\s*)?(?:\*\*)?Chapter\s+\d+\s*[:.\-]\s*(.+?)(?:\*\*)?\s*$", re.IGNORECASE)
_NUMBERED_RE = re.compile(r"^(?:#+\s*)?\d+[.):]\s+(.+)$")
_SUBTOPIC_RE = re.compile(r"^\s*[-•*·]\s+(.+)$")

FALLBACK_CHAPTERS = [
    "Foundations: Core Concepts, Terminology and Key Ideas",
    "Principles and Methods: How the Field Works",
    "Building Blocks: Components and How They Fit Together",
    "Getting Practical: Techniques, Tools and Workflows",
    "Going Deeper: Advanced Topics and Open Questions",
    "Case Studies: Real-World Applications",
    "Putting It to Work: Planning, Adoption and Change",
    "Doing It Well: Quality, Performance and Efficiency",
    "When Things Go Wrong: Troubleshooting and Recovery",
    "Looking Ahead: Future Directions and Emerging Trends",
    "Connections: How It Relates to Neighbouring Fields",
    "Measuring Success: Evaluation and Validation",
    "Risks and Responsibilities: Safety, Ethics and Security",
    "Growing Up: Scaling From Small to Large",
    "The Big Picture: Lessons, Vision and Next Steps",
]

FALLBACK_SUBTOPICS = [
    "Understanding the core concept",
    "Practical applications",
    "Common challenges and how to address them",
]


def parse_toc(raw: str) -> list[TocEntry]:
    """Parse a model-written table of contents.

    Accepts "Chapter N: Title" or "N. Title" lines followed by dash/bullet
    subtopic lines. Chapters with fewer than MIN_SUBTOPICS subtopics are
    dropped.
    """
    entries: list[TocEntry] = []
    current: TocEntry | None = None

    for line in raw.splitlines():
        if not line.strip():
            continue
        subtopic = _SUBTOPIC_RE.match(line)
        chapter = None if subtopic else (_CHAPTER_RE.match(line) or _NUMBERED_RE.match(line.strip()))
        if chapter:
            title = chapter.group(1).strip().strip("*").rstrip(":").strip()
            if title:
                current = TocEntry(title=title)
                entries.append(current)
        elif subtopic and current is not None:
            text = subtopic.group(1).strip().strip("*").strip()
            if text:
                current.subtopics.append(text)

    valid = [entry for entry in entries if len(entry.subtopics) >= MIN_SUBTOPICS]
    logger.debug("Parsed %d valid chapters out of %d", len(valid), len(entries))
    return valid


def fallback_toc(topic: str, chapter_count: int) -> list[TocEntry]:
    """Generic outline used when the model never produces a usable one."""
    return [
        TocEntry(title=f"{FALLBACK_CHAPTERS[i % len(FALLBACK_CHAPTERS)]} ({topic})", subtopics=list(FALLBACK_SUBTOPICS))
        for i in range(chapter_count)
    ]
