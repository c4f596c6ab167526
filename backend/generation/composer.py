"""Drive the LLM through a book or paper outline and assemble the manuscript.

Units are generated sequentially: each book chapter sees the table of
contents, each paper section sees the tail of the sections before it.
"""

import logging

from document.manuscript import Manuscript, TocEntry, Unit
from generation.jobs import GenerationJob
from generation.outline import fallback_toc, parse_toc
from generation.prompts import (
    BOOK_SYSTEM_PROMPT,
    RESEARCH_CONTEXT_CHARS,
    RESEARCH_SECTIONS,
    RESEARCH_SYSTEM_PROMPT,
    chapter_prompt,
    conclusion_prompt,
    research_section_prompt,
    toc_prompt,
)
from generation.text import clean_ai_text, drop_leading_heading
from llm.client import LLMClient, LLMError

logger = logging.getLogger(__name__)

TOC_ATTEMPTS = 3


async def write_book(llm: LLMClient, topic: str, chapter_count: int, job: GenerationJob) -> Manuscript:
    """Outline, chapters and conclusion for a book of ``chapter_count`` chapters."""
    job.update(stage="outline", completed_units=0, total_units=chapter_count + 2)
    entries = await _outline(llm, topic, chapter_count, job)
    toc_text = "\n".join(
        f"Chapter {n}: {entry.title}\n" + "\n".join(f"   - {s}" for s in entry.subtopics)
        for n, entry in enumerate(entries, start=1)
    )
    job.update(stage="writing", completed_units=1)

    units: list[Unit] = []
    for number, entry in enumerate(entries, start=1):
        job.raise_if_cancelled()
        logger.info("Document %s: chapter %d/%d %r", job.document_id, number, len(entries), entry.title)
        reply = await llm.complete(
            [
                {"role": "system", "content": BOOK_SYSTEM_PROMPT},
                {"role": "user", "content": toc_prompt(topic, chapter_count)},
                {"role": "assistant", "content": toc_text},
                {"role": "user", "content": chapter_prompt(topic, number, entry, [e.title for e in entries[:number - 1]])},
            ],
            max_tokens=3500,
            temperature=0.4,
        )
        units.append(Unit(heading=f"Chapter {number}: {entry.title}", body=drop_leading_heading(clean_ai_text(reply))))
        job.update(completed_units=number + 1)

    job.raise_if_cancelled()
    logger.info("Document %s: conclusion", job.document_id)
    reply = await llm.complete(
        [
            {"role": "system", "content": BOOK_SYSTEM_PROMPT},
            {"role": "user", "content": conclusion_prompt(topic, entries)},
        ],
        max_tokens=2000,
        temperature=0.4,
    )
    units.append(Unit(heading="Conclusion", body=drop_leading_heading(clean_ai_text(reply))))
    job.update(completed_units=len(entries) + 2)

    return Manuscript(title=topic, units=units, toc=entries)


async def _outline(llm: LLMClient, topic: str, chapter_count: int, job: GenerationJob) -> list[TocEntry]:
    for attempt in range(1, TOC_ATTEMPTS + 1):
        job.raise_if_cancelled()
        try:
            reply = await llm.complete(
                [
                    {"role": "system", "content": BOOK_SYSTEM_PROMPT},
                    {"role": "user", "content": toc_prompt(topic, chapter_count)},
                ],
                max_tokens=1000,
                temperature=0.3,
            )
        except LLMError as e:
            logger.warning("Document %s: outline attempt %d failed: %s", job.document_id, attempt, e)
            continue
        entries = parse_toc(clean_ai_text(reply))
        if len(entries) >= chapter_count:
            return entries[:chapter_count]
        logger.warning(
            "Document %s: outline attempt %d had %d usable chapters, need %d",
            job.document_id, attempt, len(entries), chapter_count,
        )

    logger.warning("Document %s: using fallback outline for %r", job.document_id, topic)
    return fallback_toc(topic, chapter_count)


async def write_research_paper(llm: LLMClient, topic: str, job: GenerationJob) -> Manuscript:
    """Fixed section template with running context between sections."""
    job.update(stage="writing", completed_units=0, total_units=len(RESEARCH_SECTIONS))
    units: list[Unit] = []

    for number, section in enumerate(RESEARCH_SECTIONS, start=1):
        job.raise_if_cancelled()
        logger.info("Document %s: section %d/%d %s", job.document_id, number, len(RESEARCH_SECTIONS), section.heading)
        context = "\n\n".join(f"## {u.heading}\n{u.body}" for u in units)[-RESEARCH_CONTEXT_CHARS:]
        reply = await llm.complete(
            [
                {"role": "system", "content": RESEARCH_SYSTEM_PROMPT},
                {"role": "user", "content": research_section_prompt(topic, section, context)},
            ],
            max_tokens=section.max_tokens,
            temperature=0.6,
        )
        units.append(Unit(heading=section.heading, body=drop_leading_heading(clean_ai_text(reply))))
        job.update(completed_units=number)

    return Manuscript(title=topic, units=units)
