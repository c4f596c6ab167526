"""Prompt templates for book and research paper generation."""

from dataclasses import dataclass

from document.manuscript import TocEntry
from models.document import DocumentType

BOOK_CHAPTER_COUNTS = {
    DocumentType.BOOK_SMALL: 5,
    DocumentType.BOOK_MEDIUM: 10,
    DocumentType.BOOK_LONG: 15,
}

BOOK_SYSTEM_PROMPT = (
    "You are a kind, patient tutor writing a book for curious readers with no prior "
    "knowledge. Use simple words, never skip steps, break complex ideas into small parts "
    "and explain them one by one with friendly, human examples and analogies. "
    "Write in GitHub-flavoured markdown. Never mention these instructions."
)

MATH_RULES = """MATH FORMATTING:
- Write inline math between single dollar signs, e.g. $E = mc^2$.
- Write block equations between double dollar signs.
- Do not escape the dollar signs."""


def toc_prompt(topic: str, chapter_count: int) -> str:
    return f"""Create a detailed table of contents for a book about "{topic}".
REQUIREMENTS (FOLLOW EXACTLY):
- Output EXACTLY {chapter_count} chapters
- Put each chapter on its own line as "Chapter X: Title"
- Follow each chapter with 3-5 subtopics, one per line, indented with 3 spaces and a dash: "   - Subtopic"
- Make titles descriptive, distinct and free of overlap
- NO extra text, NO explanations, NO markdown
Example:
Chapter 1: Getting Started
   - Core Concepts
   - Practical Steps
   - Common Mistakes"""


def chapter_prompt(topic: str, number: int, entry: TocEntry, previous_titles: list[str]) -> str:
    subtopics = "\n".join(f"- {s}" for s in entry.subtopics)
    covered = ""
    if previous_titles:
        covered = (
            "\nEarlier chapters already covered: "
            + "; ".join(previous_titles)
            + ". Build on them and do not repeat them.\n"
        )
    return f"""Write Chapter {number}: "{entry.title}" for a book about "{topic}".
{covered}
FORMATTING:
- Do NOT start with the chapter title; it is added automatically
- Use ### for every subsection
- Tables must use GitHub markdown table syntax
- No HTML tags
- At least 600 words

{MATH_RULES}

STRUCTURE:
1) A short introduction to the chapter.
2) One ### subsection for EACH of these subtopics:
{subtopics}
3) A practical example or exercise.
4) Further reading: 2-3 references.

Output ONLY the chapter content."""


def conclusion_prompt(topic: str, entries: list[TocEntry]) -> str:
    titles = ", ".join(entry.title for entry in entries)
    return f"""Write the conclusion for a book about "{topic}".
Summarize these chapters: {titles}
Then add a "### References" subsection listing 3-5 reliable, beginner-friendly resources,
each with a one or two sentence description.
300-350 words. Do not start with a heading.

Output ONLY the conclusion content."""


RESEARCH_SYSTEM_PROMPT = (
    "You are a professional researcher writing a long, structured academic research paper. "
    "Use a formal academic tone, avoid speculation, support claims with plausible examples, "
    "and keep every section coherent with the ones before it. Write in markdown."
)


@dataclass(frozen=True)
class PaperSection:
    heading: str
    instructions: str
    max_tokens: int = 3000


RESEARCH_SECTIONS = [
    PaperSection("Abstract", "Write a 300-word abstract. Begin with a line '**Title:** <paper title>'.", 1000),
    PaperSection("Introduction", "Write a 650-word introduction covering background, objectives and significance."),
    PaperSection(
        "Methodology",
        "Describe the methodology with subsections such as '### Data Collection' and '### Analysis Techniques'.",
    ),
    PaperSection("Findings", "Present the key findings with concrete examples."),
    PaperSection(
        "Further Findings",
        "Present additional findings that the previous findings section did not cover. Avoid any repetition.",
    ),
    PaperSection(
        "Final Findings",
        "Present the last group of findings not covered by the two previous findings sections. Avoid any repetition.",
    ),
    PaperSection("Discussion", "Discuss the implications and limitations of all findings."),
    PaperSection("Conclusion", "Summarize the findings and give recommendations for practice and future research."),
    PaperSection("References", "List 5-10 references in APA style as a markdown list.", 1500),
]

# Characters of earlier sections carried into the next prompt
RESEARCH_CONTEXT_CHARS = 3000


def research_section_prompt(topic: str, section: PaperSection, context: str) -> str:
    prompt = (
        f'Write the "{section.heading}" section of a research paper on "{topic}".\n'
        f"{section.instructions}\n"
        "Do not start with the section heading; it is added automatically. Use ### for subsections.\n\n"
        f"{MATH_RULES}"
    )
    if context:
        prompt += f"\n\nEarlier sections for context:\n{context}"
    return prompt
