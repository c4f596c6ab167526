"""Tests for generation.outline and generation.text cleanup helpers."""

from generation.outline import FALLBACK_SUBTOPICS, fallback_toc, parse_toc
from generation.text import clean_ai_text, drop_leading_heading, normalize_topic


class TestParseToc:
    def test_chapter_lines_with_subtopics(self):
        raw = (
            "Chapter 1: Origins of Tea\n   - Legends\n   - Early cultivation\n   - Tea in ritual\n"
            "Chapter 2: The Tea Trade\n   - Caravans\n   - Clipper ships\n   - Tea taxes\n"
        )
        entries = parse_toc(raw)
        assert [e.title for e in entries] == ["Origins of Tea", "The Tea Trade"]
        assert entries[0].subtopics == ["Legends", "Early cultivation", "Tea in ritual"]

    def test_numbered_and_bold_variants(self):
        raw = (
            "**Chapter 1: Origins**\n* Legends\n* Cultivation\n* Ritual\n"
            "2. Trade\n- Caravans\n- Ships\n- Taxes\n"
        )
        assert [e.title for e in parse_toc(raw)] == ["Origins", "Trade"]

    def test_chapters_with_too_few_subtopics_are_dropped(self):
        raw = "Chapter 1: Thin\n   - Only one\nChapter 2: Full\n   - a\n   - b\n   - c\n"
        assert [e.title for e in parse_toc(raw)] == ["Full"]

    def test_unparseable_reply(self):
        assert parse_toc("I cannot help with that.") == []


class TestFallbackToc:
    def test_count_and_subtopics(self):
        entries = fallback_toc("tea", 10)
        assert len(entries) == 10
        assert all(e.subtopics == FALLBACK_SUBTOPICS for e in entries)
        assert "(tea)" in entries[0].title

    def test_more_chapters_than_templates(self):
        assert len(fallback_toc("tea", 20)) == 20


class TestNormalizeTopic:
    def test_strips_request_phrasing(self):
        assert normalize_topic("Write me a book about the history of tea") == "the history of tea"

    def test_plain_topic_unchanged(self):
        assert normalize_topic("  The history of tea ") == "The history of tea"


class TestCleanAiText:
    def test_removes_greeting_and_artifacts(self):
        raw = (
            "Sure! Here is your chapter:\n\n"
            "Table of Contents\n"
            "<header>Tea</header>\n"
            "Tea costs \\$5 a pound. *\n"
            "=======\n\n\n\nThe end."
        )
        assert clean_ai_text(raw) == "Tea\nTea costs $5 a pound.\n\nThe end."

    def test_keeps_italic_at_line_end(self):
        assert clean_ai_text("Steep it *gently*") == "Steep it *gently*"

    def test_keeps_opening_paragraph_that_starts_like_a_greeting(self):
        raw = "Here's how tea spread across Asia. It began with monks.\n\nTraders followed."
        assert clean_ai_text(raw) == raw

    def test_keeps_sentence_with_inner_colon(self):
        raw = "Certainly one fact stands out: tea was once currency.\nMore follows."
        assert clean_ai_text(raw) == raw

    def test_removes_one_line_lead_in(self):
        assert clean_ai_text("Certainly!\nTea began in China.") == "Tea began in China."


class TestDropLeadingHeading:
    def test_drops_title_heading(self):
        assert drop_leading_heading("## Chapter 1: Origins\nBody") == "Body"

    def test_keeps_subsection_heading(self):
        assert drop_leading_heading("### Legends\nBody") == "### Legends\nBody"
