"""Render an assembled manuscript into a downloadable PDF or DOCX file."""

import io
import re

from docx import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt, RGBColor
from fpdf import FPDF, XPos, YPos

from document.manuscript import Manuscript
from document.markdown import (
    CodeBlock,
    Heading,
    ListBlock,
    Paragraph,
    Quote,
    Rule,
    Table,
    parse_blocks,
    parse_inline,
    plain_text,
)
from models.document import DocumentFormat

CONTENT_TYPES = {
    DocumentFormat.PDF: "application/pdf",
    DocumentFormat.DOCX: "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


def render_document(manuscript: Manuscript, fmt: DocumentFormat) -> bytes:
    """Render a manuscript, dispatching by output format.

    Args:
        manuscript: Title, optional table of contents and ordered units.
        fmt: Target file format.

    Returns:
        Raw bytes of the rendered file.

    Raises:
        ValueError: If the format is not supported.
    """
    renderers = {
        DocumentFormat.PDF: render_pdf,
        DocumentFormat.DOCX: render_docx,
    }
    render = renderers.get(DocumentFormat(fmt))
    if render is None:
        supported = ", ".join(sorted(f.value for f in renderers))
        raise ValueError(f"Unsupported format: {fmt}. Supported: {supported}")
    return render(manuscript)


# ── PDF ──────────────────────────────────────────────────────────────

_FONT = "Helvetica"
_MONO = "Courier"
_BODY_SIZE = 11
_LINE_HEIGHT = 6
_HEADING_SIZES = {1: 18, 2: 15, 3: 13}


class _BookPDF(FPDF):
    def __init__(self, running_title: str):
        super().__init__(format="A4")
        self.running_title = running_title

    def header(self):
        if self.page_no() == 1:
            return
        self.set_font(_FONT, "I", 8)
        self.set_text_color(150)
        self.cell(0, 8, self.running_title, align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_text_color(0)

    def footer(self):
        self.set_y(-15)
        self.set_font(_FONT, "I", 8)
        self.set_text_color(150)
        self.cell(0, 10, f"Page {self.page_no()} of {{nb}}", align="C")
        self.set_text_color(0)


def render_pdf(manuscript: Manuscript) -> bytes:
    """PDF with a cover page, optional table of contents and one page break per unit."""
    title = _sanitize_for_latin1(manuscript.title)
    pdf = _BookPDF(running_title=title[:80])
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.set_title(title)
    pdf.set_creator(_sanitize_for_latin1(manuscript.subtitle))

    # Cover
    pdf.add_page()
    pdf.set_y(90)
    pdf.set_font(_FONT, "B", 26)
    pdf.multi_cell(0, 12, title, align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(10)
    pdf.set_font(_FONT, size=12)
    pdf.set_text_color(119)
    pdf.multi_cell(0, 8, _sanitize_for_latin1(manuscript.subtitle), align="C",
                   new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_text_color(200, 0, 0)
    pdf.multi_cell(0, 8, _sanitize_for_latin1(manuscript.notice), align="C",
                   new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_text_color(0)

    if manuscript.toc:
        pdf.add_page()
        _pdf_heading(pdf, 1, "Table of Contents")
        for number, entry in enumerate(manuscript.toc, start=1):
            pdf.set_font(_FONT, "B", _BODY_SIZE)
            pdf.multi_cell(0, _LINE_HEIGHT, _sanitize_for_latin1(f"{number}. {entry.title}"),
                           new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            pdf.set_font(_FONT, size=_BODY_SIZE - 1)
            for sub in entry.subtopics:
                pdf.set_x(pdf.l_margin + 8)
                pdf.multi_cell(0, _LINE_HEIGHT, _sanitize_for_latin1(f"- {sub}"),
                               new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            pdf.ln(2)

    for unit in manuscript.units:
        pdf.add_page()
        _pdf_heading(pdf, 1, unit.heading)
        for block in parse_blocks(unit.body):
            _pdf_block(pdf, block)

    return bytes(pdf.output())


def _pdf_heading(pdf: FPDF, level: int, text: str) -> None:
    pdf.set_font(_FONT, "B", _HEADING_SIZES.get(level, _BODY_SIZE + 1))
    pdf.set_text_color(44, 62, 80)
    pdf.multi_cell(0, _LINE_HEIGHT + 2, _sanitize_for_latin1(plain_text(text)),
                   new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_text_color(0)
    pdf.ln(2)


def _pdf_block(pdf: FPDF, block) -> None:
    if isinstance(block, Heading):
        pdf.ln(2)
        _pdf_heading(pdf, min(block.level + 1, 3), block.text)
    elif isinstance(block, Paragraph):
        _pdf_spans(pdf, block.text)
        pdf.ln(_LINE_HEIGHT + 2)
    elif isinstance(block, ListBlock):
        left = pdf.l_margin
        pdf.set_left_margin(left + 6)
        for number, item in enumerate(block.items, start=1):
            pdf.set_x(pdf.l_margin)
            pdf.set_font(_FONT, size=_BODY_SIZE)
            pdf.write(_LINE_HEIGHT, f"{number}. " if block.ordered else "- ")
            _pdf_spans(pdf, item)
            pdf.ln(_LINE_HEIGHT)
        pdf.set_left_margin(left)
        pdf.set_x(left)
        pdf.ln(2)
    elif isinstance(block, CodeBlock):
        pdf.set_font(_MONO, size=9)
        pdf.set_fill_color(245, 245, 245)
        pdf.multi_cell(0, 5, _sanitize_for_latin1(block.code), fill=True,
                       new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(3)
    elif isinstance(block, Quote):
        left = pdf.l_margin
        pdf.set_left_margin(left + 8)
        pdf.set_x(pdf.l_margin)
        pdf.set_font(_FONT, "I", _BODY_SIZE)
        pdf.set_text_color(44, 62, 80)
        pdf.multi_cell(0, _LINE_HEIGHT, _sanitize_for_latin1(plain_text(block.text)),
                       new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_text_color(0)
        pdf.set_left_margin(left)
        pdf.set_x(left)
        pdf.ln(2)
    elif isinstance(block, Table):
        _pdf_table(pdf, block)
    elif isinstance(block, Rule):
        y = pdf.get_y() + 2
        pdf.set_draw_color(224, 224, 224)
        pdf.line(pdf.l_margin, y, pdf.w - pdf.r_margin, y)
        pdf.ln(6)


def _pdf_spans(pdf: FPDF, text: str) -> None:
    for span in parse_inline(text):
        if span.code:
            pdf.set_font(_MONO, size=_BODY_SIZE - 1)
        else:
            style = ("B" if span.bold else "") + ("I" if span.italic else "")
            pdf.set_font(_FONT, style, _BODY_SIZE)
        pdf.write(_LINE_HEIGHT, _sanitize_for_latin1(span.text))
    pdf.set_font(_FONT, size=_BODY_SIZE)


def _pdf_table(pdf: FPDF, table: Table) -> None:
    width = len(table.headers)
    pdf.set_font(_FONT, size=_BODY_SIZE - 2)
    with pdf.table() as grid:
        for cells in [table.headers, *table.rows]:
            row = grid.row()
            for cell in _fit_row(cells, width):
                row.cell(_sanitize_for_latin1(plain_text(cell)))
    pdf.set_font(_FONT, size=_BODY_SIZE)
    pdf.ln(3)


def _fit_row(cells: list[str], width: int) -> list[str]:
    return (cells + [""] * width)[:width]


# Unicode → ASCII replacements for Latin-1 safe PDF output
_UNICODE_REPLACEMENTS = {
    "\u2013": "-",   # en-dash
    "\u2014": "-",   # em-dash
    "\u2018": "'",   # left single quote
    "\u2019": "'",   # right single quote
    "\u201c": '"',   # left double quote
    "\u201d": '"',   # right double quote
    "\u2026": "...", # ellipsis
    "\u2022": "*",   # bullet
    "\u00a0": " ",   # non-breaking space
    "\u200b": "",    # zero-width space
    "\u2011": "-",   # non-breaking hyphen
    "\u2010": "-",   # hyphen
    "\u2212": "-",   # minus sign
    "\u2192": "->",  # right arrow
    "\u2264": "<=",
    "\u2265": ">=",
    "\ufeff": "",    # BOM
}


def _sanitize_for_latin1(text: str) -> str:
    """Replace unicode characters that the core PDF fonts cannot render."""
    for char, replacement in _UNICODE_REPLACEMENTS.items():
        text = text.replace(char, replacement)
    # Drop any remaining non-Latin-1 characters
    return text.encode("latin-1", errors="replace").decode("latin-1")


# ── DOCX ─────────────────────────────────────────────────────────────

_XML_INVALID_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def _xml(text: str) -> str:
    """Drop control characters that python-docx refuses to write into XML."""
    return _XML_INVALID_RE.sub("", text)


def render_docx(manuscript: Manuscript) -> bytes:
    """Word document with headings, styled runs, lists, code and tables."""
    doc = DocxDocument()
    doc.core_properties.title = _xml(manuscript.title)

    doc.add_heading(_xml(manuscript.title), level=0)
    subtitle = doc.add_paragraph(_xml(manuscript.subtitle))
    subtitle.alignment = WD_ALIGN_PARAGRAPH.CENTER
    notice = doc.add_paragraph()
    notice.alignment = WD_ALIGN_PARAGRAPH.CENTER
    notice_run = notice.add_run(_xml(manuscript.notice))
    notice_run.font.color.rgb = RGBColor(0xCC, 0x00, 0x00)

    if manuscript.toc:
        doc.add_page_break()
        doc.add_heading("Table of Contents", level=1)
        for number, entry in enumerate(manuscript.toc, start=1):
            doc.add_paragraph().add_run(f"{number}. {_xml(entry.title)}").bold = True
            for sub in entry.subtopics:
                doc.add_paragraph(_xml(sub), style="List Bullet")

    for unit in manuscript.units:
        doc.add_page_break()
        doc.add_heading(plain_text(_xml(unit.heading)), level=1)
        for block in parse_blocks(_xml(unit.body)):
            _docx_block(doc, block)

    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def _docx_block(doc, block) -> None:
    if isinstance(block, Heading):
        doc.add_heading(plain_text(block.text), level=min(block.level + 1, 4))
    elif isinstance(block, Paragraph):
        paragraph = doc.add_paragraph()
        paragraph.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
        _docx_runs(paragraph, block.text)
    elif isinstance(block, ListBlock):
        style = "List Number" if block.ordered else "List Bullet"
        for item in block.items:
            _docx_runs(doc.add_paragraph(style=style), item)
    elif isinstance(block, CodeBlock):
        run = doc.add_paragraph().add_run(block.code)
        run.font.name = "Courier New"
        run.font.size = Pt(10)
    elif isinstance(block, Quote):
        doc.add_paragraph(plain_text(block.text), style="Quote")
    elif isinstance(block, Table):
        width = len(block.headers)
        table = doc.add_table(rows=1, cols=width)
        table.style = "Table Grid"
        for cell, text in zip(table.rows[0].cells, block.headers):
            cell.text = ""
            cell.paragraphs[0].add_run(plain_text(text)).bold = True
        for cells in block.rows:
            for cell, text in zip(table.add_row().cells, _fit_row(cells, width)):
                cell.text = plain_text(text)
    elif isinstance(block, Rule):
        doc.add_paragraph()


def _docx_runs(paragraph, text: str) -> None:
    for span in parse_inline(text):
        run = paragraph.add_run(span.text)
        run.bold = span.bold or None
        run.italic = span.italic or None
        if span.code:
            run.font.name = "Courier New"
