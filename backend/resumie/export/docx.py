"""LaTeX resume → DOCX via python-docx.

Style (font, sizes, line spacing, margins) is read back out of the LaTeX
with parse_style_from_latex, so the Word file follows the same settings as
the compiled PDF. Body content is emitted in source order.
"""

import io
import re
from dataclasses import dataclass
from typing import Literal

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_TAB_ALIGNMENT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor, Twips

from resumie.core.constants import DOCX_LINE_UNITS, TWIPS_PER_MM
from resumie.core.errors import ExportError
from resumie.core.logger import logger
from resumie.export.text import build_export_filename
from resumie.latex.extractor import (
    LIST_RE,
    SUBHEADING_RE,
    extract_header_block,
    extract_list_items,
    find_section_bodies,
)
from resumie.latex.stripper import strip_latex_for_export
from resumie.latex.style import parse_style_from_latex

LATEX_TO_DOCX_FONT = {
    "default": "Computer Modern",
    "lmodern": "Latin Modern Roman",
    "times": "Times New Roman",
    "helvetica": "Helvetica",
    "palatino": "Palatino Linotype",
    "charter": "Charter",
    "bookman": "Bookman Old Style",
}
FALLBACK_FONT = "Calibri"

COLOR_DARK = RGBColor.from_string("333333")
COLOR_GRAY = RGBColor.from_string("666666")
HEADING_BORDER_COLOR = "999999"
RIGHT_TAB_POSITION = Twips(9026)

_ENTRY_LINE_RE = re.compile(r"\\textbf\{([^}]+)\}\s*\\hfill\s*(.*?)(?:\s*\\\\|$)", re.MULTILINE)
_SUBENTRY_LINE_RE = re.compile(r"\\textit\{([^}]+)\}\s*\\hfill\s*(.*?)(?:\s*\\\\|$)", re.MULTILINE)
_PARAGRAPH_SPLIT_RE = re.compile(r"\n{2,}")


@dataclass(frozen=True)
class BodyElement:
    kind: Literal["entry", "subentry", "bullet", "paragraph"]
    text: str
    right: str = ""


@dataclass(frozen=True)
class DocxStyle:
    font: str
    base_size_hp: int  # half-points
    heading_size_hp: int
    name_size_hp: int
    contact_size_hp: int
    line_spacing: int  # 240ths of a line
    margin_top_mm: float
    margin_bottom_mm: float
    margin_left_mm: float
    margin_right_mm: float


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def mm_to_twip(mm: float) -> int:
    return _round_half_up(mm * TWIPS_PER_MM)


def _clean(raw: str) -> str:
    return strip_latex_for_export(raw).strip()


def _paragraphs(text: str) -> list[str]:
    cleaned = (re.sub(r"\s+", " ", p).strip() for p in _PARAGRAPH_SPLIT_RE.split(text))
    return [p for p in cleaned if p]


# ── Structure ──────────────────────────────────────────────────────────────


def extract_docx_sections(latex: str) -> list[tuple[str, str]]:
    """(HEADING, raw body) pairs; ``\\sectionheader{..}`` counts as a section too."""
    sections = []
    for raw_heading, body in find_section_bodies(latex, include_sectionheader=True):
        heading = _clean(raw_heading).upper()
        if heading:
            sections.append((heading, body))
    return sections


def _inside(position: int, spans: list[tuple[int, int]]) -> bool:
    return any(start <= position < end for start, end in spans)


def parse_section_body(body: str) -> list[BodyElement]:
    """Ordered DOCX elements of one section body.

    Recognises ``\\resumeSubheading``, ``\\textbf{..} \\hfill ..`` entry lines,
    ``\\textit{..} \\hfill ..`` sub-entry lines and list items. Entry lines
    inside a subheading or a list are not repeated. With no structure found,
    the body falls back to paragraphs split on blank lines.
    """
    found: list[tuple[int, BodyElement]] = []

    subheading_spans = []
    for m in SUBHEADING_RE.finditer(body):
        subheading_spans.append(m.span())
        title, when, subtitle, location = (_clean(g) for g in m.groups())
        if title or subtitle:
            found.append((m.start(), BodyElement("entry", title or subtitle, when)))
            if title and subtitle:
                found.append((m.start(), BodyElement("subentry", subtitle, location)))

    list_spans = []
    for m in LIST_RE.finditer(body):
        list_spans.append(m.span())
        for item in extract_list_items(m.group(1), strip=strip_latex_for_export):
            found.append((m.start(), BodyElement("bullet", item)))

    entry_spans = []
    for m in _ENTRY_LINE_RE.finditer(body):
        if _inside(m.start(), subheading_spans) or _inside(m.start(), list_spans):
            continue
        entry_spans.append(m.span())
        title = _clean(m.group(1))
        if title:
            found.append((m.start(), BodyElement("entry", title, _clean(m.group(2)))))

    for m in _SUBENTRY_LINE_RE.finditer(body):
        if any(_inside(m.start(), spans) for spans in (subheading_spans, list_spans, entry_spans)):
            continue
        title = _clean(m.group(1))
        if title:
            found.append((m.start(), BodyElement("subentry", title, _clean(m.group(2)))))

    if not found:
        return [BodyElement("paragraph", text) for text in _paragraphs(_clean(body))]

    # sorted() is stable: elements sharing a start keep their insertion order
    return [element for _, element in sorted(found, key=lambda pair: pair[0])]


def extract_docx_style(latex: str) -> DocxStyle:
    parsed = parse_style_from_latex(latex)
    base_pt = parsed.base_font_size_pt

    return DocxStyle(
        font=LATEX_TO_DOCX_FONT.get(parsed.font_family, FALLBACK_FONT),
        base_size_hp=_round_half_up(base_pt * 2),
        heading_size_hp=_round_half_up(base_pt * 1.1) * 2,
        name_size_hp=_round_half_up(base_pt * 2.2) * 2,
        contact_size_hp=_round_half_up(base_pt * 0.9) * 2,
        line_spacing=_round_half_up(parsed.line_height * DOCX_LINE_UNITS),
        margin_top_mm=parsed.margin_top_mm,
        margin_bottom_mm=parsed.margin_bottom_mm,
        margin_left_mm=parsed.margin_left_mm,
        margin_right_mm=parsed.margin_right_mm,
    )


# ── Document building ──────────────────────────────────────────────────────


def _add_run(paragraph, text: str, style: DocxStyle, size_hp: int, color: RGBColor, bold=False, italic=False):
    run = paragraph.add_run(text)
    run.bold = bold
    run.italic = italic
    run.font.name = style.font
    run.font.size = Pt(size_hp / 2)
    run.font.color.rgb = color
    return run


def _format(paragraph, style: DocxStyle, before: int = 0, after: int = 0):
    fmt = paragraph.paragraph_format
    fmt.space_before = Twips(before)
    fmt.space_after = Twips(after)
    fmt.line_spacing = style.line_spacing / DOCX_LINE_UNITS


def _add_bottom_border(paragraph):
    p_pr = paragraph._p.get_or_add_pPr()
    borders = OxmlElement("w:pBdr")
    bottom = OxmlElement("w:bottom")
    bottom.set(qn("w:val"), "single")
    bottom.set(qn("w:sz"), "4")
    bottom.set(qn("w:space"), "1")
    bottom.set(qn("w:color"), HEADING_BORDER_COLOR)
    borders.append(bottom)
    p_pr.append(borders)


def _add_name(doc, name: str, style: DocxStyle):
    p = doc.add_paragraph()
    p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    _format(p, style, after=40)
    _add_run(p, name, style, style.name_size_hp, COLOR_DARK, bold=True)


def _add_contact(doc, contact: str, style: DocxStyle):
    p = doc.add_paragraph()
    p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    _format(p, style, after=200)
    _add_run(p, contact, style, style.contact_size_hp, COLOR_GRAY)


def _add_heading(doc, heading: str, style: DocxStyle):
    p = doc.add_paragraph(style="Heading 2")
    _add_bottom_border(p)
    _format(p, style, before=240, after=80)
    _add_run(p, heading.upper(), style, style.heading_size_hp, COLOR_DARK, bold=True)


def _add_entry(doc, element: BodyElement, style: DocxStyle):
    is_entry = element.kind == "entry"
    p = doc.add_paragraph()
    p.paragraph_format.tab_stops.add_tab_stop(RIGHT_TAB_POSITION, WD_TAB_ALIGNMENT.RIGHT)
    if is_entry:
        _format(p, style, before=120, after=0)
    else:
        _format(p, style, after=40)

    _add_run(p, element.text, style, style.base_size_hp, COLOR_DARK, bold=is_entry, italic=not is_entry)
    if element.right:
        _add_run(p, "\t" + element.right, style, style.base_size_hp, COLOR_GRAY, italic=not is_entry)


def _add_bullet(doc, text: str, style: DocxStyle):
    p = doc.add_paragraph(style="List Bullet")
    _format(p, style, after=20)
    _add_run(p, text, style, style.base_size_hp, COLOR_DARK)


def _add_body(doc, text: str, style: DocxStyle):
    p = doc.add_paragraph()
    _format(p, style, after=80)
    _add_run(p, text, style, style.base_size_hp, COLOR_DARK)


def _add_element(doc, element: BodyElement, style: DocxStyle):
    if element.kind in ("entry", "subentry"):
        _add_entry(doc, element, style)
    elif element.kind == "bullet":
        _add_bullet(doc, element.text, style)
    else:
        _add_body(doc, element.text, style)


def generate_docx_bytes(latex: str) -> bytes:
    """Build the Word document for ``latex`` and return the .docx bytes."""
    style = extract_docx_style(latex)
    doc = Document()

    for section in doc.sections:
        section.top_margin = Twips(mm_to_twip(style.margin_top_mm))
        section.bottom_margin = Twips(mm_to_twip(style.margin_bottom_mm))
        section.left_margin = Twips(mm_to_twip(style.margin_left_mm))
        section.right_margin = Twips(mm_to_twip(style.margin_right_mm))

    header = extract_header_block(latex)
    if header:
        _add_name(doc, header[0], style)
        if len(header) > 1:
            _add_contact(doc, " | ".join(header[1:]), style)

    sections = extract_docx_sections(latex)
    for heading, body in sections:
        _add_heading(doc, heading, style)
        for element in parse_section_body(body):
            _add_element(doc, element, style)

    if not sections and not header:
        logger.warning("DOCX export: no sections or header found, writing stripped text")
        for text in _paragraphs(_clean(latex)):
            _add_body(doc, text, style)

    buffer = io.BytesIO()
    try:
        doc.save(buffer)
    except (OSError, ValueError) as e:
        raise ExportError(f"Failed to build DOCX: {e}") from e

    logger.info(f"DOCX built: {len(sections)} sections, font={style.font}")
    return buffer.getvalue()


def build_docx_filename(job_label: str | None) -> str:
    return build_export_filename(job_label, "docx")
