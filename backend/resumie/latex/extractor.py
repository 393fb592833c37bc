"""Extract a structured resume (header + sections) from generated LaTeX.

Heuristic pattern matching over a fixed command vocabulary:
  \\section{..} / \\section*{..}        section boundaries
  \\resumeSubheading{t}{date}{sub}{loc}  entry header
  itemize / enumerate + \\item          bullets
  anything else                        one stripped paragraph

Nothing here raises on malformed input; missing signals give empty results.
"""

import re

from resumie.core.constants import EMPTY_RESUME_PLACEHOLDER
from resumie.core.logger import logger
from resumie.latex.stripper import strip_latex_commands, strip_latex_for_export
from resumie.models import BulletsItem, ParagraphItem, RenderPayload, Section, Title

_NAME_PATTERNS = [
    re.compile(r"\\name\{([^}]+)\}"),
    re.compile(r"\\begin\{center\}\s*\\textbf\{\\Huge\s*([^}]+)\}"),
    re.compile(r"\\begin\{center\}\s*\{\\Huge\s*\\textbf\{([^}]+)\}"),
    re.compile(r"\\textbf\{\\huge\s*([^}]+)\}"),
    re.compile(r"\\Huge\s*\\textbf\{([^}]+)\}"),
]
_EMAIL_RE = re.compile(r"\\href\{mailto:([^}]+)\}")
_PHONE_RE = re.compile(r"\\small\s*([\d\-()\s+]+)")
_LINKEDIN_RE = re.compile(r"linkedin\.com/in/([^\s\\}]+)", re.IGNORECASE)
_MIN_PHONE_DIGITS = 10

_SECTION_RE = re.compile(
    r"\\section\*?\{([^}]+)\}(.*?)(?=\\section|\\end\{document\}|\Z)",
    re.DOTALL,
)
_SECTION_OR_HEADER_RE = re.compile(
    r"\\(?:section\*?|sectionheader)\{([^}]+)\}(.*?)"
    r"(?=\\(?:section\*?|sectionheader)\{|\\end\{document\}|\Z)",
    re.DOTALL,
)
SUBHEADING_RE = re.compile(r"\\resumeSubheading\{([^}]*)\}\{([^}]*)\}\{([^}]*)\}\{([^}]*)\}")
LIST_RE = re.compile(
    r"\\begin\{(?:itemize|enumerate)\}(.*?)\\end\{(?:itemize|enumerate)\}",
    re.DOTALL,
)
_ITEM_RE = re.compile(r"\\item\s*(.*?)(?=\\item|\\end\{|\Z)", re.DOTALL)


# ── Header ─────────────────────────────────────────────────────────────────


def _find_name(latex: str) -> str | None:
    for pattern in _NAME_PATTERNS:
        m = pattern.search(latex)
        if m:
            return m.group(1)
    return None


def extract_contacts(latex: str) -> list[str]:
    """Email, phone (10+ digits) and LinkedIn handle, in that order."""
    contacts = []

    m = _EMAIL_RE.search(latex)
    if m:
        contacts.append(m.group(1))

    m = _PHONE_RE.search(latex)
    if m and len(re.sub(r"\D", "", m.group(1))) >= _MIN_PHONE_DIGITS:
        contacts.append(m.group(1).strip())

    m = _LINKEDIN_RE.search(latex)
    if m:
        contacts.append(f"linkedin.com/in/{m.group(1)}")

    return contacts


def extract_header_block(latex: str) -> list[str]:
    """Return up to two header lines: the upper-cased name, then one contact line."""
    lines = []

    raw_name = _find_name(latex)
    if raw_name is not None:
        lines.append(strip_latex_for_export(raw_name).strip().upper())

    contacts = extract_contacts(latex)
    if contacts:
        lines.append(" | ".join(contacts))

    return lines


def extract_header(latex: str) -> Title:
    raw_name = _find_name(latex)
    name = strip_latex_commands(raw_name).strip() if raw_name is not None else ""
    return Title(name=name or "Resume", contacts=extract_contacts(latex))


# ── Sections ───────────────────────────────────────────────────────────────


def find_section_bodies(latex: str, include_sectionheader: bool = False) -> list[tuple[str, str]]:
    """Split a document into (raw heading, raw body) pairs in document order.

    ``include_sectionheader`` also treats the custom ``\\sectionheader{..}``
    macro as a section boundary (used by the DOCX exporter).
    """
    pattern = _SECTION_OR_HEADER_RE if include_sectionheader else _SECTION_RE
    return [(m.group(1), m.group(2)) for m in pattern.finditer(latex)]


def extract_list_items(list_body: str, strip=strip_latex_commands) -> list[str]:
    items = []
    for m in _ITEM_RE.finditer(list_body):
        text = strip(m.group(1)).strip()
        if text:
            items.append(text)
    return items


def structured_matches(body: str) -> list[re.Match]:
    """Subheading and list matches, merged in document order."""
    found = list(SUBHEADING_RE.finditer(body)) + list(LIST_RE.finditer(body))
    return sorted(found, key=lambda m: m.start())


def extract_section_items(body: str) -> list[BulletsItem | ParagraphItem]:
    """Typed content items of one section body.

    A list attaches to the entry header right before it when that header has
    no bullets yet; otherwise it becomes its own bullets item. A header that
    never receives bullets is kept as a paragraph so no bullets item is empty.
    """
    entries: list[dict] = []
    matches = structured_matches(body)

    for m in matches:
        if m.re is SUBHEADING_RE:
            entries.append({
                "title": strip_latex_commands(m.group(1)),
                "meta": strip_latex_commands(m.group(2)),
                "subtitle": strip_latex_commands(m.group(3)),
                "bullets": [],
            })
            continue

        bullets = extract_list_items(m.group(1))
        if not bullets:
            continue
        if entries and "title" in entries[-1] and not entries[-1]["bullets"]:
            entries[-1]["bullets"] = bullets
        else:
            entries.append({"bullets": bullets})

    if not matches:
        text = strip_latex_commands(body).strip()
        return [ParagraphItem(text=text)] if text else []

    items: list[BulletsItem | ParagraphItem] = []
    for entry in entries:
        if entry["bullets"]:
            items.append(BulletsItem(
                title=entry.get("title") or None,
                subtitle=entry.get("subtitle") or None,
                meta=entry.get("meta") or None,
                bullets=entry["bullets"],
            ))
            continue
        header = " | ".join(
            part for part in (entry.get("title"), entry.get("subtitle"), entry.get("meta")) if part
        )
        if header:
            items.append(ParagraphItem(text=header))
    return items


def extract_sections(latex: str) -> list[Section]:
    sections: list[Section] = []
    for raw_heading, body in find_section_bodies(latex):
        heading = strip_latex_commands(raw_heading).strip()
        items = extract_section_items(body)
        if heading and items:
            sections.append(Section(
                id=f"section-{len(sections)}",
                heading=heading.upper(),
                items=items,
            ))
    return sections


def parse_latex_resume(latex: str) -> RenderPayload:
    """Parse a generated LaTeX resume into a RenderPayload.

    Falls back to a single CONTENT section holding the stripped document when
    no ``\\section`` yields content.
    """
    title = extract_header(latex)
    sections = extract_sections(latex)

    if not sections:
        logger.debug("No LaTeX sections found, falling back to stripped text")
        text = strip_latex_commands(latex) or EMPTY_RESUME_PLACEHOLDER
        sections = [Section(id="section-0", heading="CONTENT", items=[ParagraphItem(text=text)])]

    logger.debug(f"Parsed LaTeX resume: {len(sections)} sections")
    return RenderPayload(title=title, sections=sections)
