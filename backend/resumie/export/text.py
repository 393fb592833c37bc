"""LaTeX → ATS-friendly plain text, plus export filenames.

Output rules: header (upper-cased name, contact line), then per section an
upper-cased heading, entry lines ``title — subtitle — location, date``,
``- `` bullets and one blank line between sections.
"""

import re
from datetime import date

from resumie.core.constants import EXPORT_FILENAME_PREFIX, EXPORT_LABEL_MAX_LENGTH
from resumie.latex.extractor import (
    SUBHEADING_RE,
    extract_header_block,
    extract_list_items,
    find_section_bodies,
    structured_matches,
)
from resumie.latex.stripper import strip_latex_for_export

_UNSAFE_LABEL_RE = re.compile(r'[/\\:*?"<>|]')
_PARAGRAPH_SPLIT_RE = re.compile(r"\n{2,}")


def _split_paragraphs(text: str) -> list[str]:
    return [p.replace("\n", " ").strip() for p in _PARAGRAPH_SPLIT_RE.split(text) if p.strip()]


def _entry_line(match: re.Match) -> str | None:
    title, when, subtitle, location = (strip_latex_for_export(g).strip() for g in match.groups())
    parts = [part for part in (title, subtitle) if part]
    place = ", ".join(part for part in (location, when) if part)
    if place:
        parts.append(place)
    return " — ".join(parts) or None


def extract_content_lines(body: str) -> list[str]:
    lines = []
    for m in structured_matches(body):
        if m.re is SUBHEADING_RE:
            line = _entry_line(m)
            if line:
                lines.append(line)
        else:
            lines.extend(f"- {item}" for item in extract_list_items(m.group(1), strip=strip_latex_for_export))

    if not lines:
        lines = _split_paragraphs(strip_latex_for_export(body))
    return lines


def latex_to_plain_text(latex: str) -> str:
    output: list[str] = []

    header = extract_header_block(latex)
    if header:
        output.extend([*header, ""])

    section_count = 0
    for raw_heading, body in find_section_bodies(latex):
        heading = strip_latex_for_export(raw_heading).strip().upper()
        lines = extract_content_lines(body)
        if heading and lines:
            output.extend([heading, *lines, ""])
            section_count += 1

    if not section_count and not header:
        return "\n\n".join(_PARAGRAPH_SPLIT_RE.split(strip_latex_for_export(latex))).strip()

    return re.sub(r"\n{3,}", "\n\n", "\n".join(output)).strip()


def sanitize_label(label: str | None) -> str:
    sanitized = _UNSAFE_LABEL_RE.sub("", label or "")
    sanitized = re.sub(r"\s+", "_", sanitized).strip()[:EXPORT_LABEL_MAX_LENGTH]
    return sanitized or "Resume"


def build_export_filename(label: str | None, ext: str, on: date | None = None) -> str:
    """``ATSResumie_<label>_<YYYY-MM-DD>.<ext>``"""
    day = (on or date.today()).isoformat()
    return f"{EXPORT_FILENAME_PREFIX}_{sanitize_label(label)}_{day}.{ext.lstrip('.')}"
