"""Heuristic parser: plain resume text → RenderPayload.

Two entry points share the heading detector, bullet regex, title inference
and item builder, and differ only in a few switches:

    derive_render_payload_from_resume_text   editor preview
        leading content under "Experience", empty input → placeholder payload,
        optional "Targeting: <JD line>" subtitle
    parse_resume_plain_text                  standalone, stricter
        "Heading:" lines (< 50 chars) are headings too, leading content under
        "Summary", indented lines continue the previous bullet
"""

import re
from dataclasses import dataclass

from resumie.core.constants import (
    COLON_HEADING_MAX_CHARS,
    EMPTY_RESUME_PLACEHOLDER,
    FALLBACK_CANDIDATE_NAME,
    HEADING_MAX_CHARS,
    HEADING_MAX_WORDS,
    HEADING_UPPERCASE_RATIO,
    MAX_BULLET_HEADER_PARTS,
    MAX_CONTACT_LENGTH,
    MAX_CONTACTS,
    MAX_SUBTITLE_LENGTH,
)
from resumie.core.logger import logger
from resumie.models import BulletsItem, ParagraphItem, RenderPayload, Section, Title

# Keys are lower-cased with everything but a-z removed.
HEADING_ALIASES: dict[str, str] = {
    "summary": "Summary",
    "profile": "Summary",
    "objective": "Summary",
    "professionalsummary": "Summary",
    "experience": "Experience",
    "workexperience": "Experience",
    "professionalexperience": "Experience",
    "employment": "Experience",
    "education": "Education",
    "skills": "Skills",
    "technicalskills": "Skills",
    "corecompetencies": "Skills",
    "projects": "Projects",
    "certifications": "Certifications",
    "certification": "Certifications",
    "awards": "Awards",
    "achievements": "Achievements",
    "publications": "Publications",
    "languages": "Languages",
    "volunteer": "Volunteer Experience",
    "volunteerexperience": "Volunteer Experience",
    "interests": "Interests",
    "references": "References",
}

BULLET_RE = re.compile(r"^\s*(?:[-*•●◦▪]|\d+[.)])\s+")
_LINE_SPLIT_RE = re.compile(r"\r?\n")
_BULLET_HEADER_SPLIT_RE = re.compile(r"\s*[|–-]\s*")
_CONTACT_SPLIT_RE = re.compile(r"\s*[|•·]\s*|\s{2,}|\s*,\s*")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ParseOptions:
    default_heading: str
    fallback_name: str
    allow_colon_headings: bool = False
    join_indented_continuations: bool = False


EDITOR_OPTIONS = ParseOptions(default_heading="Experience", fallback_name=FALLBACK_CANDIDATE_NAME)
STRICT_OPTIONS = ParseOptions(
    default_heading="Summary",
    fallback_name="Resume",
    allow_colon_headings=True,
    join_indented_continuations=True,
)


def normalize_line(line: str) -> str:
    return line.replace("\u00a0", " ").replace("\t", " ").strip()


def heading_key(line: str) -> str:
    return re.sub(r"[^a-z]", "", line.lower())


def _title_case(text: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group().upper(), text.lower())


def detect_heading(line: str, allow_colon: bool = False) -> str | None:
    """Return the canonical heading text if ``line`` looks like a section heading."""
    normalized = normalize_line(line)
    if not normalized or BULLET_RE.match(normalized):
        return None

    alias = HEADING_ALIASES.get(heading_key(normalized))
    if alias:
        return alias

    letters = [ch for ch in normalized if "A" <= ch <= "Z" or "a" <= ch <= "z"]
    uppercase = sum(1 for ch in letters if "A" <= ch <= "Z")
    ratio = uppercase / max(1, len(letters))
    word_count = len(normalized.split())
    if ratio > HEADING_UPPERCASE_RATIO and 1 <= word_count <= HEADING_MAX_WORDS and len(normalized) <= HEADING_MAX_CHARS:
        return _title_case(normalized)

    if allow_colon and normalized.endswith(":") and len(normalized) < COLON_HEADING_MAX_CHARS:
        heading = normalized[:-1].strip()
        return heading or None

    return None


def is_likely_name(line: str) -> bool:
    if not line or len(line) < 2 or len(line) > 60:
        return False
    if re.search(r"[0-9@]", line):
        return False
    return 2 <= len(line.split()) <= 5


def is_likely_subtitle(line: str) -> bool:
    if not line:
        return False
    if re.search(r"@|https?://", line, re.IGNORECASE):
        return False
    if re.search(r"\d{3}", line):
        return False
    return len(line) <= MAX_SUBTITLE_LENGTH


def split_contacts(line: str) -> list[str]:
    return [part.strip() for part in _CONTACT_SPLIT_RE.split(line) if part and part.strip()]


# ── Title block ────────────────────────────────────────────────────────────


def derive_title_block(
    raw_lines: list[str],
    options: ParseOptions = EDITOR_OPTIONS,
    jd_text: str | None = None,
) -> tuple[Title, int]:
    """Infer name, subtitle and contacts from the top of the resume.

    Returns the title and the index of the first raw line that belongs to the
    body. Lines are only consumed when a name was found; otherwise the body
    starts at line 0. The scan stops at the first line that is neither the
    subtitle nor a source of new contacts, and that line stays in the body.
    """
    lines = [(i, normalize_line(raw)) for i, raw in enumerate(raw_lines)]
    lines = [(i, line) for i, line in lines if line]

    name = options.fallback_name
    subtitle = None
    contacts: list[str] = []
    body_start = 0
    position = 0

    if lines:
        first_index, first = lines[0]
        if is_likely_name(first) and heading_key(first) not in HEADING_ALIASES:
            name = first
            body_start = first_index + 1
            position = 1

    for index, line in lines[position:]:
        if detect_heading(line, options.allow_colon_headings) or BULLET_RE.match(line):
            break

        used = False
        if subtitle is None and is_likely_subtitle(line):
            subtitle = line
            used = True
        else:
            for contact in split_contacts(line):
                if len(contacts) >= MAX_CONTACTS:
                    break
                if contact not in contacts and len(contact) <= MAX_CONTACT_LENGTH:
                    contacts.append(contact)
                    used = True

        # A line that adds nothing to the title starts the body.
        if not used:
            break
        if position:
            body_start = index + 1
        if len(contacts) >= MAX_CONTACTS:
            break

    if subtitle is None and jd_text:
        first_jd_line = normalize_line(_LINE_SPLIT_RE.split(jd_text)[0])
        if first_jd_line and len(first_jd_line) <= MAX_SUBTITLE_LENGTH:
            subtitle = f"Targeting: {first_jd_line}"

    return Title(name=name, subtitle=subtitle, contacts=contacts), body_start


# ── Section items ──────────────────────────────────────────────────────────


def parse_section_items(lines: list[str], join_indented_continuations: bool = False) -> list[BulletsItem | ParagraphItem]:
    """Group a section's lines into paragraph and bullets items.

    Non-bullet runs are buffered into one paragraph. When a bullet follows a
    buffered run, that run (split on ``|`` / dashes, at most three parts)
    becomes the bullets item's title / subtitle / meta instead.
    """
    items: list[BulletsItem | ParagraphItem] = []
    paragraph: list[str] = []
    bullets: list[str] = []
    header: list[str] = []

    def flush_paragraph():
        nonlocal paragraph
        if paragraph:
            text = _WHITESPACE_RE.sub(" ", " ".join(paragraph)).strip()
            if text:
                items.append(ParagraphItem(text=text))
        paragraph = []

    def flush_bullets():
        nonlocal bullets, header
        if bullets:
            items.append(BulletsItem(
                title=header[0] if len(header) > 0 else None,
                subtitle=header[1] if len(header) > 1 else None,
                meta=" | ".join(header[2:]) if len(header) > 2 else None,
                bullets=list(bullets),
            ))
        bullets = []
        header = []

    for raw_line in lines:
        line = normalize_line(raw_line)
        if not line:
            flush_paragraph()
            flush_bullets()
            continue

        if BULLET_RE.match(line):
            if paragraph and not bullets:
                buffered = " ".join(paragraph).strip()
                if buffered:
                    header = [
                        part.strip()
                        for part in _BULLET_HEADER_SPLIT_RE.split(buffered)
                        if part.strip()
                    ][:MAX_BULLET_HEADER_PARTS]
                paragraph = []
            text = BULLET_RE.sub("", line, count=1).strip()
            if text:
                bullets.append(text)
            continue

        if bullets and join_indented_continuations and raw_line.startswith(("  ", "\t")):
            bullets[-1] = f"{bullets[-1]} {line}"
            continue

        if bullets:
            flush_bullets()
        paragraph.append(line)

    flush_paragraph()
    flush_bullets()
    return items


def infer_sections(raw_lines: list[str], options: ParseOptions = EDITOR_OPTIONS) -> list[tuple[str, list[str]]]:
    """Split lines into (heading, lines) groups; empty groups are dropped."""
    groups: list[tuple[str, list[str]]] = []
    heading = options.default_heading
    current: list[str] = []

    for raw_line in raw_lines:
        detected = detect_heading(raw_line, options.allow_colon_headings)
        if detected:
            if any(normalize_line(line) for line in current):
                groups.append((heading, current))
            heading = detected
            current = []
            continue
        current.append(raw_line)

    if any(normalize_line(line) for line in current):
        groups.append((heading, current))

    return groups


def _build_sections(groups: list[tuple[str, list[str]]], options: ParseOptions, id_for) -> list[Section]:
    sections = []
    for index, (heading, lines) in enumerate(groups):
        items = parse_section_items(lines, options.join_indented_continuations)
        if not items:
            text = _WHITESPACE_RE.sub(" ", " ".join(lines)).strip()
            if not text:
                continue
            items = [ParagraphItem(text=text)]
        sections.append(Section(id=id_for(index, heading), heading=heading, items=items))
    return sections


# ── Public API ─────────────────────────────────────────────────────────────


def _placeholder_payload(name: str, heading: str, section_id: str) -> RenderPayload:
    return RenderPayload(
        title=Title(name=name, contacts=[]),
        sections=[Section(id=section_id, heading=heading, items=[ParagraphItem(text=EMPTY_RESUME_PLACEHOLDER)])],
    )


def derive_render_payload_from_resume_text(resume_text: str, jd_text: str | None = None) -> RenderPayload:
    """Editor variant. Never returns an empty section list."""
    normalized = resume_text.strip()
    if not normalized:
        return _placeholder_payload(FALLBACK_CANDIDATE_NAME, "Overview", "section-empty")

    raw_lines = _LINE_SPLIT_RE.split(normalized)
    title, body_start = derive_title_block(raw_lines, EDITOR_OPTIONS, jd_text)

    groups = infer_sections(raw_lines[body_start:], EDITOR_OPTIONS)
    sections = _build_sections(
        groups,
        EDITOR_OPTIONS,
        lambda index, heading: f"section-{index}-{heading_key(heading) or 'untitled'}",
    )

    if not sections:
        logger.debug("No sections inferred from resume text, using Overview fallback")
        items = parse_section_items(raw_lines) or [ParagraphItem(text=normalized)]
        sections = [Section(id="section-overview", heading="Overview", items=items)]

    return RenderPayload(title=title, sections=sections)


def parse_resume_plain_text(text: str) -> RenderPayload:
    """Standalone variant with the stricter heading rules."""
    if not text.strip():
        return _placeholder_payload(STRICT_OPTIONS.fallback_name, "Summary", "section-0")

    raw_lines = _LINE_SPLIT_RE.split(text)
    title, body_start = derive_title_block(raw_lines, STRICT_OPTIONS)

    groups = infer_sections(raw_lines[body_start:], STRICT_OPTIONS)
    sections = _build_sections(groups, STRICT_OPTIONS, lambda index, heading: f"section-{index}")

    if not sections:
        sections = [Section(id="section-0", heading="Summary", items=[ParagraphItem(text=text.strip())])]

    return RenderPayload(title=title, sections=sections)
