"""Apply style parameters to LaTeX source and read them back.

apply_style_to_latex is idempotent: the injected preamble lives between
STYLE_BLOCK_START / STYLE_BLOCK_END and the font-size directive carries
FONT_SIZE_MARKER, so a second application replaces rather than duplicates.

Parse-back clamps (DECODE_*) are narrower than the wire/UI ranges. A 13pt font
or a 1.8 line height is accepted on the way in but clamps to 12pt / 1.5 when
read back. This is known and intentionally not unified.
"""

import math
import re

from resumie.core.constants import (
    BASELINE_SKIP_FACTOR,
    DECODE_FONT_SIZE_RANGE_PT,
    DECODE_LINE_HEIGHT_RANGE,
    DECODE_MARGIN_RANGE_MM,
    DECODE_SECTION_SPACING_RANGE_PT,
    DOCUMENTCLASS_FONT_SIZE_RANGE_PT,
    FONT_SIZE_MARKER,
    MM_PER_CM,
    MM_PER_INCH,
    SECTION_SPACING_AFTER_FACTOR,
    STYLE_BLOCK_END,
    STYLE_BLOCK_START,
)
from resumie.core.logger import logger
from resumie.latex.patch import insert_after_line, remove_commands, remove_marked_block, remove_marked_line
from resumie.models import DEFAULT_STYLE_CONFIG, StyleConfig, StyleValidation

DOCUMENTCLASS_RE = re.compile(r"\\documentclass(\[[^\]]*\])?\{[^}]+\}")
BEGIN_DOCUMENT_RE = re.compile(r"\\begin\{document\}")

_FONTSIZE_BODY = r"\\fontsize\{[^}]+\}\{[^}]+\}\\selectfont"

# Font family → preamble lines. "default" keeps Computer Modern.
FONT_FAMILY_PACKAGES: dict[str, list[str]] = {
    "default": [],
    "times": [r"\usepackage{mathptmx}"],
    "helvetica": [r"\usepackage[scaled]{helvet}", r"\renewcommand{\familydefault}{\sfdefault}"],
    "palatino": [r"\usepackage{mathpazo}"],
    "charter": [r"\usepackage{charter}"],
    "bookman": [r"\usepackage{bookman}"],
    "lmodern": [r"\usepackage{lmodern}"],
}

# Checked in this order when reading a document back.
FONT_FAMILY_DETECTION: list[tuple[str, tuple[str, ...]]] = [
    ("times", ("mathptmx", "times", "newtxtext")),
    ("helvetica", ("helvet",)),
    ("palatino", ("palatino", "mathpazo", "newpxtext")),
    ("charter", ("charter", "XCharter")),
    ("bookman", ("bookman",)),
    ("lmodern", ("lmodern",)),
]

_FONT_PACKAGE_BLOCKLIST = sorted({pkg for _, pkgs in FONT_FAMILY_DETECTION for pkg in pkgs})
_XELATEX_PACKAGES = ["fontspec", "unicode-math", "polyglossia"]

_CONFLICTING_COMMANDS = [
    r"\\usepackage(?:\[[^\]]*\])?\{(?:%s)\}" % "|".join(
        re.escape(pkg) for pkg in ["geometry", "setspace", *_FONT_PACKAGE_BLOCKLIST, *_XELATEX_PACKAGES]
    ),
    r"\\set(?:main|sans|mono)font(?:\[[^\]]*\])?\{[^}]*\}(?:\[[^\]]*\])?",
    r"\\renewcommand\*?\{\\familydefault\}\{[^}]*\}",
]

_GEOMETRY_USEPACKAGE_RE = re.compile(r"\\usepackage\[([^\]]*)\]\{geometry\}")
_GEOMETRY_CMD_RE = re.compile(r"\\geometry\{([^}]*)\}")
_LENGTH_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(mm|cm|in)\s*$")
_MARKED_FONTSIZE_RE = re.compile(
    rf"\\fontsize\{{(\d+(?:\.\d+)?)pt\}}\{{[^}}]*\}}\\selectfont[ \t]*{re.escape(FONT_SIZE_MARKER)}"
)
_DOCCLASS_OPTIONS_RE = re.compile(r"\\documentclass\[([^\]]*)\]")
_PT_OPTION_RE = re.compile(r"(\d+(?:\.\d+)?)pt")
_SETSTRETCH_RE = re.compile(r"\\setstretch\{(\d+(?:\.\d+)?)\}")
_TITLESPACING_RE = re.compile(r"\\titlespacing\*?\{\\section\}\{[^}]*\}\{(\d+(?:\.\d+)?)pt\}")


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _fmt(value: float) -> str:
    """Render a number the way it was typed: 15 → '15', 12.5 → '12.5'."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    return min(high, max(low, value))


def has_package(latex: str, package: str) -> bool:
    """True if ``\\usepackage[..]{..package..}`` appears anywhere."""
    pattern = rf"\\usepackage(?:\[[^\]]*\])?\{{[^}}]*\b{re.escape(package)}\b[^}}]*\}}"
    return re.search(pattern, latex) is not None


# ── Encode ─────────────────────────────────────────────────────────────────


def build_style_block(style: StyleConfig, latex: str) -> list[str]:
    """Body lines of the marked style block (markers not included)."""
    lines = list(FONT_FAMILY_PACKAGES.get(style.font_family, []))

    paper = "a4paper" if style.page_size == "a4" else "letterpaper"
    lines.append(
        rf"\usepackage[{paper},top={_fmt(style.margin_top_mm)}mm,"
        rf"bottom={_fmt(style.margin_bottom_mm)}mm,"
        rf"left={_fmt(style.margin_left_mm)}mm,"
        rf"right={_fmt(style.margin_right_mm)}mm]{{geometry}}"
    )

    lines.append(r"\usepackage{setspace}")
    lines.append(rf"\setstretch{{{style.line_height:.2f}}}")

    if has_package(latex, "titlesec"):
        before = _fmt(style.section_spacing_pt)
        after = _round_half_up(style.section_spacing_pt * SECTION_SPACING_AFTER_FACTOR)
        lines.append(rf"\titlespacing*{{\section}}{{0pt}}{{{before}pt}}{{{after}pt}}")

    return lines


def build_font_size_command(style: StyleConfig) -> str:
    baseline_skip = _round_half_up(style.base_font_size_pt * BASELINE_SKIP_FACTOR)
    return rf"\fontsize{{{_fmt(style.base_font_size_pt)}pt}}{{{baseline_skip}pt}}\selectfont {FONT_SIZE_MARKER}"


def strip_style_injection(latex: str) -> str:
    """Undo a previous apply_style_to_latex (block + font-size directive)."""
    latex = remove_marked_block(latex, STYLE_BLOCK_START, STYLE_BLOCK_END)
    return remove_marked_line(latex, _FONTSIZE_BODY, FONT_SIZE_MARKER)


def apply_style_to_latex(latex: str, style: StyleConfig) -> str:
    """Inject ``style`` into ``latex``; safe to call repeatedly.

    1. Remove any previously injected block and font-size directive.
    2. Drop conflicting package loads (geometry, setspace, font packages,
       XeLaTeX font setup) so the injected settings are the only ones.
    3. Insert the marked block after the \\documentclass line.
    4. Insert the marked \\fontsize directive after \\begin{document}.

    A missing anchor skips that insertion and is logged, not raised.
    """
    result = strip_style_injection(latex)
    result = remove_commands(result, _CONFLICTING_COMMANDS)

    block = "\n".join([STYLE_BLOCK_START, *build_style_block(style, result), STYLE_BLOCK_END])
    inserted = insert_after_line(result, DOCUMENTCLASS_RE, block)
    if inserted is None:
        logger.warning("apply_style_to_latex: no \\documentclass found, style block skipped")
    else:
        result = inserted

    inserted = insert_after_line(result, BEGIN_DOCUMENT_RE, build_font_size_command(style))
    if inserted is None:
        logger.warning("apply_style_to_latex: no \\begin{document} found, font size skipped")
    else:
        result = inserted

    return result


# ── Decode ─────────────────────────────────────────────────────────────────


def _length_to_mm(raw: str) -> float | None:
    m = _LENGTH_RE.match(raw)
    if not m:
        return None
    value, unit = float(m.group(1)), m.group(2)
    if unit == "cm":
        return value * MM_PER_CM
    if unit == "in":
        return value * MM_PER_INCH
    return value


def _geometry_options(latex: str) -> dict[str, str]:
    m = _GEOMETRY_USEPACKAGE_RE.search(latex) or _GEOMETRY_CMD_RE.search(latex)
    if not m:
        return {}
    options = {}
    for part in m.group(1).split(","):
        key, sep, value = part.partition("=")
        if sep:
            options[key.strip()] = value.strip()
    return options


def _parse_margins(latex: str) -> dict[str, float]:
    options = _geometry_options(latex)
    margins: dict[str, float] = {}

    uniform = _length_to_mm(options["margin"]) if "margin" in options else None
    for side in ("top", "bottom", "left", "right"):
        value = _length_to_mm(options[side]) if side in options else None
        if value is None:
            value = uniform
        if value is not None:
            margins[f"margin_{side}_mm"] = value
    return margins


def _parse_font_size(latex: str) -> float | None:
    m = _MARKED_FONTSIZE_RE.search(latex)
    if m:
        return float(m.group(1))

    m = _DOCCLASS_OPTIONS_RE.search(latex)
    if m:
        size = _PT_OPTION_RE.search(m.group(1))
        if size:
            return _clamp(float(size.group(1)), DOCUMENTCLASS_FONT_SIZE_RANGE_PT)
    return None


def _parse_font_family(latex: str) -> str:
    for family, packages in FONT_FAMILY_DETECTION:
        if any(has_package(latex, pkg) for pkg in packages):
            return family
    return "default"


def parse_style_from_latex(latex: str) -> StyleConfig:
    """Read style parameters back out of arbitrary LaTeX.

    Each field is looked up independently; anything not found keeps its
    default. Numeric fields are clamped to the parse-back ranges.
    """
    values = DEFAULT_STYLE_CONFIG.model_dump()

    if "a4paper" in latex:
        values["page_size"] = "a4"

    font_size = _parse_font_size(latex)
    if font_size is not None:
        values["base_font_size_pt"] = font_size

    values.update(_parse_margins(latex))

    m = _SETSTRETCH_RE.search(latex)
    if m:
        values["line_height"] = float(m.group(1))

    m = _TITLESPACING_RE.search(latex)
    if m:
        values["section_spacing_pt"] = float(m.group(1))

    values["font_family"] = _parse_font_family(latex)

    for side in ("top", "bottom", "left", "right"):
        key = f"margin_{side}_mm"
        values[key] = _clamp(values[key], DECODE_MARGIN_RANGE_MM)
    values["base_font_size_pt"] = _clamp(values["base_font_size_pt"], DECODE_FONT_SIZE_RANGE_PT)
    values["line_height"] = _clamp(values["line_height"], DECODE_LINE_HEIGHT_RANGE)
    values["section_spacing_pt"] = _clamp(values["section_spacing_pt"], DECODE_SECTION_SPACING_RANGE_PT)

    return StyleConfig(**values)


# ── Validate ───────────────────────────────────────────────────────────────


def validate_styled_latex(latex: str) -> StyleValidation:
    """Cheap structural checks before sending LaTeX to the compiler."""
    if "\\documentclass" not in latex:
        return StyleValidation(valid=False, error="Missing \\documentclass")
    if "\\begin{document}" not in latex:
        return StyleValidation(valid=False, error="Missing \\begin{document}")
    if "\\end{document}" not in latex:
        return StyleValidation(valid=False, error="Missing \\end{document}")

    if (STYLE_BLOCK_START in latex) != (STYLE_BLOCK_END in latex):
        return StyleValidation(valid=False, error="Style block markers are unbalanced")

    return StyleValidation(valid=True)
