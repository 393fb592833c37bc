"""Centralized constants: no magic numbers in service code."""

# Style block markers (idempotent re-injection)
STYLE_BLOCK_START = "% ATSRESUMIE_STYLE_BLOCK_START"
STYLE_BLOCK_END = "% ATSRESUMIE_STYLE_BLOCK_END"
FONT_SIZE_MARKER = "% ATSRESUMIE_FONTSIZE"

# Style ranges: (min, max)
# Wire contract, enforced on incoming requests.
WIRE_MARGIN_RANGE_MM = (5, 50)
WIRE_FONT_SIZE_RANGE_PT = (8, 14)
WIRE_LINE_HEIGHT_RANGE = (0.8, 2.0)
WIRE_SECTION_SPACING_RANGE_PT = (0, 20)
# Editor controls.
UI_MARGIN_RANGE_MM = (5, 40)
UI_FONT_SIZE_RANGE_PT = (8, 14)
UI_LINE_HEIGHT_RANGE = (0.8, 2.0)
# Parse-back clamps. Narrower than the UI ranges: 13pt or 1.8 do not survive a round trip.
DECODE_MARGIN_RANGE_MM = (5, 40)
DECODE_FONT_SIZE_RANGE_PT = (8, 12)
DECODE_LINE_HEIGHT_RANGE = (0.8, 1.5)
DECODE_SECTION_SPACING_RANGE_PT = (0, 20)
DOCUMENTCLASS_FONT_SIZE_RANGE_PT = (8, 14)

BASELINE_SKIP_FACTOR = 1.2
SECTION_SPACING_AFTER_FACTOR = 0.5

# Unit conversions
MM_PER_CM = 10
MM_PER_INCH = 25.4
TWIPS_PER_MM = 56.693
DOCX_LINE_UNITS = 240  # DOCX line spacing is in 240ths of a line

# Preview geometry
CSS_DPI = 96
PAGE_SIZE_INCHES = {
    "letter": (8.5, 11),
    "a4": (8.27, 11.69),
}
MIN_CHARS_PER_LINE = 24
AVG_CHAR_WIDTH_EM = 0.54

LAYOUT_DENSITY = {
    "compact": {"paragraph_gap": 6, "bullet_gap": 2, "heading_bottom_gap": 5},
    "balanced": {"paragraph_gap": 8, "bullet_gap": 3, "heading_bottom_gap": 7},
    "airy": {"paragraph_gap": 11, "bullet_gap": 4, "heading_bottom_gap": 10},
}

# Height-estimation fudge factors (tuned against the browser preview)
TITLE_NAME_CPL_FACTOR = 0.65
TITLE_NAME_LINE_FACTOR = 1.15
TITLE_CONTACT_CPL_FACTOR = 0.95
TITLE_PADDING_PX = 14
TITLE_CONTACT_SEPARATOR = "  •  "
HEADING_EXTRA_PX = 9
BULLET_HEADER_CPL_FACTOR = 0.9
BULLET_INDENT_CHARS = 6
BULLET_MIN_CPL = 20
BULLET_BLOCK_EXTRA_PX = 6

# PDF
PDF_VERSION = "1.4"
PDF_PAGE_SIZE_POINTS = {
    "letter": (612, 792),
    "a4": (595.28, 841.89),
}
DEFAULT_PDF_FILENAME = "ATSResumie_Resume"

# Plain-text parsing
FALLBACK_CANDIDATE_NAME = "ATSResumie Candidate"
EMPTY_RESUME_PLACEHOLDER = "No resume content available for this generation."
MAX_CONTACTS = 4
MAX_CONTACT_LENGTH = 80
MAX_SUBTITLE_LENGTH = 80
MAX_BULLET_HEADER_PARTS = 3
HEADING_MAX_CHARS = 30
HEADING_MAX_WORDS = 4
HEADING_UPPERCASE_RATIO = 0.85
COLON_HEADING_MAX_CHARS = 50

# Export filenames
EXPORT_FILENAME_PREFIX = "ATSResumie"
EXPORT_LABEL_MAX_LENGTH = 60
DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# External compiler
MAX_LATEX_LENGTH = 30_000  # chars; the compile service takes LaTeX in the query string

# Rate limiting
RATE_LIMIT_PER_MINUTE = 30
