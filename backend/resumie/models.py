"""Pydantic models for the resume document, style and layout contracts."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from resumie.core.constants import (
    WIRE_FONT_SIZE_RANGE_PT,
    WIRE_LINE_HEIGHT_RANGE,
    WIRE_MARGIN_RANGE_MM,
    WIRE_SECTION_SPACING_RANGE_PT,
)

PageSize = Literal["letter", "a4"]
LayoutDensity = Literal["compact", "balanced", "airy"]
LatexFontFamily = Literal["default", "times", "helvetica", "palatino", "charter", "bookman", "lmodern"]
EditorFontFamily = Literal["atelier-sans", "atelier-serif", "classic-serif", "clean-sans", "mono"]


class CamelModel(BaseModel):
    """Base for models whose JSON wire shape is camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── RenderPayload ──────────────────────────────────────────────────────────


class Title(CamelModel):
    name: str
    subtitle: str | None = None
    contacts: list[str] = Field(default_factory=list)


class ParagraphItem(CamelModel):
    type: Literal["paragraph"] = "paragraph"
    text: str = Field(..., min_length=1)


class BulletsItem(CamelModel):
    """One resume entry (job, project) with an optional header and its bullets."""
    type: Literal["bullets"] = "bullets"
    title: str | None = None
    subtitle: str | None = None
    meta: str | None = None
    bullets: list[str] = Field(..., min_length=1)


SectionItem = Annotated[Union[ParagraphItem, BulletsItem], Field(discriminator="type")]


class Section(CamelModel):
    id: str
    heading: str
    items: list[SectionItem]


class RenderPayload(CamelModel):
    """Canonical structured document: title block + ordered sections."""
    title: Title
    sections: list[Section]


# ── Style ──────────────────────────────────────────────────────────────────

_MARGIN = dict(ge=WIRE_MARGIN_RANGE_MM[0], le=WIRE_MARGIN_RANGE_MM[1])


class StyleConfig(CamelModel):
    """Style parameters round-tripped through LaTeX source.

    Field bounds are the server-side wire ranges. Parse-back clamps are
    narrower (see parse_style_from_latex) and are applied separately.
    """
    page_size: PageSize = "letter"
    margin_top_mm: float = Field(15, **_MARGIN)
    margin_bottom_mm: float = Field(15, **_MARGIN)
    margin_left_mm: float = Field(18, **_MARGIN)
    margin_right_mm: float = Field(18, **_MARGIN)
    base_font_size_pt: float = Field(10, ge=WIRE_FONT_SIZE_RANGE_PT[0], le=WIRE_FONT_SIZE_RANGE_PT[1])
    line_height: float = Field(1.15, ge=WIRE_LINE_HEIGHT_RANGE[0], le=WIRE_LINE_HEIGHT_RANGE[1])
    section_spacing_pt: float = Field(
        8, ge=WIRE_SECTION_SPACING_RANGE_PT[0], le=WIRE_SECTION_SPACING_RANGE_PT[1]
    )
    font_family: LatexFontFamily = "default"


DEFAULT_STYLE_CONFIG = StyleConfig()


class StyleValidation(BaseModel):
    valid: bool
    error: str | None = None


# ── Editor / layout ────────────────────────────────────────────────────────


class EditorSettings(CamelModel):
    font_family: EditorFontFamily = "atelier-sans"
    base_font_size: float = Field(11, gt=0)
    heading_scale: float = Field(1.35, gt=0)
    line_height: float = Field(1.45, gt=0)
    margin_inches: float = Field(0.65, ge=0)
    page_size: PageSize = "letter"
    section_spacing: float = 14
    layout: LayoutDensity = "balanced"


class Density(CamelModel):
    paragraph_gap: float
    bullet_gap: float
    heading_bottom_gap: float


class PageMetrics(CamelModel):
    """Per-render page geometry in CSS pixels. Derived, never persisted."""
    width_px: float
    height_px: float
    content_width_px: float
    usable_height_px: float
    margin_px: float
    line_height_px: float
    heading_font_size_px: float
    chars_per_line: int
    density: Density


# ── ResumeBlock (pagination-internal) ─────────────────────────────────────

_FROZEN = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class TitleBlock(BaseModel):
    model_config = _FROZEN
    id: str = "title"
    kind: Literal["title"] = "title"


class HeadingBlock(BaseModel):
    model_config = _FROZEN
    id: str
    kind: Literal["section-heading"] = "section-heading"
    section_id: str
    heading: str


class ParagraphBlock(BaseModel):
    model_config = _FROZEN
    id: str
    kind: Literal["paragraph"] = "paragraph"
    section_id: str
    text: str


class BulletsBlock(BaseModel):
    model_config = _FROZEN
    id: str
    kind: Literal["bullets"] = "bullets"
    section_id: str
    title: str | None = None
    subtitle: str | None = None
    meta: str | None = None
    bullets: tuple[str, ...]
    continued: bool = False


ResumeBlock = Annotated[
    Union[TitleBlock, HeadingBlock, ParagraphBlock, BulletsBlock],
    Field(discriminator="kind"),
]


# ── API request/response bodies ────────────────────────────────────────────


class LatexRequest(CamelModel):
    latex: str = Field(..., max_length=500_000)


class ResumeTextRequest(CamelModel):
    text: str = Field("", max_length=500_000)
    jd_text: str | None = None
    strict: bool = Field(False, description="Use the stricter standalone heading rules")


class StyleApplyRequest(CamelModel):
    latex: str = Field(..., max_length=500_000)
    style_config: StyleConfig


class StyleApplyResponse(CamelModel):
    latex: str
    validation: StyleValidation


class PaginateRequest(CamelModel):
    payload: RenderPayload
    settings: EditorSettings = Field(default_factory=EditorSettings)


class PaginateResponse(CamelModel):
    metrics: PageMetrics
    pages: list[list[ResumeBlock]]
    page_count: int


class CapturedPage(CamelModel):
    """One rasterised preview page as sent by the browser."""
    jpeg_base64: str
    width: int = Field(..., ge=1)
    height: int = Field(..., ge=1)


class PdfExportRequest(CamelModel):
    pages: list[CapturedPage]
    page_size: PageSize = "letter"
    file_name: str = ""


class StyledPdfExportRequest(CamelModel):
    latex: str = Field(..., max_length=500_000)
    style_config: StyleConfig = Field(default_factory=StyleConfig)
    job_label: str = ""


class DocumentExportRequest(CamelModel):
    latex: str = Field(..., max_length=500_000)
    job_label: str = ""
