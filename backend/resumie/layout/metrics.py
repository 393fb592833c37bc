"""Page geometry for the paginated preview, in CSS pixels (96 dpi)."""

import math

from resumie.core.constants import (
    AVG_CHAR_WIDTH_EM,
    CSS_DPI,
    LAYOUT_DENSITY,
    MIN_CHARS_PER_LINE,
    PAGE_SIZE_INCHES,
)
from resumie.models import Density, EditorSettings, PageMetrics


def page_dimensions_px(page_size: str) -> tuple[int, int]:
    width_in, height_in = PAGE_SIZE_INCHES.get(page_size, PAGE_SIZE_INCHES["letter"])
    return math.floor(width_in * CSS_DPI + 0.5), math.floor(height_in * CSS_DPI + 0.5)


def compute_page_metrics(settings: EditorSettings) -> PageMetrics:
    width_px, height_px = page_dimensions_px(settings.page_size)
    margin_px = settings.margin_inches * CSS_DPI
    content_width_px = width_px - margin_px * 2

    return PageMetrics(
        width_px=width_px,
        height_px=height_px,
        content_width_px=content_width_px,
        usable_height_px=height_px - margin_px * 2,
        margin_px=margin_px,
        line_height_px=settings.base_font_size * settings.line_height,
        heading_font_size_px=settings.base_font_size * settings.heading_scale,
        chars_per_line=max(
            MIN_CHARS_PER_LINE,
            math.floor(content_width_px / (settings.base_font_size * AVG_CHAR_WIDTH_EM)),
        ),
        density=Density(**LAYOUT_DENSITY[settings.layout]),
    )
