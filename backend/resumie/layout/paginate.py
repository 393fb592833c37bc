"""Greedy page packing for a RenderPayload.

Heights are estimates, not text shaping: line counts come from character
counts divided by an average chars-per-line, scaled by per-block fudge
factors tuned to match the browser preview.

Pipeline: build_blocks → (split_bullet_block) → paginate_blocks.
"""

import math
import re

from resumie.core.constants import (
    BULLET_BLOCK_EXTRA_PX,
    BULLET_HEADER_CPL_FACTOR,
    BULLET_INDENT_CHARS,
    BULLET_MIN_CPL,
    HEADING_EXTRA_PX,
    TITLE_CONTACT_CPL_FACTOR,
    TITLE_CONTACT_SEPARATOR,
    TITLE_NAME_CPL_FACTOR,
    TITLE_NAME_LINE_FACTOR,
    TITLE_PADDING_PX,
)
from resumie.core.logger import logger
from resumie.layout.metrics import compute_page_metrics
from resumie.models import (
    BulletsBlock,
    BulletsItem,
    EditorSettings,
    HeadingBlock,
    PageMetrics,
    ParagraphBlock,
    RenderPayload,
    TitleBlock,
)

Block = TitleBlock | HeadingBlock | ParagraphBlock | BulletsBlock

_WHITESPACE_RE = re.compile(r"\s+")


def estimated_lines(text: str | None, chars_per_line: int) -> int:
    compacted = _WHITESPACE_RE.sub(" ", text or "").strip()
    if not compacted:
        return 0
    return max(1, math.ceil(len(compacted) / max(1, chars_per_line)))


def build_blocks(payload: RenderPayload) -> list[Block]:
    """Flatten a payload into render-order blocks: title, then heading + items per section."""
    blocks: list[Block] = [TitleBlock()]

    for section in payload.sections:
        blocks.append(HeadingBlock(
            id=f"{section.id}-heading",
            section_id=section.id,
            heading=section.heading,
        ))

        for index, item in enumerate(section.items):
            if isinstance(item, BulletsItem):
                blocks.append(BulletsBlock(
                    id=f"{section.id}-bullets-{index}",
                    section_id=section.id,
                    title=item.title,
                    subtitle=item.subtitle,
                    meta=item.meta,
                    bullets=tuple(item.bullets),
                ))
            else:
                blocks.append(ParagraphBlock(
                    id=f"{section.id}-paragraph-{index}",
                    section_id=section.id,
                    text=item.text,
                ))

    return blocks


def estimate_block_height(block: Block, payload: RenderPayload, metrics: PageMetrics) -> float:
    cpl = metrics.chars_per_line
    line_px = metrics.line_height_px
    density = metrics.density

    if isinstance(block, TitleBlock):
        title = payload.title
        name_lines = estimated_lines(title.name, math.floor(cpl * TITLE_NAME_CPL_FACTOR))
        subtitle_lines = estimated_lines(title.subtitle, cpl)
        contact_lines = estimated_lines(
            TITLE_CONTACT_SEPARATOR.join(title.contacts),
            math.floor(cpl * TITLE_CONTACT_CPL_FACTOR),
        )
        return (
            name_lines * metrics.heading_font_size_px * TITLE_NAME_LINE_FACTOR
            + subtitle_lines * line_px
            + contact_lines * line_px
            + TITLE_PADDING_PX
        )

    if isinstance(block, HeadingBlock):
        return metrics.heading_font_size_px + density.heading_bottom_gap + HEADING_EXTRA_PX

    if isinstance(block, ParagraphBlock):
        return estimated_lines(block.text, cpl) * line_px + density.paragraph_gap

    header_cpl = math.floor(cpl * BULLET_HEADER_CPL_FACTOR)
    header_lines = sum(
        estimated_lines(field, header_cpl)
        for field in (block.title, block.subtitle, block.meta)
        if field
    )
    bullet_cpl = max(BULLET_MIN_CPL, cpl - BULLET_INDENT_CHARS)
    bullet_lines = sum(estimated_lines(bullet, bullet_cpl) for bullet in block.bullets)

    return (
        header_lines * line_px
        + bullet_lines * line_px
        + max(0, len(block.bullets) - 1) * density.bullet_gap
        + density.paragraph_gap
        + BULLET_BLOCK_EXTRA_PX
    )


def _chunk(block: BulletsBlock, bullets: list[str], index: int, part_id: str | None = None) -> BulletsBlock:
    first = index == 0
    return BulletsBlock(
        id=part_id or block.id,
        section_id=block.section_id,
        title=block.title if first else None,
        subtitle=block.subtitle if first else None,
        meta=block.meta if first else None,
        bullets=tuple(bullets),
        continued=not first,
    )


def split_bullet_block(block: BulletsBlock, payload: RenderPayload, metrics: PageMetrics) -> list[BulletsBlock]:
    """Split a bullets block that is taller than one page into page-sized chunks.

    Only the first chunk keeps the title/subtitle/meta header; later chunks
    are marked ``continued``. Chunk ids are ``{id}-part-N``. Every bullet
    lands in exactly one chunk.
    """
    if estimate_block_height(block, payload, metrics) <= metrics.usable_height_px or len(block.bullets) <= 1:
        return [block]

    chunks: list[BulletsBlock] = []
    current: list[str] = []

    for bullet in block.bullets:
        candidate = _chunk(block, [*current, bullet], len(chunks))
        if current and estimate_block_height(candidate, payload, metrics) > metrics.usable_height_px:
            chunks.append(_chunk(block, current, len(chunks), f"{block.id}-part-{len(chunks) + 1}"))
            current = [bullet]
            continue
        current.append(bullet)

    if current:
        chunks.append(_chunk(block, current, len(chunks), f"{block.id}-part-{len(chunks) + 1}"))

    return chunks or [block]


def paginate_blocks(blocks: list[Block], payload: RenderPayload, metrics: PageMetrics) -> list[list[Block]]:
    """Pack blocks onto pages greedily. Always returns at least one page.

    A section heading moves to the next page when it and the block after it
    would not both fit. A block taller than a whole page is still placed
    (overflowing) rather than dropped.
    """
    pages: list[list[Block]] = [[]]
    used_height = 0.0

    def start_new_page():
        nonlocal used_height
        pages.append([])
        used_height = 0.0

    def push(block: Block):
        nonlocal used_height
        height = estimate_block_height(block, payload, metrics)
        if used_height > 0 and used_height + height > metrics.usable_height_px:
            start_new_page()
        pages[-1].append(block)
        used_height += height

    for index, block in enumerate(blocks):
        if isinstance(block, HeadingBlock):
            heading_height = estimate_block_height(block, payload, metrics)
            next_block = blocks[index + 1] if index + 1 < len(blocks) else None
            next_height = estimate_block_height(next_block, payload, metrics) if next_block else 0
            if used_height > 0 and used_height + heading_height + next_height > metrics.usable_height_px:
                start_new_page()
            pages[-1].append(block)
            used_height += heading_height
            continue

        if isinstance(block, BulletsBlock):
            for chunk in split_bullet_block(block, payload, metrics):
                push(chunk)
            continue

        push(block)

    return pages


def paginate_payload(payload: RenderPayload, settings: EditorSettings | None = None) -> tuple[PageMetrics, list[list[Block]]]:
    metrics = compute_page_metrics(settings or EditorSettings())
    pages = paginate_blocks(build_blocks(payload), payload, metrics)
    logger.debug(f"Paginated {len(payload.sections)} sections onto {len(pages)} page(s)")
    return metrics, pages
