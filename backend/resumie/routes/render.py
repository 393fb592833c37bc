"""Parse, style and paginate endpoints. Pure transforms, no external calls."""

from fastapi import APIRouter, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from resumie.core.constants import RATE_LIMIT_PER_MINUTE
from resumie.core.logger import logger
from resumie.latex.extractor import parse_latex_resume
from resumie.latex.style import apply_style_to_latex, parse_style_from_latex, validate_styled_latex
from resumie.layout.paginate import paginate_payload
from resumie.models import (
    LatexRequest,
    PaginateRequest,
    PaginateResponse,
    RenderPayload,
    ResumeTextRequest,
    StyleApplyRequest,
    StyleApplyResponse,
    StyleConfig,
)
from resumie.text.plain_parser import derive_render_payload_from_resume_text, parse_resume_plain_text

router = APIRouter(prefix="/api", tags=["Render"])
limiter = Limiter(key_func=get_remote_address)


@router.post("/parse/latex", response_model=RenderPayload)
@limiter.limit(f"{RATE_LIMIT_PER_MINUTE}/minute")
async def parse_latex(request: Request, body: LatexRequest):
    """Structured resume from generated LaTeX. Never fails on malformed input."""
    return parse_latex_resume(body.latex)


@router.post("/parse/text", response_model=RenderPayload)
@limiter.limit(f"{RATE_LIMIT_PER_MINUTE}/minute")
async def parse_text(request: Request, body: ResumeTextRequest):
    if body.strict:
        return parse_resume_plain_text(body.text)
    return derive_render_payload_from_resume_text(body.text, body.jd_text)


@router.post("/style/apply", response_model=StyleApplyResponse)
@limiter.limit(f"{RATE_LIMIT_PER_MINUTE}/minute")
async def apply_style(request: Request, body: StyleApplyRequest):
    """Inject the style block and report whether the result is compilable-looking.

    An invalid result is still returned (200) so the editor can show it next
    to the validation error.
    """
    styled = apply_style_to_latex(body.latex, body.style_config)
    validation = validate_styled_latex(styled)
    if not validation.valid:
        logger.warning(f"Styled LaTeX failed validation: {validation.error}")
    return StyleApplyResponse(latex=styled, validation=validation)


@router.post("/style/parse", response_model=StyleConfig)
@limiter.limit(f"{RATE_LIMIT_PER_MINUTE}/minute")
async def parse_style(request: Request, body: LatexRequest):
    return parse_style_from_latex(body.latex)


@router.post("/paginate", response_model=PaginateResponse)
@limiter.limit(f"{RATE_LIMIT_PER_MINUTE}/minute")
async def paginate(request: Request, body: PaginateRequest):
    metrics, pages = paginate_payload(body.payload, body.settings)
    return PaginateResponse(metrics=metrics, pages=pages, page_count=len(pages))
