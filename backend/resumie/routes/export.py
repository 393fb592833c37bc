"""Export endpoints: PDF (captured pages or styled compile), DOCX, plain text.

Every export either returns the whole file or fails; there is no partial
output.
"""

from urllib.parse import quote

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from resumie.core.constants import DOCX_CONTENT_TYPE, RATE_LIMIT_PER_MINUTE
from resumie.core.errors import CompileError, ExportError
from resumie.core.logger import logger
from resumie.export.docx import build_docx_filename, generate_docx_bytes
from resumie.export.pdf import create_pdf_binary, decode_captured_pages, normalize_pdf_file_name
from resumie.export.text import build_export_filename, latex_to_plain_text
from resumie.latex.style import apply_style_to_latex, validate_styled_latex
from resumie.models import DocumentExportRequest, PdfExportRequest, StyledPdfExportRequest
from resumie.services.compiler import compile_latex

router = APIRouter(prefix="/api/export", tags=["Export"])
limiter = Limiter(key_func=get_remote_address)


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    ascii_name = filename.encode("ascii", "ignore").decode("ascii") or "download"
    disposition = f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"
    return Response(content=content, media_type=media_type, headers={"Content-Disposition": disposition})


@router.post("/pdf")
@limiter.limit(f"{RATE_LIMIT_PER_MINUTE}/minute")
async def export_pdf(request: Request, body: PdfExportRequest):
    """Assemble a PDF from page images already rasterised by the client."""
    try:
        images = decode_captured_pages(body.pages)
        pdf = create_pdf_binary(images, body.page_size)
    except ExportError as e:
        logger.warning(f"PDF export failed: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    return _attachment(pdf, "application/pdf", normalize_pdf_file_name(body.file_name))


@router.post("/pdf-with-style")
@limiter.limit(f"{RATE_LIMIT_PER_MINUTE}/minute")
async def export_pdf_with_style(request: Request, body: StyledPdfExportRequest):
    """Apply the style config, validate, then compile on the external service."""
    styled = apply_style_to_latex(body.latex, body.style_config)

    validation = validate_styled_latex(styled)
    if not validation.valid:
        logger.warning(f"Invalid styled LaTeX: {validation.error}")
        raise HTTPException(status_code=400, detail=f"Style application failed: {validation.error}")

    try:
        pdf = await compile_latex(styled)
    except CompileError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)

    return _attachment(pdf, "application/pdf", build_export_filename(body.job_label, "pdf"))


@router.post("/docx")
@limiter.limit(f"{RATE_LIMIT_PER_MINUTE}/minute")
async def export_docx(request: Request, body: DocumentExportRequest):
    try:
        docx = generate_docx_bytes(body.latex)
    except ExportError as e:
        logger.error(f"DOCX export failed: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return _attachment(docx, DOCX_CONTENT_TYPE, build_docx_filename(body.job_label))


@router.post("/txt")
@limiter.limit(f"{RATE_LIMIT_PER_MINUTE}/minute")
async def export_txt(request: Request, body: DocumentExportRequest):
    text = latex_to_plain_text(body.latex)
    return _attachment(
        text.encode("utf-8"),
        "text/plain; charset=utf-8",
        build_export_filename(body.job_label, "txt"),
    )
