"""Compile LaTeX to PDF through the external LaTeX-online service.

The document travels in the query string, so it is size-guarded before the
request. Transient transport errors are retried via tenacity; anything else
surfaces as CompileError with an HTTP-ish status for the route to return.
"""

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from resumie.config import load_settings
from resumie.core.constants import MAX_LATEX_LENGTH
from resumie.core.errors import CompileError
from resumie.core.logger import logger

# Transient errors worth retrying
_RETRYABLE = (httpx.TimeoutException, httpx.ConnectError)

_ERROR_SNIPPET_CHARS = 1500


@retry(
    stop=stop_after_attempt(2),
    wait=wait_exponential(min=1, max=5),
    retry=retry_if_exception_type(_RETRYABLE),
    reraise=True,
)
async def _fetch_pdf(client: httpx.AsyncClient, url: str, params: dict) -> httpx.Response:
    return await client.get(url, params=params, headers={"Accept": "application/pdf"})


async def compile_latex(latex: str, client: httpx.AsyncClient | None = None) -> bytes:
    """Compile ``latex`` with pdflatex on the remote service and return PDF bytes.

    Raises CompileError(413) when the document is too long for the query
    string, 400 when the service reports a compile error, 502 when it cannot
    be reached.
    """
    if len(latex) > MAX_LATEX_LENGTH:
        logger.warning(f"LaTeX too long for external compile: {len(latex)} chars")
        raise CompileError(
            413,
            f"Resume too long to compile via external service. "
            f"LaTeX is {len(latex)} characters. Maximum is {MAX_LATEX_LENGTH}.",
        )

    settings = load_settings()
    params = {"text": latex, "force": "true", "command": "pdflatex"}

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=settings.latex_compile_timeout)

    try:
        response = await _fetch_pdf(client, settings.latex_compile_url, params)
    except httpx.HTTPError as e:
        logger.error(f"LaTeX compile service unreachable: {e}")
        raise CompileError(502, "PDF compilation service is unavailable. Please try again.") from e
    finally:
        if owns_client:
            await client.aclose()

    if response.status_code != httpx.codes.OK:
        logger.error(f"LaTeX compilation failed ({response.status_code}): {response.text[:_ERROR_SNIPPET_CHARS]}")
        raise CompileError(
            400,
            "PDF compilation failed with styled settings. "
            "Try adjusting style settings or resetting to defaults.",
        )

    logger.info(f"PDF compiled remotely ({len(response.content)} bytes)")
    return response.content
