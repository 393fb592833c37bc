"""Exceptions raised by the export paths.

Parsing never raises; it degrades to empty/default results. Byte assembly and
the external compiler do raise, and the routes turn these into HTTP errors.
"""


class ExportError(Exception):
    """A PDF/DOCX export could not be produced. No partial file is returned."""


class CompileError(Exception):
    """The external LaTeX compiler rejected the document or was unreachable."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(detail)
