"""Minimal PDF 1.4 writer: one full-page JPEG per page, no PDF library.

Object layout for N pages:
    1            Catalog
    2            Pages (Kids = every Page object)
    3 + 3i       Page i
    4 + 3i       content stream i (scale the image to the page, paint it)
    5 + 3i       Image XObject i (JPEG bytes embedded as-is, /DCTDecode)

Offsets are recorded while writing, so the xref table always matches the
bytes actually emitted.
"""

import base64
import binascii
import re
from dataclasses import dataclass

from resumie.core.constants import DEFAULT_PDF_FILENAME, PDF_PAGE_SIZE_POINTS, PDF_VERSION
from resumie.core.errors import ExportError
from resumie.core.logger import logger
from resumie.models import CapturedPage

_JPEG_SOI = b"\xff\xd8"
_DATA_URL_PREFIX_RE = re.compile(r"^data:image/[a-z]+;base64,", re.IGNORECASE)
_UNSAFE_FILENAME_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


@dataclass(frozen=True)
class CapturedImage:
    jpeg_bytes: bytes
    width: int
    height: int


class PdfObjectWriter:
    """Append-only byte buffer with an object-id → offset table.

    ``finish()`` writes the xref table and trailer and seals the writer;
    any later write raises.
    """

    def __init__(self, total_objects: int):
        self._buffer = bytearray()
        self._offsets: dict[int, int] = {}
        self._total_objects = total_objects
        self._sealed = False

    @property
    def offset(self) -> int:
        return len(self._buffer)

    def write(self, data: bytes | str):
        if self._sealed:
            raise ExportError("PDF writer is already finished")
        self._buffer += data.encode("latin-1") if isinstance(data, str) else data

    def write_object(self, object_id: int, body: bytes | str):
        self._offsets[object_id] = self.offset
        self.write(f"{object_id} 0 obj\n")
        self.write(body)
        self.write("\nendobj\n")

    def write_stream_object(self, object_id: int, dictionary: str, stream: bytes):
        """Stream object whose /Length is exactly ``len(stream)``."""
        self._offsets[object_id] = self.offset
        self.write(f"{object_id} 0 obj\n")
        entries = f"{dictionary} /Length {len(stream)}".strip()
        self.write(f"<< {entries} >>\nstream\n")
        self.write(stream)
        self.write("\nendstream")
        self.write("\nendobj\n")

    def finish(self, root_id: int = 1) -> bytes:
        xref_offset = self.offset
        size = self._total_objects + 1

        self.write(f"xref\n0 {size}\n")
        self.write("0000000000 65535 f \n")
        for object_id in range(1, size):
            self.write(f"{self._offsets.get(object_id, 0):010d} 00000 n \n")
        self.write(f"trailer\n<< /Size {size} /Root {root_id} 0 R >>\nstartxref\n{xref_offset}\n%%EOF")

        self._sealed = True
        return bytes(self._buffer)


def _num(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def create_pdf_binary(images: list[CapturedImage], page_size: str = "letter") -> bytes:
    if not images:
        raise ExportError("No pages available for export")

    width, height = PDF_PAGE_SIZE_POINTS.get(page_size, PDF_PAGE_SIZE_POINTS["letter"])
    page_ids = [3 + index * 3 for index in range(len(images))]

    writer = PdfObjectWriter(total_objects=2 + len(images) * 3)
    writer.write(f"%PDF-{PDF_VERSION}\n".encode("ascii") + b"%\xff\xff\xff\xff\n")

    writer.write_object(1, "<< /Type /Catalog /Pages 2 0 R >>")
    kids = " ".join(f"{page_id} 0 R" for page_id in page_ids)
    writer.write_object(2, f"<< /Type /Pages /Kids [{kids}] /Count {len(images)} >>")

    for index, image in enumerate(images):
        page_id, content_id, image_id = page_ids[index], page_ids[index] + 1, page_ids[index] + 2
        resource = f"/Im{index + 1}"

        writer.write_object(
            page_id,
            f"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 {_num(width)} {_num(height)}] "
            f"/Resources << /XObject << {resource} {image_id} 0 R >> >> /Contents {content_id} 0 R >>",
        )
        content = f"q\n{_num(width)} 0 0 {_num(height)} 0 0 cm\n{resource} Do\nQ"
        writer.write_stream_object(content_id, "", content.encode("ascii"))
        writer.write_stream_object(
            image_id,
            f"/Type /XObject /Subtype /Image /Width {image.width} /Height {image.height} "
            "/ColorSpace /DeviceRGB /BitsPerComponent 8 /Filter /DCTDecode",
            image.jpeg_bytes,
        )

    pdf = writer.finish()
    logger.info(f"PDF assembled: {len(images)} page(s), {len(pdf)} bytes")
    return pdf


def decode_captured_pages(pages: list[CapturedPage]) -> list[CapturedImage]:
    """Decode base64 page captures. Any bad page aborts the whole export."""
    if not pages:
        raise ExportError("No pages available for export")

    images = []
    for number, page in enumerate(pages, start=1):
        encoded = _DATA_URL_PREFIX_RE.sub("", page.jpeg_base64.strip())
        try:
            jpeg = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ExportError(f"Failed to capture page {number}: invalid image data") from e
        if not jpeg.startswith(_JPEG_SOI):
            raise ExportError(f"Failed to capture page {number}: not a JPEG image")
        images.append(CapturedImage(jpeg_bytes=jpeg, width=page.width, height=page.height))
    return images


def normalize_pdf_file_name(file_name: str | None) -> str:
    cleaned = _UNSAFE_FILENAME_RE.sub("_", (file_name or "").strip())
    base = cleaned or DEFAULT_PDF_FILENAME
    return base if base.lower().endswith(".pdf") else f"{base}.pdf"
