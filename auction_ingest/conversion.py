"""Invoice text extraction: Docling for PDFs, plain reads for text dumps."""

from __future__ import annotations

import importlib.util
import logging
import shutil
import time
from pathlib import Path
from typing import Any, Optional

from .errors import DocumentReadError
from .models import RawTextLine

log = logging.getLogger(__name__)

PAGE_BREAK = "\f"


def create_pdf_converter(
    *,
    num_threads: int = 4,
    enable_ocr: bool = True,
    document_timeout: Optional[float] = None,
) -> tuple[Any, str]:
    """Build a Docling ``DocumentConverter`` for scanned invoices.

    Returns:
        (converter, ocr_engine) where ``ocr_engine`` names the OCR backend
        in use, or ``"disabled"``.
    """
    t0 = time.perf_counter()

    from docling.datamodel.accelerator_options import AcceleratorOptions
    from docling.datamodel.base_models import InputFormat
    from docling.datamodel.pipeline_options import (
        EasyOcrOptions,
        OcrAutoOptions,
        PdfPipelineOptions,
        TesseractOcrOptions,
    )
    from docling.document_converter import DocumentConverter, PdfFormatOption

    accelerator_options = AcceleratorOptions(num_threads=max(1, num_threads))

    ocr_engine = "disabled"
    ocr_options = None
    if enable_ocr:
        if importlib.util.find_spec("easyocr") is not None:
            ocr_options, ocr_engine = EasyOcrOptions(), "easyocr"
        elif shutil.which("tesseract") is not None:
            ocr_options, ocr_engine = TesseractOcrOptions(), "tesseract"
        else:
            ocr_options, ocr_engine = OcrAutoOptions(), "auto"

    pipeline_options = PdfPipelineOptions(
        do_ocr=ocr_options is not None,
        accelerator_options=accelerator_options,
        document_timeout=document_timeout,
    )
    if ocr_options is not None:
        pipeline_options.ocr_options = ocr_options

    converter = DocumentConverter(
        format_options={
            InputFormat.PDF: PdfFormatOption(pipeline_options=pipeline_options),
        }
    )
    log.info(
        "Docling converter initialized (ocr=%s) in %.2fs",
        ocr_engine,
        time.perf_counter() - t0,
    )
    return converter, ocr_engine


def lines_from_text(text: str) -> list[RawTextLine]:
    """Split extracted text into page/line ordered :class:`RawTextLine` s."""
    lines: list[RawTextLine] = []
    for page_idx, page_text in enumerate(text.split(PAGE_BREAK), start=1):
        for line_idx, line in enumerate(page_text.splitlines()):
            lines.append(RawTextLine(page=page_idx, line_no=line_idx, text=line))
    return lines


def _item_lines(item: Any) -> list[str]:
    """Text lines for one Docling item; table rows become space-joined cells."""
    grid = getattr(getattr(item, "data", None), "grid", None)
    if grid is not None:
        rows = []
        for row in grid:
            cells: list[Any] = []
            for cell in row:
                # Spanning cells repeat the same object across the grid.
                if not any(cell is seen for seen in cells):
                    cells.append(cell)
            text = " ".join(c.text.strip() for c in cells if c.text and c.text.strip())
            if text:
                rows.append(text)
        return rows
    text = getattr(item, "text", None)
    return [text] if text else []


def _pdf_pages_text(converter: Any, pdf_path: Path) -> list[str]:
    result = converter.convert(source=str(pdf_path))
    doc = result.document
    page_numbers: list[Optional[int]] = sorted(getattr(doc, "pages", {}) or {}) or [None]

    pages: list[str] = []
    emitted: set[Any] = set()
    for page_no in page_numbers:
        lines: list[str] = []
        for item, _level in doc.iterate_items(page_no=page_no):
            # A table spanning pages is yielded once per page.
            ref = getattr(item, "self_ref", None) or id(item)
            if ref in emitted:
                continue
            emitted.add(ref)
            lines.extend(_item_lines(item))
        pages.append("\n".join(lines))
    return pages


class TextExtractor:
    """Callable turning an invoice file into ordered text lines.

    The Docling converter is only built when the first PDF is read.
    """

    def __init__(
        self,
        *,
        num_threads: int = 4,
        enable_ocr: bool = True,
        document_timeout: Optional[float] = None,
    ):
        self.num_threads = num_threads
        self.enable_ocr = enable_ocr
        self.document_timeout = document_timeout
        self._converter: Any = None

    @property
    def converter(self) -> Any:
        if self._converter is None:
            self._converter, _ = create_pdf_converter(
                num_threads=self.num_threads,
                enable_ocr=self.enable_ocr,
                document_timeout=self.document_timeout,
            )
        return self._converter

    def __call__(self, path: Path) -> list[RawTextLine]:
        t0 = time.perf_counter()
        try:
            if path.suffix.lower() == ".pdf":
                pages = _pdf_pages_text(self.converter, path)
                text = PAGE_BREAK.join(pages)
            else:
                text = path.read_text(encoding="utf-8")
        except Exception as exc:
            raise DocumentReadError(f"failed to extract text from {path.name}: {exc}") from exc

        lines = lines_from_text(text)
        log.debug(
            "Extracted %s line(s) from %s in %.2fs",
            len(lines),
            path.name,
            time.perf_counter() - t0,
        )
        return lines
