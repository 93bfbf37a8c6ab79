"""External-binary helpers: image repair and PDF page rasterization."""

from __future__ import annotations

import glob
import logging
import os
import tempfile

from customer_check.errors import OcrError
from customer_check.ingestion.ocr.commands import run_command

logger = logging.getLogger(__name__)


class ImageConverter:
    """Re-encode a possibly corrupted image as PNG (ImageMagick, then ffmpeg)."""

    def __init__(self, *, temp_dir: str | None = None) -> None:
        self._temp_dir = temp_dir

    async def to_png(self, image_path: str) -> str:
        fd, out = tempfile.mkstemp(
            prefix=f"converted_{os.path.basename(image_path)}.",
            suffix=".png",
            dir=self._temp_dir,
        )
        os.close(fd)
        try:
            try:
                await run_command("convert", image_path, "-quality", "95", out)
            except OcrError as e:
                logger.info("ImageMagick conversion failed (%s), trying ffmpeg", e)
                await run_command("ffmpeg", "-i", image_path, "-y", "-frames:v", "1", out)
            if os.path.getsize(out) == 0:
                raise OcrError("converted image file is empty or doesn't exist")
        except BaseException:
            if os.path.exists(out):
                os.unlink(out)
            raise
        return out


class PdfRasterizer:
    """Render PDF pages to PNG files with poppler's ``pdftoppm``."""

    async def render(self, pdf_path: str, out_dir: str, *, dpi: int) -> list[str]:
        prefix = os.path.join(out_dir, "page")
        await run_command("pdftoppm", "-r", str(dpi if dpi > 0 else 300), "-png", pdf_path, prefix)
        # pdftoppm zero-pads page numbers per document, so lexical order is page order
        images = sorted(glob.glob(prefix + "-*.png"))
        if not images:
            raise OcrError("ocr fallback: no images produced from PDF")
        return images
