"""Unit test conftest: no network, API keys or OCR binaries required."""

from __future__ import annotations

from pathlib import Path

import pytest

from customer_check.ingestion.types import ResolvedSource


@pytest.fixture
def make_source(tmp_path: Path):
    """Write ``data`` to a temp file and wrap it as a resolved local source."""

    def _make(name: str, data: bytes = b"", media_type: str = "") -> ResolvedSource:
        path = tmp_path / name
        path.write_bytes(data)
        return ResolvedSource(
            local_path=str(path),
            source_url=str(path),
            filename=name,
            media_type=media_type,
            downloaded=False,
        )

    return _make


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """Generate a 1-page PDF with 3 lines via fpdf2."""
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", size=12)
    pdf.cell(text="Certificate of Business Registration")
    pdf.ln()
    pdf.cell(text="Company name: Saigon Solar Trading JSC")
    pdf.ln()
    pdf.cell(text="Tax code: 0312345678")
    return bytes(pdf.output())


@pytest.fixture
def empty_pdf_bytes() -> bytes:
    """Generate a 1-page PDF with no text content (a scan, as far as pypdf can tell)."""
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.add_page()
    return bytes(pdf.output())
