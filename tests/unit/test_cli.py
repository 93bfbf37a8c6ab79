"""Unit tests for argument parsing and the CLI entry point."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import pytest

from customer_check import kinds
from customer_check.ingestion.cli import build_parser, parse_file_source, read_links_file
from customer_check.ingestion import main as main_mod
from customer_check.ingestion.main import _amain


class TestParseFileSource:
    def test_local_path(self) -> None:
        assert parse_file_source("docs/bill.pdf:evn_bill") == ("docs/bill.pdf", kinds.EVN_BILL)

    def test_url_keeps_scheme_colon(self) -> None:
        assert parse_file_source("https://example.com:8443/cic.pdf:cic_report") == (
            "https://example.com:8443/cic.pdf",
            kinds.CIC_REPORT,
        )

    def test_url_without_kind(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError, match="expected 'file_path:source_type'"):
            parse_file_source("https://example.com/cic.pdf")

    def test_unknown_kind(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError, match="unknown document kind"):
            parse_file_source("lease.pdf:rental_agreement")


class TestBuildParser:
    def test_flags(self) -> None:
        args = build_parser().parse_args(
            [
                "a.pdf",
                "--input",
                "b.jpg",
                "--file-source",
                "c.jpg:site_visit_photos",
                "--concurrency",
                "5",
                "--skip-analysis",
                "--lang",
                "eng+vie",
            ]
        )
        assert args.inputs == ["a.pdf"]
        assert args.input == ["b.jpg"]
        assert args.file_source == [("c.jpg", kinds.SITE_VISIT_PHOTOS)]
        assert args.concurrency == 5
        assert args.skip_analysis is True
        assert args.lang == "eng+vie"

    def test_log_json_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        assert build_parser().parse_args(["a.pdf"]).log_json is False
        monkeypatch.setenv("CC_LOG_JSON", "true")
        assert build_parser().parse_args(["a.pdf"]).log_json is True

    def test_rejects_unknown_source(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--source", "tax_return", "a.pdf"])


class TestLinksFile:
    def test_skips_blanks_and_comments(self, tmp_path: Path) -> None:
        p = tmp_path / "links.txt"
        p.write_text("# intake batch\nhttps://x/a.pdf\n\n  b.jpg  \n#c.jpg\n", encoding="utf-8")
        assert read_links_file(str(p)) == ["https://x/a.pdf", "b.jpg"]


class TestMain:
    async def test_no_inputs_exits_2(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert await _amain([]) == 2

    async def test_ocr_only_run_writes_results(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / "note.txt").write_text("Tax code 0312345678", encoding="utf-8")
        out = tmp_path / "results.json"

        code = await _amain(
            ["--input", str(tmp_path / "note.txt"), "--skip-analysis", "--results-json", str(out)]
        )

        assert code == 0
        payload = json.loads(out.read_text(encoding="utf-8"))
        assert payload["results"][0]["text"] == "Tax code 0312345678"
        assert payload["stats"]["successful"] == 1
        assert (tmp_path / "note.txt").exists()

    async def test_failures_exit_2(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / "bundle.zip").write_bytes(b"PK")

        assert await _amain(["--skip-analysis", str(tmp_path / "bundle.zip")]) == 2

    async def test_one_http_client_per_run(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / "note.txt").write_text("hello", encoding="utf-8")
        seen: dict[str, object] = {}
        real_resolver = main_mod.SourceResolver
        real_vision = main_mod.VisionClient.from_env

        def resolver(**kw):
            seen["resolver"] = kw["http_client"]
            return real_resolver(**kw)

        def vision(**kw):
            seen["vision"] = kw["http_client"]
            return real_vision(**kw)

        monkeypatch.setattr(main_mod, "SourceResolver", resolver)
        monkeypatch.setattr(main_mod.VisionClient, "from_env", vision)

        assert await _amain(["--skip-analysis", str(tmp_path / "note.txt")]) == 0

        assert seen["resolver"] is seen["vision"]
        assert seen["resolver"].is_closed
