"""Unit tests for recovering JSON from model answers."""

from __future__ import annotations

import pytest

from customer_check.analysis.parsing import extract_json_payload, parse_fields
from customer_check.errors import GeminiResponseError


class TestExtractJsonPayload:
    def test_json_fence(self) -> None:
        content = '```json\n{"client_name": "ACME"}\n```'
        assert extract_json_payload(content) == '{"client_name": "ACME"}'

    def test_plain_fence(self) -> None:
        assert extract_json_payload('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_leading_and_trailing_prose(self) -> None:
        content = 'Here is the extraction:\n{"a": {"b": 2}}\nLet me know if you need more.'
        assert extract_json_payload(content) == '{"a": {"b": 2}}'

    def test_balanced_braces_inside_strings(self) -> None:
        content = 'Result: {"note": "range {1} to {2}", "nested": {"x": 1}} done'
        assert extract_json_payload(content) == '{"note": "range {1} to {2}", "nested": {"x": 1}}'

    def test_array_first(self) -> None:
        assert extract_json_payload('Loans: [{"a": 1}, {"b": 2}]') == '[{"a": 1}, {"b": 2}]'

    def test_no_payload(self) -> None:
        assert extract_json_payload("I could not read the document.") == ""

    def test_unterminated(self) -> None:
        assert extract_json_payload('{"a": {"b": 1}') == ""


class TestParseFields:
    def test_object(self) -> None:
        assert parse_fields('```json\n{"billing_amount": 1200000}\n```') == {"billing_amount": 1200000}

    def test_array_becomes_indexed_object(self) -> None:
        fields = parse_fields('[{"loan_type": "credit_card"}, {"loan_type": "overdrafts"}]')
        assert fields == {
            "item_0": {"loan_type": "credit_card"},
            "item_1": {"loan_type": "overdrafts"},
        }

    def test_missing_payload_raises(self) -> None:
        with pytest.raises(GeminiResponseError, match="could not extract JSON"):
            parse_fields("nothing here")

    def test_invalid_json_raises(self) -> None:
        with pytest.raises(GeminiResponseError, match="unmarshal response"):
            parse_fields("{'single': 'quotes'}")

    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
    def test_non_standard_constants_rejected(self, constant: str) -> None:
        with pytest.raises(GeminiResponseError, match=f"non-standard JSON constant {constant}"):
            parse_fields(f'{{"billing_amount": {constant}}}')
