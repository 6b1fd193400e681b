"""Tests for the two-layer response decoder."""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from conftest import make_envelope
from decoding import decode_envelope, decode_payload, decode_response, strip_fences
from errors import EnvelopeDecodeError, PayloadDecodeError
from models import ExtractedData


class TestDecodeEnvelope:
    def test_first_candidate_first_part(self):
        raw = json.dumps({
            "candidates": [
                {"content": {"parts": [{"text": "first"}, {"text": "second"}]}},
                {"content": {"parts": [{"text": "other candidate"}]}},
            ],
            "usageMetadata": {"totalTokenCount": 12},
        })
        assert decode_envelope(raw) == "first"

    def test_zero_candidates(self):
        with pytest.raises(EnvelopeDecodeError, match="no candidates"):
            decode_envelope('{"candidates": []}')

    def test_zero_parts(self):
        with pytest.raises(EnvelopeDecodeError, match="no parts"):
            decode_envelope('{"candidates": [{"content": {"parts": []}}]}')

    def test_missing_candidates_key(self):
        """Blocked prompts come back without candidates."""
        with pytest.raises(EnvelopeDecodeError):
            decode_envelope('{"promptFeedback": {"blockReason": "SAFETY"}}')

    def test_error_body(self):
        with pytest.raises(EnvelopeDecodeError):
            decode_envelope('{"error": {"code": 400, "message": "API key not valid"}}')

    def test_not_json(self):
        with pytest.raises(EnvelopeDecodeError):
            decode_envelope("Network Error: The Internet connection appears to be offline.")


class TestStripFences:
    def test_json_fence(self):
        assert strip_fences('```json\n{"a": "b"}\n```').strip() == '{"a": "b"}'

    def test_plain_fence(self):
        assert strip_fences('```\n{"a": "b"}\n```').strip() == '{"a": "b"}'

    def test_surrounding_whitespace(self):
        assert strip_fences('  \n {"a": "b"} \n ') == '{"a": "b"}'

    def test_no_fence(self):
        assert strip_fences('{"a": "b"}') == '{"a": "b"}'


class TestDecodePayload:
    def test_fenced_record(self):
        data = decode_payload('```json\n{"date": "2024-03-01", "category": "Finance"}\n```')
        assert data == ExtractedData(date="2024-03-01", category="Finance")

    def test_missing_fields_default_empty(self):
        data = decode_payload('{"contact": "ACME"}')
        assert data.contact == "ACME"
        assert data.date is None
        assert data.subcategory is None

    def test_unknown_fields_ignored(self):
        data = decode_payload('{"contact": "ACME", "confidence": 0.9, "notes": ["x"]}')
        assert data == ExtractedData(contact="ACME")

    def test_null_fields(self):
        assert decode_payload('{"contact": null}') == ExtractedData()

    def test_array_payload(self):
        with pytest.raises(PayloadDecodeError):
            decode_payload('[{"contact": "ACME"}]')

    def test_non_string_value(self):
        with pytest.raises(PayloadDecodeError):
            decode_payload('{"date": 20240301}')

    def test_invalid_json(self):
        with pytest.raises(PayloadDecodeError):
            decode_payload("I could not read this document.")

    def test_empty_text(self):
        with pytest.raises(PayloadDecodeError):
            decode_payload("```json\n```")


class TestDecodeResponse:
    def test_record_survives_envelope(self):
        record = ExtractedData(
            date="2023-11-05",
            contact="Stadtwerke München",
            description="Annual electricity bill with \"quoted\" text",
            document_type="Invoice",
            category="Household",
            subcategory="Utilities",
        )
        text = "```json\n" + record.model_dump_json(indent=2) + "\n```"
        assert decode_response(make_envelope(text)) == record

    def test_service_reply_example(self):
        raw = '{"candidates":[{"content":{"parts":[{"text":"```json\\n{\\"date\\":\\"2024-03-01\\",\\"category\\":\\"Finance\\"}\\n```"}]}}]}'
        assert decode_response(raw) == ExtractedData(date="2024-03-01", category="Finance")

    def test_envelope_failure_propagates(self):
        with pytest.raises(EnvelopeDecodeError):
            decode_response('{"candidates": []}')

    def test_payload_failure_propagates(self):
        with pytest.raises(PayloadDecodeError):
            decode_response(make_envelope("[1, 2, 3]"))
