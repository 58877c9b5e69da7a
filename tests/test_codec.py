from __future__ import annotations

import base64
import json

import pytest

from ghstore import codec
from ghstore.exceptions import CodecError


def _b64(text: str) -> bytes:
    return base64.b64encode(text.encode("utf-8"))


def test_round_trip_sequence_document() -> None:
    scans = [{"cardId": "B2", "ts": 2}, {"cardId": "A1", "ts": 1, "tags": ["x", None]}]
    assert codec.decode(codec.encode(scans)) == scans


def test_round_trip_mapping_document_with_unicode() -> None:
    vehicles = {"V1": {"plate": "ÄB-123", "owner": "Zoë"}, "V9": {"seats": 5, "ev": True}}
    assert codec.decode(codec.encode(vehicles)) == vehicles


def test_encode_uses_indented_json() -> None:
    encoded = codec.encode([{"cardId": "A1"}])
    text = base64.b64decode(encoded).decode("utf-8")
    assert text == json.dumps([{"cardId": "A1"}], indent=2)
    assert "\n  " in text


def test_decode_accepts_line_wrapped_base64() -> None:
    # GitHub returns content wrapped every 60 characters.
    document = {f"V{i}": {"n": i} for i in range(20)}
    raw = _b64(json.dumps(document)).decode("ascii")
    wrapped = "\n".join(raw[i : i + 60] for i in range(0, len(raw), 60)) + "\n"
    assert codec.decode(wrapped) == document


def test_decode_malformed_base64_raises_codec_error() -> None:
    with pytest.raises(CodecError):
        codec.decode(b"not*base64!!")


def test_decode_malformed_json_raises_codec_error() -> None:
    with pytest.raises(CodecError, match="not JSON"):
        codec.decode(_b64("[{\"cardId\": "))


def test_decode_non_utf8_raises_codec_error() -> None:
    with pytest.raises(CodecError, match="UTF-8"):
        codec.decode(base64.b64encode(b"\xff\xfe\x00"))


def test_decode_empty_blob_is_not_an_empty_document() -> None:
    with pytest.raises(CodecError):
        codec.decode(b"")
