"""Tests for the remote captioner."""

import asyncio
import base64
import json
import re

import httpx
import pytest

from vision_renamer.captioner import (
    MAX_CAPTION_LENGTH,
    PLACEHOLDER_CAPTION,
    CaptionFailure,
    extract_text,
    sanitize_caption,
)

from .conftest import FakeCaptionAPI, make_captioner


def run_caption(handler, content=b"\x89PNG", content_type="image/png"):
    async def go():
        captioner = make_captioner(handler)
        try:
            return await captioner.caption(content, content_type)
        finally:
            await captioner.aclose()

    return asyncio.run(go())


def test_sanitize_caption():
    """Test whitespace becomes hyphens and unsafe characters are dropped."""
    assert sanitize_caption("  Blue Sky over\tMountains!  ") == "blue-sky-over-mountains"
    assert sanitize_caption("Café_au_lait & croissants") == "cafaulait--croissants"


def test_sanitize_caption_truncates():
    """Test captions are cut to 190 characters."""
    cleaned = sanitize_caption("word " * 100)
    assert len(cleaned) == MAX_CAPTION_LENGTH
    assert re.fullmatch(r"[a-z0-9-]*", cleaned)


def test_caption_request_shape(fake_api):
    """Test one request carries the prompt, the base64 image and the key."""
    fake_api.captions = ["Blue sky over mountains"]
    content = b"\xff\xd8\xff\xe0jpeg-bytes"

    caption = run_caption(fake_api, content=content, content_type="image/jpeg")

    assert caption == "blue-sky-over-mountains"
    assert len(fake_api.requests) == 1

    request = fake_api.requests[0]
    assert request.url.path.endswith("/models/test-model:generateContent")
    assert request.headers["x-goog-api-key"] == "test-key"

    body = json.loads(request.content)
    parts = body["contents"][0]["parts"]
    assert "hyphens" in parts[0]["text"]
    assert parts[1]["inline_data"]["mime_type"] == "image/jpeg"
    assert base64.b64decode(parts[1]["inline_data"]["data"]) == content


def test_caption_is_filename_safe():
    """Test long noisy model output is made safe."""
    noisy = "A Very, Very LONG description: with punctuation; and   spaces " * 10
    caption = run_caption(FakeCaptionAPI(captions=[noisy]))

    assert len(caption) <= MAX_CAPTION_LENGTH
    assert re.fullmatch(r"[a-z0-9-]*", caption)
    assert not any(ch.isspace() for ch in caption)


def test_empty_text_uses_placeholder():
    """Test a valid response without text falls back to the placeholder."""
    def handler(request):
        return httpx.Response(200, json={"candidates": [{"content": {"parts": []}}]})

    assert run_caption(handler) == PLACEHOLDER_CAPTION


def test_no_candidates_uses_placeholder():
    """Test an empty candidates list also falls back to the placeholder."""
    def handler(request):
        return httpx.Response(200, json={"candidates": []})

    assert run_caption(handler) == PLACEHOLDER_CAPTION


def test_http_error_fails():
    """Test a rejected call raises CaptionFailure."""
    with pytest.raises(CaptionFailure, match="500"):
        run_caption(FakeCaptionAPI(status_code=500))


def test_transport_error_fails():
    """Test network errors raise CaptionFailure."""
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(CaptionFailure):
        run_caption(handler)


def test_invalid_json_fails():
    """Test a non-JSON body raises CaptionFailure."""
    def handler(request):
        return httpx.Response(200, content=b"<html>oops</html>")

    with pytest.raises(CaptionFailure, match="invalid JSON"):
        run_caption(handler)


def test_prompt_block_uses_placeholder():
    """Test a blocked prompt without candidates falls back to the placeholder."""
    def handler(request):
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

    assert run_caption(handler) == PLACEHOLDER_CAPTION


def test_non_object_response_fails():
    """Test a JSON body that is not an object raises CaptionFailure."""
    def handler(request):
        return httpx.Response(200, json=["not", "a", "response"])

    with pytest.raises(CaptionFailure, match="not an object"):
        run_caption(handler)


def test_bad_candidates_fails():
    """Test a candidates value that is not a list raises CaptionFailure."""
    def handler(request):
        return httpx.Response(200, json={"candidates": "oops"})

    with pytest.raises(CaptionFailure, match="bad candidates"):
        run_caption(handler)


def test_unusable_text_fails():
    """Test text with nothing filename-safe in it raises CaptionFailure."""
    with pytest.raises(CaptionFailure, match="Unusable"):
        run_caption(FakeCaptionAPI(captions=["!!!???"]))


def test_non_image_is_rejected_without_a_call(fake_api):
    """Test non-image media types never reach the API."""
    with pytest.raises(CaptionFailure, match="Not an image"):
        run_caption(fake_api, content=b"hello", content_type="text/plain")
    assert fake_api.requests == []


def test_extract_text_joins_parts():
    """Test multiple text parts are concatenated."""
    data = {"candidates": [{"content": {"parts": [{"text": "red-"}, {"text": "car"}]}}]}
    assert extract_text(data) == "red-car"
