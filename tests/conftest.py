"""Shared fixtures: a fake captioning API served through httpx.MockTransport."""

import httpx
import pytest

from vision_renamer.captioner import VisionCaptioner


def gemini_response(text):
    """Build a generateContent response body holding ``text``."""
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": text}]},
                "finishReason": "STOP",
            }
        ]
    }


class FakeCaptionAPI:
    """Records requests and answers with queued captions."""

    def __init__(self, captions=None, status_code=200):
        self.captions = list(captions or [])
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": {"message": "nope"}})
        text = self.captions.pop(0) if self.captions else "a-caption"
        return httpx.Response(200, json=gemini_response(text))


def make_captioner(handler, **kwargs) -> VisionCaptioner:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return VisionCaptioner(api_key="test-key", model="test-model", client=client, **kwargs)


@pytest.fixture
def fake_api():
    return FakeCaptionAPI()
