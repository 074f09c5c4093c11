"""Tests for the Gemini generateContent client."""

import json

import httpx
import pytest

from config.exceptions import ConfigMissingError, MalformedResponseError, RemoteCallFailedError
from tools.gemini_client import GENERATION_CONFIG, GeminiClient


def _candidate(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class TestGenerate:
    def test_posts_prompt_and_returns_text(self, settings, mock_http):
        http, requests = mock_http(lambda r: httpx.Response(200, json=_candidate('{"episode_number": 5}')))
        client = GeminiClient(settings, http_client=http)

        assert client.generate("Unlock episode 5") == '{"episode_number": 5}'

        request = requests[0]
        assert request.method == "POST"
        assert request.url.path.endswith("/models/gemini-2.5-flash:generateContent")
        assert request.url.params["key"] == "test-gemini-key"
        body = json.loads(request.content)
        assert body["contents"][0]["parts"][0]["text"] == "Unlock episode 5"
        assert body["generationConfig"] == GENERATION_CONFIG
        assert client.total_calls == 1

    def test_model_override(self, settings, mock_http):
        http, requests = mock_http(lambda r: httpx.Response(200, json=_candidate("ok")))
        GeminiClient(settings, http_client=http).generate("hi", model="gemini-2.0-pro")
        assert "gemini-2.0-pro:generateContent" in requests[0].url.path

    def test_missing_key_raises_before_any_call(self, settings, mock_http):
        http, requests = mock_http(lambda r: httpx.Response(200, json=_candidate("ok")))
        no_key = settings.model_copy(update={"gemini_api_key": ""})
        with pytest.raises(ConfigMissingError):
            GeminiClient(no_key, http_client=http).generate("hi")
        assert requests == []

    def test_non_2xx_raises_remote_call_failed(self, settings, mock_http):
        http, _ = mock_http(lambda r: httpx.Response(403, text="API key invalid"))
        with pytest.raises(RemoteCallFailedError) as exc_info:
            GeminiClient(settings, http_client=http).generate("hi")
        assert exc_info.value.status_code == 403
        assert exc_info.value.body == "API key invalid"

    def test_transport_error_raises_remote_call_failed(self, settings, mock_http):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        http, _ = mock_http(handler)
        with pytest.raises(RemoteCallFailedError):
            GeminiClient(settings, http_client=http).generate("hi")

    def test_missing_candidate_text_is_malformed(self, settings, mock_http):
        http, _ = mock_http(lambda r: httpx.Response(200, json={"candidates": []}))
        with pytest.raises(MalformedResponseError) as exc_info:
            GeminiClient(settings, http_client=http).generate("hi")
        assert "candidates" in exc_info.value.raw_response

    def test_context_manager_closes_client(self, settings, mock_http):
        http, _ = mock_http(lambda r: httpx.Response(200, json=_candidate("ok")))
        with GeminiClient(settings, http_client=http) as client:
            client.generate("hi")
        assert http.is_closed
