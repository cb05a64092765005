from unittest import mock

import pytest
import requests

from objectify_recs.exceptions import DescriptorServiceError
from objectify_recs.gemini_client import GeminiClient, extract_text
from objectify_recs.prompts import DESCRIPTOR_PROMPT, STRUCTURED_PROMPT


def fake_response(status_code=200, json_data=None, text=""):
    resp = mock.Mock(spec=requests.Response)
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    resp.text = text
    if isinstance(json_data, Exception):
        resp.json.side_effect = json_data
    else:
        resp.json.return_value = json_data
    return resp


def candidate(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def client():
    return GeminiClient(api_key="test-key", model="gemini-test", timeout=5)


class TestDescribeImage:

    def test_posts_prompt_and_inline_image(self, client):
        with mock.patch("objectify_recs.gemini_client.requests.post") as post:
            post.return_value = fake_response(json_data=candidate("Lamp\n0.5"))
            text = client.describe_image("aGVsbG8=", mime_type="image/png")

        assert text == "Lamp\n0.5"
        args, kwargs = post.call_args
        assert args[0] == (
            "https://generativelanguage.googleapis.com/v1beta/models/gemini-test:generateContent"
        )
        assert kwargs["params"] == {"key": "test-key"}
        assert kwargs["timeout"] == 5

        parts = kwargs["json"]["contents"][0]["parts"]
        assert parts[0] == {"text": DESCRIPTOR_PROMPT}
        assert parts[1] == {"inlineData": {"mimeType": "image/png", "data": "aGVsbG8="}}
        assert "generationConfig" not in kwargs["json"]

    def test_structured_request(self, client):
        with mock.patch("objectify_recs.gemini_client.requests.post") as post:
            post.return_value = fake_response(json_data=candidate("{}"))
            client.describe_image("aGVsbG8=", structured=True)

        body = post.call_args.kwargs["json"]
        assert body["contents"][0]["parts"][0]["text"] == STRUCTURED_PROMPT
        assert body["generationConfig"]["responseMimeType"] == "application/json"
        assert "region" in body["generationConfig"]["responseSchema"]["required"]

    def test_custom_prompt(self, client):
        with mock.patch("objectify_recs.gemini_client.requests.post") as post:
            post.return_value = fake_response(json_data=candidate("ok"))
            client.describe_image("aGVsbG8=", prompt="Describe it")

        assert post.call_args.kwargs["json"]["contents"][0]["parts"][0]["text"] == "Describe it"

    def test_uses_session_when_given(self):
        session = mock.Mock()
        session.post.return_value = fake_response(json_data=candidate("ok"))
        client = GeminiClient(api_key="k", session=session)

        assert client.describe_image("aGVsbG8=") == "ok"
        session.post.assert_called_once()

    def test_network_error(self, client):
        with mock.patch("objectify_recs.gemini_client.requests.post") as post:
            post.side_effect = requests.ConnectionError("unreachable")
            with pytest.raises(DescriptorServiceError):
                client.describe_image("aGVsbG8=")
        assert post.call_count == 1

    def test_http_error_carries_status(self, client):
        error_body = {"error": {"message": "API key not valid"}}
        with mock.patch("objectify_recs.gemini_client.requests.post") as post:
            post.return_value = fake_response(status_code=400, json_data=error_body)
            with pytest.raises(DescriptorServiceError) as exc_info:
                client.describe_image("aGVsbG8=")

        assert exc_info.value.status_code == 400
        assert "API key not valid" in str(exc_info.value)
        # No retry
        assert post.call_count == 1

    def test_invalid_json(self, client):
        with mock.patch("objectify_recs.gemini_client.requests.post") as post:
            post.return_value = fake_response(json_data=ValueError("bad json"))
            with pytest.raises(DescriptorServiceError):
                client.describe_image("aGVsbG8=")

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.setattr("objectify_recs.gemini_client.GEMINI_API_KEY", "")
        client = GeminiClient()
        with mock.patch("objectify_recs.gemini_client.requests.post") as post:
            with pytest.raises(DescriptorServiceError):
                client.describe_image("aGVsbG8=")
        post.assert_not_called()

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        assert GeminiClient().api_key == "env-key"


class TestExtractText:

    def test_first_candidate_first_part(self):
        data = {"candidates": [
            {"content": {"parts": [{"text": "first"}, {"text": "second"}]}},
            {"content": {"parts": [{"text": "other"}]}},
        ]}
        assert extract_text(data) == "first"

    @pytest.mark.parametrize("data", [
        {},
        {"candidates": []},
        {"candidates": [{"content": {}}]},
        {"candidates": [{"content": {"parts": [{}]}}]},
        None,
    ])
    def test_malformed(self, data):
        with pytest.raises(DescriptorServiceError):
            extract_text(data)

    def test_blocked_prompt_reason(self):
        with pytest.raises(DescriptorServiceError, match="SAFETY"):
            extract_text({"promptFeedback": {"blockReason": "SAFETY"}})
