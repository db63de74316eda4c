from types import SimpleNamespace

import pytest
from google.genai import errors

from meeting_transcriber.domain import GenerationRequest
from meeting_transcriber.exceptions import (
    ProviderNotConfiguredError,
    UpstreamServiceError,
)
from meeting_transcriber.infrastructure import GeminiLLMService


class FakeResponse:
    text = "## Summary"

    def model_dump(self, mode=None, exclude_none=False):
        return {"text": self.text}


def _client(generate_content):
    return SimpleNamespace(models=SimpleNamespace(generate_content=generate_content))


def _request():
    return GenerationRequest(
        system_prompt="sys",
        user_prompt="user",
        model="gemini-2.5-flash-lite",
        temperature=0.2,
        max_tokens=1200,
    )


def test_generate_passes_prompts_and_sampling():
    calls = []

    def generate_content(**kwargs):
        calls.append(kwargs)
        return FakeResponse()

    result = GeminiLLMService(_client(generate_content)).generate(_request())

    assert result.content == "## Summary"
    assert result.raw_response == {"text": "## Summary"}
    assert calls[0]["model"] == "gemini-2.5-flash-lite"
    assert calls[0]["contents"] == "user"
    assert calls[0]["config"] == {
        "system_instruction": "sys",
        "temperature": 0.2,
        "max_output_tokens": 1200,
    }


def test_api_error_is_upstream_error():
    def generate_content(**kwargs):
        raise errors.APIError(500, {"error": {"message": "backend down"}})

    with pytest.raises(UpstreamServiceError) as exc_info:
        GeminiLLMService(_client(generate_content)).generate(_request())

    assert exc_info.value.status_code == 500
    assert exc_info.value.provider == "gemini"


def test_missing_client_is_not_configured():
    with pytest.raises(ProviderNotConfiguredError):
        GeminiLLMService(None).generate(_request())
