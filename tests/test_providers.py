"""Provider contract tests.

These pin the wire format each client sends and the shared HTTP status
mapping, using ``httpx.MockTransport`` so no real network call is made.
Provider API shapes are consumed externally and drift is hard to detect.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from email.utils import format_datetime

import httpx
import pytest

from clipflow.config import ProviderCredentials
from clipflow.errors import (
    InvalidResponseError,
    ModelNotFoundError,
    ProviderAuthenticationError,
    ProviderError,
    ProviderNetworkError,
    ProviderNotConfiguredError,
    ProviderRateLimitError,
    ProviderServerError,
    ProviderTimeoutError,
)
from clipflow.providers import (
    AnthropicClient,
    BedrockClient,
    MockClient,
    OllamaClient,
    OpenAIClient,
    OpenRouterClient,
    ProviderClient,
    configured_clients,
    make_client,
)
from clipflow.providers._errors import parse_retry_after
from clipflow.providers.bedrock import inference_profile_id
from clipflow.providers.models import GENERIC_SYSTEM_PROMPT
from clipflow.types import ProviderKind
from tests.helpers import RecordingTransport, make_request

pytestmark = pytest.mark.contract

OPENAI_OK = {
    "id": "chatcmpl-1",
    "model": "gpt-4o-mini-2024-07-18",
    "choices": [{"index": 0, "message": {"role": "assistant", "content": "HELLO"}}],
}


def _openai(rec: RecordingTransport) -> OpenAIClient:
    return OpenAIClient("sk-test", transport=rec.transport)


# =============================================================================
# Status Mapping (shared table)
# =============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "expected"),
    [
        (401, ProviderAuthenticationError),
        (403, ProviderAuthenticationError),
        (429, ProviderRateLimitError),
        (404, ModelNotFoundError),
        (500, ProviderServerError),
        (503, ProviderServerError),
        (418, ProviderServerError),
    ],
)
async def test_status_codes_map_to_provider_errors(
    status: int, expected: type[ProviderError]
) -> None:
    rec = RecordingTransport(status_code=status, body={})

    with pytest.raises(expected) as exc_info:
        await _openai(rec).transform(make_request())

    assert type(exc_info.value) is expected
    assert exc_info.value.provider == "openai"
    assert exc_info.value.status_code == status


@pytest.mark.asyncio
async def test_5xx_message_is_labelled_with_provider_name() -> None:
    rec = RecordingTransport(status_code=503, body={"error": {"message": "overloaded"}})

    with pytest.raises(ProviderServerError, match=r"^OpenAI server error$"):
        await _openai(rec).transform(make_request())


@pytest.mark.asyncio
async def test_unmapped_status_prefers_structured_body_message() -> None:
    rec = RecordingTransport(
        status_code=400, body={"error": {"message": "max_tokens is too large"}}
    )

    with pytest.raises(ProviderServerError, match="max_tokens is too large"):
        await _openai(rec).transform(make_request())


@pytest.mark.asyncio
async def test_unmapped_status_without_body_message_reports_raw_status() -> None:
    rec = RecordingTransport(status_code=418, content=b"<html>teapot</html>")

    with pytest.raises(ProviderServerError, match=r"^HTTP 418$"):
        await _openai(rec).transform(make_request())


@pytest.mark.asyncio
async def test_429_with_retry_after_carries_duration() -> None:
    rec = RecordingTransport(status_code=429, body={}, headers={"Retry-After": "12"})

    with pytest.raises(ProviderRateLimitError) as exc_info:
        await _openai(rec).transform(make_request())

    assert exc_info.value.retry_after_s == 12.0
    assert "12 seconds" in str(exc_info.value)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "headers",
    [{}, {"Retry-After": "inf"}, {"Retry-After": "1e400"}],
    ids=["absent", "infinite", "overflow"],
)
async def test_429_without_usable_retry_after_has_no_duration(
    headers: dict[str, str],
) -> None:
    rec = RecordingTransport(status_code=429, body={}, headers=headers)

    with pytest.raises(ProviderRateLimitError) as exc_info:
        await _openai(rec).transform(make_request())

    assert exc_info.value.retry_after_s is None


def test_parse_retry_after_accepts_http_date() -> None:
    when = datetime.now(UTC) + timedelta(seconds=60)
    parsed = parse_retry_after(format_datetime(when, usegmt=True))

    assert parsed is not None
    assert 50 <= parsed <= 61


@pytest.mark.parametrize(
    "raw", [None, "", "   ", "soon", "-5", "inf", "nan", "1e400", "-inf"]
)
def test_parse_retry_after_rejects_unusable_values(raw: str | None) -> None:
    assert parse_retry_after(raw) is None


# =============================================================================
# Response Decoding
# =============================================================================


@pytest.mark.asyncio
async def test_non_json_success_body_is_invalid_response() -> None:
    rec = RecordingTransport(status_code=200, content=b"not json")

    with pytest.raises(InvalidResponseError):
        await _openai(rec).transform(make_request())


@pytest.mark.asyncio
async def test_schema_violating_success_body_is_invalid_response() -> None:
    rec = RecordingTransport(status_code=200, body={"unexpected": True})

    with pytest.raises(InvalidResponseError, match="response shape"):
        await _openai(rec).transform(make_request())


# =============================================================================
# Transport Failures
# =============================================================================


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("exc", "cause"),
    [
        (httpx.ConnectError("[Errno -2] Name or service not known"), "DNS lookup failed"),
        (httpx.ConnectError("[Errno 101] Network is unreachable"), "No internet connection"),
        (httpx.ConnectError("[Errno 111] Connection refused"), "Cannot connect to OpenAI"),
        (httpx.ReadError("connection reset by peer"), "Connection lost"),
    ],
)
async def test_transport_errors_become_categorised_network_errors(
    exc: Exception, cause: str
) -> None:
    rec = RecordingTransport(exc=exc)

    with pytest.raises(ProviderNetworkError) as exc_info:
        await _openai(rec).transform(make_request())

    assert str(exc_info.value) == cause
    assert exc_info.value.__cause__ is exc


@pytest.mark.asyncio
async def test_transport_timeout_becomes_provider_timeout() -> None:
    rec = RecordingTransport(exc=httpx.ReadTimeout("timed out"))

    with pytest.raises(ProviderTimeoutError):
        await _openai(rec).transform(make_request())


@pytest.mark.asyncio
async def test_transport_timeout_is_longer_than_logical_timeout() -> None:
    rec = RecordingTransport(body=OPENAI_OK)

    await _openai(rec).transform(make_request(timeout_s=30.0))

    timeouts = rec.last.extensions["timeout"]
    assert timeouts["read"] == pytest.approx(45.0)


# =============================================================================
# OpenAI
# =============================================================================


@pytest.mark.asyncio
async def test_openai_sends_generic_system_and_combined_user_message() -> None:
    rec = RecordingTransport(body=OPENAI_OK)

    response = await _openai(rec).transform(
        make_request(text="hello", system_prompt="Uppercase it.", max_tokens=256)
    )

    assert response.output == "HELLO"
    assert response.model == "gpt-4o-mini-2024-07-18"
    assert response.provider is ProviderKind.OPENAI
    assert str(rec.last.url) == "https://api.openai.com/v1/chat/completions"
    assert rec.last.headers["Authorization"] == "Bearer sk-test"
    assert rec.last.headers["Content-Type"] == "application/json"
    body = rec.json_bodies[-1]
    assert body["messages"] == [
        {"role": "system", "content": GENERIC_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": "Instructions:\nUppercase it.\n\nText to transform:\nhello",
        },
    ]
    assert body["max_tokens"] == 256
    assert body["temperature"] == 0.7


@pytest.mark.asyncio
async def test_unconfigured_client_fails_without_network() -> None:
    rec = RecordingTransport(body=OPENAI_OK)
    client = OpenAIClient("", transport=rec.transport)

    assert client.is_configured() is False
    with pytest.raises(ProviderNotConfiguredError):
        await client.transform(make_request())
    assert rec.requests == []


def test_client_repr_never_shows_secret() -> None:
    assert "sk-secret" not in repr(OpenAIClient("sk-secret"))
    assert "sk-secret" not in repr(AnthropicClient("sk-secret"))
    assert "sk-secret" not in repr(OpenRouterClient("sk-secret", referer="r", title="t"))


# =============================================================================
# Anthropic
# =============================================================================


@pytest.mark.asyncio
async def test_anthropic_uses_dedicated_system_field_and_version_header() -> None:
    rec = RecordingTransport(
        body={
            "model": "claude-3-5-haiku-20241022",
            "content": [
                {"type": "text", "text": "HELLO "},
                {"type": "text", "text": "WORLD"},
            ],
        }
    )
    client = AnthropicClient("sk-ant", transport=rec.transport)

    response = await client.transform(
        make_request(ProviderKind.ANTHROPIC, max_tokens=None)
    )

    assert response.output == "HELLO WORLD"
    assert rec.last.headers["x-api-key"] == "sk-ant"
    assert rec.last.headers["anthropic-version"] == "2023-06-01"
    body = rec.json_bodies[-1]
    assert body["system"] == "Make it shout."
    assert body["messages"] == [{"role": "user", "content": "hello world"}]
    assert body["max_tokens"] == 4096


@pytest.mark.asyncio
async def test_anthropic_error_body_message_is_used_for_unmapped_status() -> None:
    rec = RecordingTransport(
        status_code=400,
        body={"type": "error", "error": {"type": "invalid_request_error", "message": "bad temperature"}},
    )
    client = AnthropicClient("sk-ant", transport=rec.transport)

    with pytest.raises(ProviderServerError, match="bad temperature"):
        await client.transform(make_request(ProviderKind.ANTHROPIC))


# =============================================================================
# OpenRouter
# =============================================================================


@pytest.mark.asyncio
async def test_openrouter_sends_attribution_headers() -> None:
    rec = RecordingTransport(body=OPENAI_OK)
    client = OpenRouterClient(
        "sk-or", referer="https://example.test", title="Example", transport=rec.transport
    )

    await client.transform(make_request(ProviderKind.OPENROUTER))

    assert str(rec.last.url) == "https://openrouter.ai/api/v1/chat/completions"
    assert rec.last.headers["HTTP-Referer"] == "https://example.test"
    assert rec.last.headers["X-Title"] == "Example"
    assert rec.last.headers["Authorization"] == "Bearer sk-or"
    assert rec.json_bodies[-1]["messages"][0] == {
        "role": "system",
        "content": "Make it shout.",
    }


def test_openrouter_headers_resolve_from_environment_then_defaults(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("CLIPFLOW_OPENROUTER_TITLE", "From Env")

    client = OpenRouterClient("sk-or")

    assert client.title == "From Env"
    assert client.referer == "https://github.com/clipflow/clipflow"


def test_openrouter_construction_ignores_unrelated_settings(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("CLIPFLOW_CONTENT_LIMIT_BYTES", "abc")
    monkeypatch.setenv("CLIPFLOW_REQUEST_TIMEOUT_S", "soon")

    client = OpenRouterClient("sk-or")

    assert client.title == "clipflow"


# =============================================================================
# Ollama
# =============================================================================


@pytest.mark.asyncio
async def test_ollama_posts_non_streaming_chat_to_local_endpoint() -> None:
    rec = RecordingTransport(
        body={
            "model": "llama3.2",
            "message": {"role": "assistant", "content": "HELLO"},
            "done": True,
        }
    )
    client = OllamaClient("http://127.0.0.1:11434/", transport=rec.transport)

    response = await client.transform(
        make_request(ProviderKind.OLLAMA, max_tokens=128, temperature=0.2)
    )

    assert client.is_configured() is True
    assert response.output == "HELLO"
    assert str(rec.last.url) == "http://127.0.0.1:11434/api/chat"
    assert "Authorization" not in rec.last.headers
    body = rec.json_bodies[-1]
    assert body["stream"] is False
    assert body["options"] == {"temperature": 0.2, "num_predict": 128}


@pytest.mark.asyncio
async def test_ollama_top_level_error_message_is_surfaced() -> None:
    rec = RecordingTransport(status_code=400, body={"error": "invalid options"})
    client = OllamaClient(transport=rec.transport)

    with pytest.raises(ProviderServerError, match="invalid options"):
        await client.transform(make_request(ProviderKind.OLLAMA))


# =============================================================================
# Bedrock
# =============================================================================


@pytest.mark.parametrize(
    ("model_id", "region", "expected"),
    [
        ("anthropic.claude-3-5-haiku-20241022-v1:0", "us-east-1", "us.anthropic.claude-3-5-haiku-20241022-v1:0"),
        ("anthropic.claude-3-5-haiku-20241022-v1:0", "eu-west-1", "eu.anthropic.claude-3-5-haiku-20241022-v1:0"),
        ("anthropic.claude-3-5-haiku-20241022-v1:0", "ap-southeast-2", "apac.anthropic.claude-3-5-haiku-20241022-v1:0"),
        ("anthropic.claude-3-5-haiku-20241022-v1:0", "ca-central-1", "us.anthropic.claude-3-5-haiku-20241022-v1:0"),
        ("eu.meta.llama3-2-1b-instruct-v1:0", "us-east-1", "eu.meta.llama3-2-1b-instruct-v1:0"),
        ("arn:aws:bedrock:us-east-1:123456789012:inference-profile/x", "eu-west-1", "arn:aws:bedrock:us-east-1:123456789012:inference-profile/x"),
    ],
)
def test_inference_profile_ids(model_id: str, region: str, expected: str) -> None:
    assert inference_profile_id(model_id, region) == expected


def test_bedrock_converse_url_percent_encodes_colons() -> None:
    client = BedrockClient(region="eu-west-1", bearer_token="tok")

    assert client.converse_url("anthropic.claude-3-5-haiku-20241022-v1:0") == (
        "https://bedrock-runtime.eu-west-1.amazonaws.com/model/"
        "eu.anthropic.claude-3-5-haiku-20241022-v1%3A0/converse"
    )


@pytest.mark.asyncio
async def test_bedrock_bearer_request_uses_converse_shape() -> None:
    rec = RecordingTransport(
        body={
            "output": {"message": {"role": "assistant", "content": [{"text": "HELLO"}]}},
            "stopReason": "end_turn",
        }
    )
    client = BedrockClient(region="us-west-2", bearer_token="tok", transport=rec.transport)

    response = await client.transform(
        make_request(ProviderKind.BEDROCK, model="amazon.nova-lite-v1:0")
    )

    assert response.output == "HELLO"
    assert response.model == "amazon.nova-lite-v1:0"
    assert rec.last.url.host == "bedrock-runtime.us-west-2.amazonaws.com"
    assert rec.last.url.raw_path.endswith(b"/converse")
    assert rec.last.headers["Authorization"] == "Bearer tok"
    body = rec.json_bodies[-1]
    assert body["system"] == [{"text": "Make it shout."}]
    assert body["messages"] == [{"role": "user", "content": [{"text": "hello world"}]}]
    assert body["inferenceConfig"]["temperature"] == 0.7


@pytest.mark.asyncio
async def test_bedrock_key_pair_fails_with_authentication_error_without_network() -> None:
    rec = RecordingTransport(body={})
    client = BedrockClient(access_key="AKIA", secret_key="secret", transport=rec.transport)

    assert client.is_configured() is True
    with pytest.raises(ProviderAuthenticationError, match="SigV4"):
        await client.transform(make_request(ProviderKind.BEDROCK))
    assert rec.requests == []


@pytest.mark.asyncio
async def test_bedrock_error_body_uses_top_level_message() -> None:
    rec = RecordingTransport(status_code=400, body={"message": "Malformed input request"})
    client = BedrockClient(bearer_token="tok", transport=rec.transport)

    with pytest.raises(ProviderServerError, match="Malformed input request"):
        await client.transform(make_request(ProviderKind.BEDROCK))


def test_bedrock_rejects_both_credential_schemes() -> None:
    with pytest.raises(ValueError, match="not both"):
        BedrockClient(bearer_token="tok", access_key="AKIA", secret_key="s")


# =============================================================================
# Factory & Protocol
# =============================================================================


@pytest.mark.parametrize(
    ("credentials", "expected"),
    [
        (ProviderCredentials.openai("k"), OpenAIClient),
        (ProviderCredentials.anthropic("k"), AnthropicClient),
        (ProviderCredentials.openrouter("k"), OpenRouterClient),
        (ProviderCredentials.ollama(), OllamaClient),
        (ProviderCredentials.bedrock_bearer("t", "eu-central-1"), BedrockClient),
        (ProviderCredentials.bedrock_keys("a", "s"), BedrockClient),
    ],
)
def test_make_client_matches_credential_kind(
    credentials: ProviderCredentials, expected: type
) -> None:
    client = make_client(credentials)

    assert isinstance(client, expected)
    assert isinstance(client, ProviderClient)
    assert client.kind is credentials.kind
    assert client.is_configured()


def test_configured_clients_only_includes_providers_with_credentials(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")

    clients = configured_clients()

    assert set(clients) == {ProviderKind.ANTHROPIC, ProviderKind.OLLAMA}


@pytest.mark.asyncio
async def test_mock_client_echoes_and_records_requests() -> None:
    client = MockClient(provider=ProviderKind.OLLAMA)
    request = make_request(ProviderKind.OLLAMA)

    response = await client.transform(request)

    assert response.output == "echo: hello world"
    assert client.requests == [request]
    assert isinstance(client, ProviderClient)
