"""AWS Bedrock provider client (Converse API).

Two mutually exclusive credential schemes exist:

- bearer token (Bedrock API keys): fully supported;
- access key + secret key: would need SigV4 request signing, which clipflow
  does not implement. Such a client still reports itself configured, but
  every ``transform`` fails with ``ProviderAuthenticationError`` before any
  network traffic.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from pydantic import BaseModel

from clipflow.constants import DEFAULT_BEDROCK_REGION
from clipflow.errors import ProviderAuthenticationError, ProviderNotConfiguredError
from clipflow.providers._errors import top_level_error_message
from clipflow.providers._http import HTTPCall, decode_model, send
from clipflow.types import ProviderKind

if TYPE_CHECKING:
    import httpx

    from clipflow.providers.models import ProviderRequest, ProviderResponse

# Bedrock's Converse API caps output separately from the unit's max_tokens.
BEDROCK_MAX_OUTPUT_TOKENS = 12_000

_PROFILE_PREFIXES = ("us.", "eu.", "apac.")


def inference_profile_id(model_id: str, region: str) -> str:
    """Promote a model id to its cross-region inference profile id.

    Newer models are only invocable through a profile such as
    ``us.anthropic.claude-3-5-haiku-20241022-v1:0``. Ids that already carry a
    profile prefix, and ARNs, are returned unchanged.
    """
    if model_id.startswith(_PROFILE_PREFIXES) or model_id.startswith("arn:"):
        return model_id
    if region.startswith("eu-"):
        prefix = "eu."
    elif region.startswith("ap-"):
        prefix = "apac."
    else:
        prefix = "us."
    return f"{prefix}{model_id}"


class _ContentBlock(BaseModel):
    text: str = ""


class _OutputMessage(BaseModel):
    content: list[_ContentBlock]


class _Output(BaseModel):
    message: _OutputMessage


class _ConverseResponse(BaseModel):
    output: _Output


class BedrockClient:
    """Bedrock Converse client for a single region."""

    def __init__(
        self,
        *,
        region: str = DEFAULT_BEDROCK_REGION,
        bearer_token: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        endpoint: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize with exactly one credential scheme.

        Raises:
            ValueError: If both a bearer token and a key pair are given.
        """
        if bearer_token and (access_key or secret_key):
            raise ValueError(
                "BedrockClient takes either bearer_token or access_key/secret_key, not both"
            )
        self.region = region
        self.bearer_token = bearer_token
        self.access_key = access_key
        self.secret_key = secret_key
        self.endpoint = (
            endpoint or f"https://bedrock-runtime.{region}.amazonaws.com"
        ).rstrip("/")
        self._transport = transport

    @property
    def kind(self) -> ProviderKind:
        return ProviderKind.BEDROCK

    @property
    def uses_key_pair(self) -> bool:
        return not self.bearer_token and bool(self.access_key or self.secret_key)

    def is_configured(self) -> bool:
        if self.bearer_token:
            return True
        return bool(self.access_key) and bool(self.secret_key)

    def converse_url(self, model_id: str) -> str:
        profile_id = inference_profile_id(model_id, self.region)
        # Colons in model ids must be percent-encoded in the path.
        return f"{self.endpoint}/model/{quote(profile_id, safe='/')}/converse"

    def build_call(self, request: ProviderRequest) -> HTTPCall:
        """Build the Converse POST, authenticated with the bearer token.

        Raises:
            ProviderAuthenticationError: When only a key pair is available.
        """
        if not self.bearer_token:
            raise ProviderAuthenticationError(
                "AWS key/secret authentication requires SigV4 request signing, "
                "which is not supported",
                hint="Use a Bedrock API key (bearer token) instead.",
                provider=self.kind.value,
            )
        body: dict[str, Any] = {
            "system": [{"text": request.system_prompt}],
            "messages": [{"role": "user", "content": [{"text": request.text}]}],
            "inferenceConfig": {
                "temperature": request.temperature,
                "maxTokens": BEDROCK_MAX_OUTPUT_TOKENS,
            },
        }
        return HTTPCall(
            url=self.converse_url(request.model),
            body=body,
            headers={"Authorization": f"Bearer {self.bearer_token}"},
        )

    async def transform(self, request: ProviderRequest) -> ProviderResponse:
        if not self.is_configured():
            raise ProviderNotConfiguredError(provider=self.kind.value)
        call = self.build_call(request)

        def _decode(payload: Any) -> tuple[str, str]:
            parsed = decode_model(_ConverseResponse, payload, provider=self.kind)
            text = "".join(b.text for b in parsed.output.message.content)
            return request.model, text

        return await send(
            call,
            request,
            provider=self.kind,
            decode=_decode,
            error_message=top_level_error_message,
            transport=self._transport,
        )

    def __repr__(self) -> str:
        scheme = "key-pair" if self.uses_key_pair else "bearer"
        return f"BedrockClient(region={self.region!r}, auth={scheme!r})"
