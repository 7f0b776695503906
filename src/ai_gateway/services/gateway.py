"""OpenRouter chat completions gateway."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from ..errors import ErrorKind, GatewayError
from ..models import (
    ChatMessage,
    CompletionResult,
    JsonSchemaSpec,
    ModelParams,
    ResponseFormat,
    Role,
    ServiceConfig,
)
from ..settings import DEFAULT_BASE_URL, Settings, get_settings
from . import retry

logger = structlog.get_logger(__name__)

CHAT_COMPLETIONS_PATH = "/chat/completions"
MODELS_PATH = "/models"
APP_TITLE = "Mini Games"
DEFAULT_SITE_URL = "http://localhost"
CONNECTIVITY_TIMEOUT_SECONDS = 5.0
BODY_PREVIEW_CHARS = 500


class AiGatewayService:
    """Validated, retrying wrapper around a single chat completions endpoint.

    The instance only holds immutable configuration and the HTTP client, so one
    instance can serve concurrent calls.
    """

    def __init__(
        self,
        *,
        api_key: str | None,
        default_model: str | None,
        base_url: str | None = None,
        default_params: ModelParams | Mapping[str, Any] | None = None,
        request_timeout_ms: int | None = None,
        site_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise GatewayError(
                ErrorKind.MISSING_API_KEY,
                "OpenRouter API key is not configured (OPENROUTER_API_KEY)",
            )
        if not default_model:
            raise GatewayError(
                ErrorKind.INVALID_CONFIG,
                "A default OpenRouter model is required (OPENROUTER_DEFAULT_MODEL)",
            )

        if client is None:
            # no transport-level timeout; the per-call deadline is enforced below
            client = httpx.AsyncClient(timeout=None)
            self._owns_client = True
        elif not callable(getattr(client, "post", None)):
            raise GatewayError(
                ErrorKind.INVALID_CONFIG,
                "The supplied HTTP client does not provide a post() method",
            )
        else:
            self._owns_client = False

        self._api_key = api_key
        self._default_model = default_model
        self._base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._default_params = _coerce_params(default_params)
        self._request_timeout_ms = request_timeout_ms
        self._site_url = site_url or DEFAULT_SITE_URL
        self._client = client

        logger.info(
            "gateway.configured",
            key_prefix=api_key[:8],
            base_url=self._base_url,
            default_model=default_model,
            request_timeout_ms=request_timeout_ms,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.AsyncClient | None = None
    ) -> "AiGatewayService":
        return cls(
            api_key=settings.openrouter_api_key,
            default_model=settings.openrouter_default_model,
            base_url=settings.openrouter_base_url,
            default_params=ModelParams(
                temperature=settings.default_temperature,
                max_tokens=settings.default_max_tokens,
            ),
            request_timeout_ms=settings.request_timeout_ms,
            site_url=settings.site_url,
            client=client,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def get_config(self) -> ServiceConfig:
        return ServiceConfig(
            api_key_present=bool(self._api_key),
            base_url=self._base_url,
            default_model=self._default_model,
            default_params=self._default_params.model_copy(),
            request_timeout_ms=self._request_timeout_ms,
            site_url=self._site_url,
        )

    def build_messages(
        self,
        user_prompt: str,
        system_prompt: str | None = None,
        history: Sequence[ChatMessage | Mapping[str, Any]] | None = None,
    ) -> list[ChatMessage]:
        """Assemble ``[system?] + history + [user]``.

        Raises ``INVALID_INPUT`` when the user prompt is blank. The system prompt
        is trimmed and skipped when blank; the user prompt is kept verbatim.
        """

        if not isinstance(user_prompt, str) or not user_prompt.strip():
            raise GatewayError(ErrorKind.INVALID_INPUT, "The user prompt must not be empty")

        messages: list[ChatMessage] = []
        if system_prompt and system_prompt.strip():
            messages.append(ChatMessage(role=Role.SYSTEM, content=system_prompt.strip()))

        messages.extend(_coerce_message(entry) for entry in history or [])
        messages.append(ChatMessage(role=Role.USER, content=user_prompt))
        return messages

    def build_json_schema_response_format(
        self, name: str, schema: Mapping[str, Any]
    ) -> ResponseFormat:
        if not isinstance(name, str) or not name.strip():
            raise GatewayError(
                ErrorKind.INVALID_INPUT, "The response_format schema name must not be empty"
            )
        if not isinstance(schema, Mapping):
            raise GatewayError(
                ErrorKind.INVALID_INPUT, "The response_format JSON schema must be an object"
            )

        return ResponseFormat(
            json_schema=JsonSchemaSpec(name=name, strict=True, schema=dict(schema)),
        )

    def merge_params(self, params: ModelParams | Mapping[str, Any] | None = None) -> ModelParams:
        """Overlay call-supplied parameters on the configured defaults."""

        merged = self._default_params.model_dump(exclude_none=True)
        if params is not None:
            merged.update(_coerce_params(params).model_dump(exclude_unset=True))
        return ModelParams(**merged)

    async def generate_completion(
        self,
        messages: Sequence[ChatMessage | Mapping[str, Any]],
        model: str | None = None,
        params: ModelParams | Mapping[str, Any] | None = None,
        response_format: ResponseFormat | Mapping[str, Any] | None = None,
    ) -> CompletionResult:
        if not messages:
            raise GatewayError(ErrorKind.INVALID_INPUT, "The message list must not be empty")

        resolved_model = model or self._default_model
        payload = self._build_payload(messages, resolved_model, params, response_format)

        async def attempt() -> dict[str, Any]:
            return await self._post(CHAT_COMPLETIONS_PATH, payload)

        call = retry.execute_with_retry(
            attempt,
            max_retries=retry.MAX_RETRIES,
            base_delay=retry.RETRY_BASE_DELAY_SECONDS,
            on_retry=_log_retry,
        )

        if self._request_timeout_ms and self._request_timeout_ms > 0:
            try:
                raw = await asyncio.wait_for(call, timeout=self._request_timeout_ms / 1000)
            except asyncio.TimeoutError as exc:
                logger.warning(
                    "gateway.timeout",
                    model=resolved_model,
                    request_timeout_ms=self._request_timeout_ms,
                )
                raise GatewayError(
                    ErrorKind.TIMEOUT,
                    f"OpenRouter request exceeded {self._request_timeout_ms} ms",
                ) from exc
        else:
            raw = await call

        return _parse_completion(raw, resolved_model)

    async def check_connectivity(self) -> dict[str, Any]:
        """Hit the provider's public model listing; report instead of raising."""

        try:
            response = await self._client.get(
                f"{self._base_url}{MODELS_PATH}", timeout=CONNECTIVITY_TIMEOUT_SECONDS
            )
        except httpx.HTTPError as exc:
            return {"ok": False, "error": str(exc) or exc.__class__.__name__}

        return {
            "ok": response.is_success,
            "status": response.status_code,
            "body_preview": response.text[:BODY_PREVIEW_CHARS],
        }

    def _build_payload(
        self,
        messages: Sequence[ChatMessage | Mapping[str, Any]],
        model: str,
        params: ModelParams | Mapping[str, Any] | None,
        response_format: ResponseFormat | Mapping[str, Any] | None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": model,
            "messages": [_message_to_payload(message) for message in messages],
        }
        if response_format is not None:
            payload["response_format"] = (
                response_format.to_payload()
                if isinstance(response_format, ResponseFormat)
                else dict(response_format)
            )
        payload.update(self.merge_params(params).model_dump(exclude_none=True))
        return payload

    def _build_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
            "HTTP-Referer": self._site_url,
            "Referer": self._site_url,
            "X-Title": APP_TITLE,
        }

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.post(
                f"{self._base_url}{path}",
                json=payload,
                headers=self._build_headers(),
            )
        except httpx.TimeoutException as exc:
            logger.warning("gateway.transport_timeout", error=str(exc))
            raise GatewayError(
                ErrorKind.TIMEOUT, "Timed out while communicating with OpenRouter"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("gateway.network_error", error=str(exc) or exc.__class__.__name__)
            raise GatewayError(
                ErrorKind.NETWORK_ERROR, "Network error while communicating with OpenRouter"
            ) from exc

        if not response.is_success:
            try:
                body: Any = response.json()
            except ValueError:
                body = response.text
            logger.warning("gateway.api_error", status_code=response.status_code)
            raise GatewayError.from_api_response(response.status_code, body)

        try:
            data = response.json()
        except ValueError as exc:
            logger.warning("gateway.invalid_json", status_code=response.status_code)
            raise GatewayError(
                ErrorKind.INVALID_JSON, "OpenRouter returned a response that is not valid JSON"
            ) from exc

        if not isinstance(data, dict):
            raise GatewayError(
                ErrorKind.INVALID_JSON,
                "OpenRouter returned JSON that is not an object",
                details=data,
            )
        return data


@lru_cache(1)
def get_gateway_service() -> AiGatewayService:
    """Return the process-wide gateway built from cached settings."""

    return AiGatewayService.from_settings(get_settings())


def _coerce_params(params: ModelParams | Mapping[str, Any] | None) -> ModelParams:
    if params is None:
        return ModelParams()
    if isinstance(params, ModelParams):
        return params.model_copy()
    try:
        return ModelParams.model_validate(dict(params))
    except ValidationError as exc:
        raise GatewayError(
            ErrorKind.INVALID_INPUT,
            "Unsupported model parameters",
            details=exc.errors(include_url=False, include_context=False),
        ) from exc


def _coerce_message(message: ChatMessage | Mapping[str, Any]) -> ChatMessage:
    if isinstance(message, ChatMessage):
        return message
    try:
        return ChatMessage.model_validate(message)
    except ValidationError as exc:
        raise GatewayError(
            ErrorKind.INVALID_INPUT,
            "Invalid chat message",
            details=exc.errors(include_url=False, include_context=False),
        ) from exc


def _message_to_payload(message: ChatMessage | Mapping[str, Any]) -> dict[str, Any]:
    return _coerce_message(message).model_dump(mode="json")


def _log_retry(attempt: int, delay: float, exc: GatewayError) -> None:
    logger.warning(
        "gateway.retrying",
        attempt=attempt,
        delay_ms=round(delay * 1000),
        kind=exc.kind.value,
        status_code=exc.status_code,
    )


def _parse_completion(raw: dict[str, Any], requested_model: str) -> CompletionResult:
    content = _first_choice_content(raw)
    text = content if isinstance(content, str) else None

    parsed_json: Any = None
    if text is not None:
        try:
            parsed_json = json.loads(text)
        except ValueError:
            # plain text answers are fine; text stays available
            pass

    created_at = _created_at(raw.get("created"))

    return CompletionResult(
        id=str(raw.get("id") or ""),
        model=str(raw.get("model") or requested_model),
        created_at=created_at,
        raw=raw,
        text=text,
        parsed_json=parsed_json,
    )


def _first_choice_content(raw: dict[str, Any]) -> Any:
    choices = raw.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    return message.get("content")


def _created_at(created: Any) -> datetime | None:
    if not isinstance(created, (int, float)) or isinstance(created, bool):
        return None
    try:
        return datetime.fromtimestamp(created, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None
