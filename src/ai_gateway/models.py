"""Shared request/response models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Role(str, Enum):
    """Chat roles accepted by the chat completions endpoint."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    role: Role
    content: str


class ModelParams(BaseModel):
    """Sampling parameters, named as the provider expects them on the wire.

    camelCase keys (``maxTokens``) are accepted on input.
    """

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    temperature: float | None = None
    max_tokens: int | None = None
    top_p: float | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    seed: int | None = None


class JsonSchemaSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    strict: bool = True
    schema_: dict[str, Any] = Field(alias="schema")


class ResponseFormat(BaseModel):
    """Request for output constrained to a named JSON schema."""

    type: Literal["json_schema"] = "json_schema"
    json_schema: JsonSchemaSpec

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ServiceConfig(BaseModel):
    """Redacted view of the gateway configuration (never holds the key)."""

    api_key_present: bool
    base_url: str
    default_model: str
    default_params: ModelParams
    request_timeout_ms: int | None = None
    site_url: str


class CompletionResult(BaseModel):
    """Normalized chat completion."""

    id: str
    model: str
    created_at: datetime | None = None
    raw: dict[str, Any] = Field(default_factory=dict)
    text: str | None = None
    parsed_json: Any = None
