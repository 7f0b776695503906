"""API request/response schemas for the AI endpoints."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models import ChatMessage

AnswerId = Literal["A", "B", "C", "D"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequestBody(_CamelModel):
    system_prompt: str | None = None
    user_prompt: str | None = None
    history: list[ChatMessage] = Field(default_factory=list)


class ChatSuccessBody(_CamelModel):
    text: str | None = None
    parsed_json: Any = None
    model: str


class QuizAnswers(BaseModel):
    A: str
    B: str
    C: str
    D: str


class QuizQuestion(_CamelModel):
    id: int = 0
    question: str
    answers: QuizAnswers
    correct_answer: AnswerId
    explanation: str | None = None


class QuizResponseBody(BaseModel):
    questions: list[QuizQuestion]


QUIZ_JSON_SCHEMA: dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "required": ["questions"],
    "properties": {
        "questions": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "required": ["id", "question", "answers", "correctAnswer", "explanation"],
                "properties": {
                    "id": {"type": "integer"},
                    "question": {"type": "string"},
                    "answers": {
                        "type": "object",
                        "additionalProperties": False,
                        "required": ["A", "B", "C", "D"],
                        "properties": {key: {"type": "string"} for key in "ABCD"},
                    },
                    "correctAnswer": {"type": "string", "enum": ["A", "B", "C", "D"]},
                    "explanation": {"type": ["string", "null"]},
                },
            },
        }
    },
}
