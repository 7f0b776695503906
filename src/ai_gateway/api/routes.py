"""HTTP routes for the AI endpoints."""

from __future__ import annotations

import time
from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter, ValidationError

from ..errors import GatewayError
from ..logging import bind_trace
from ..services.gateway import AiGatewayService
from .errors import debug_status_code, error_detail, map_exception
from .schemas import (
    QUIZ_JSON_SCHEMA,
    ChatRequestBody,
    ChatSuccessBody,
    QuizQuestion,
    QuizResponseBody,
)

logger = structlog.get_logger(__name__)
router = APIRouter()

QUIZ_QUESTION_COUNT = 5
QUIZ_SYSTEM_PROMPT = (
    "You generate multiple-choice quizzes. Always return EXACTLY 5 questions, each with "
    "answers A, B, C and D and exactly one correct answer. Return ONLY valid JSON shaped "
    'like {"questions":[{"id":1,"question":"...","answers":{"A":"...","B":"...","C":"...",'
    '"D":"..."},"correctAnswer":"A","explanation":"Why this answer is correct"}]}'
)
QUIZ_USER_PROMPT = (
    "Generate a new mixed-topic quiz (5 questions, A-D, exactly one correct answer each)."
)
DEBUG_SYSTEM_PROMPT = (
    "You are a simple health-check assistant. Reply concisely with the word 'pong'."
)

_questions_adapter = TypeAdapter(list[QuizQuestion])


def get_gateway(request: Request) -> AiGatewayService:
    """Resolve the gateway lazily so configuration errors surface per request."""

    state = request.app.state
    gateway: AiGatewayService | None = getattr(state, "gateway", None)
    if gateway is None:
        gateway = state.gateway_factory()
        state.gateway = gateway
    return gateway


@router.get("/healthz")
async def health_check(request: Request) -> dict[str, object]:
    config: dict[str, Any] | None
    try:
        config = get_gateway(request).get_config().model_dump(mode="json")
    except GatewayError as exc:
        logger.warning("healthz.gateway_unavailable", kind=exc.kind.value)
        config = None
    return {
        "status": "ok",
        "environment": request.app.state.settings.environment,
        "config": config,
    }


@router.post("/v1/ai/chat")
async def chat(payload: ChatRequestBody, request: Request) -> dict[str, Any]:
    user_prompt = (payload.user_prompt or "").strip()
    if not user_prompt:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_detail("VALIDATION_ERROR", "userPrompt is required."),
        )

    system_prompt = payload.system_prompt.strip() if payload.system_prompt else None
    bind_trace(route="ai.chat")
    start = time.perf_counter()
    try:
        gateway = get_gateway(request)
        messages = gateway.build_messages(
            user_prompt, system_prompt=system_prompt, history=payload.history
        )
        result = await gateway.generate_completion(messages)
    except Exception as exc:  # noqa: BLE001
        logger.warning("chat.failed", error=repr(exc))
        raise map_exception(exc) from exc

    logger.info(
        "chat.complete",
        model=result.model,
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
    )
    body = ChatSuccessBody(text=result.text, parsed_json=result.parsed_json, model=result.model)
    return body.model_dump(by_alias=True)


@router.get("/v1/ai/quiz")
async def quiz(request: Request) -> dict[str, Any]:
    bind_trace(route="ai.quiz")
    try:
        gateway = get_gateway(request)
        messages = gateway.build_messages(QUIZ_USER_PROMPT, system_prompt=QUIZ_SYSTEM_PROMPT)
        result = await gateway.generate_completion(
            messages,
            params={"temperature": 0.7, "max_tokens": 400},
            response_format=gateway.build_json_schema_response_format("quiz", QUIZ_JSON_SCHEMA),
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("quiz.failed", error=repr(exc))
        raise map_exception(exc) from exc

    questions = _extract_quiz_questions(result.parsed_json)
    if not questions:
        logger.warning("quiz.invalid_format", model=result.model)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=error_detail(
                "OPENROUTER_API_ERROR",
                "The AI service returned a malformed quiz. Please try again shortly.",
            ),
        )

    return QuizResponseBody(questions=questions).model_dump(by_alias=True)


@router.get("/v1/ai/debug")
async def debug(request: Request) -> JSONResponse:
    bind_trace(route="ai.debug")
    connectivity: dict[str, Any] | None = None
    try:
        gateway = get_gateway(request)
        connectivity = await gateway.check_connectivity()
        messages = gateway.build_messages("Say 'pong'.", system_prompt=DEBUG_SYSTEM_PROMPT)
        result = await gateway.generate_completion(
            messages, params={"temperature": 0, "max_tokens": 10}
        )
    except GatewayError as exc:
        return JSONResponse(
            status_code=debug_status_code(exc),
            content={
                "ok": False,
                "kind": exc.kind.value,
                "message": exc.message,
                "status": exc.status_code,
                "isTransient": exc.is_transient,
                "details": exc.details,
                "connectivity": connectivity,
            },
        )

    return JSONResponse(
        content={
            "ok": True,
            "model": result.model,
            "text": result.text,
            "createdAt": result.created_at.isoformat() if result.created_at else None,
            "connectivity": connectivity,
        }
    )


def _extract_quiz_questions(parsed: Any) -> list[QuizQuestion]:
    if not isinstance(parsed, dict):
        return []

    # some models answer under "quiz" instead of "questions"
    candidates = parsed.get("questions")
    if not isinstance(candidates, list):
        candidates = parsed.get("quiz")
    if not isinstance(candidates, list):
        return []

    try:
        questions = _questions_adapter.validate_python(candidates[:QUIZ_QUESTION_COUNT])
    except ValidationError:
        return []
    return [
        question.model_copy(update={"id": index})
        for index, question in enumerate(questions, start=1)
    ]
