"""FastAPI application factory for the AI gateway."""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI, Request, Response

from .api.routes import router
from .logging import bind_trace, clear_trace, configure_logging
from .services.gateway import AiGatewayService, get_gateway_service
from .settings import Settings, get_settings


def create_app(
    settings: Settings | None = None,
    gateway: AiGatewayService | None = None,
) -> FastAPI:
    """Build the app.

    Without explicit ``settings`` the process-wide cached gateway is used;
    otherwise one is built from the given settings on first use.
    """

    if settings is None:
        settings = get_settings()
        gateway_factory: Callable[[], AiGatewayService] = get_gateway_service
    else:
        gateway_factory = partial(AiGatewayService.from_settings, settings)
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        built: AiGatewayService | None = getattr(app.state, "gateway", None)
        if built is not None:
            await built.aclose()
            app.state.gateway = None
        if app.state.gateway_factory is get_gateway_service:
            # the cached instance now holds a closed client
            get_gateway_service.cache_clear()

    app = FastAPI(title="Mini Games AI Gateway", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.gateway = gateway
    app.state.gateway_factory = gateway_factory

    @app.middleware("http")
    async def inject_request_context(  # pragma: no cover
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        clear_trace()
        request_id = request.headers.get("x-request-id", uuid.uuid4().hex)
        request.state.request_id = request_id
        bind_trace(request_id=request_id)
        response = await call_next(request)
        response.headers["x-request-id"] = request_id
        return response

    app.include_router(router)
    return app
