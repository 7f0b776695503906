"""Server-side gateway to the OpenRouter chat completions API."""

from .errors import ErrorKind, GatewayError
from .services import AiGatewayService, get_gateway_service

__all__ = ["AiGatewayService", "ErrorKind", "GatewayError", "get_gateway_service"]
