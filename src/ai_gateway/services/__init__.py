"""Service exports."""

from .gateway import AiGatewayService, get_gateway_service
from .retry import execute_with_retry

__all__ = ["AiGatewayService", "execute_with_retry", "get_gateway_service"]
