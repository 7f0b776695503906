"""AI gateway CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

import uvicorn

from .errors import GatewayError
from .logging import configure_logging
from .services.gateway import AiGatewayService
from .settings import get_settings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Mini Games AI gateway.")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload (development only).",
    )

    ask = commands.add_parser("ask", help="Send one prompt and print the completion.")
    ask.add_argument("prompt")
    ask.add_argument("--system", default=None, help="Optional system prompt.")
    ask.add_argument("--model", default=None, help="Override the default model.")
    ask.add_argument("--temperature", type=float, default=None)
    ask.add_argument("--max-tokens", type=int, default=None)
    return parser.parse_args(args=argv)


async def _ask(args: argparse.Namespace) -> int:
    params = {"temperature": args.temperature, "max_tokens": args.max_tokens}
    gateway = AiGatewayService.from_settings(get_settings())
    try:
        messages = gateway.build_messages(args.prompt, system_prompt=args.system)
        result = await gateway.generate_completion(
            messages,
            model=args.model,
            params={key: value for key, value in params.items() if value is not None},
        )
    finally:
        await gateway.aclose()

    if result.parsed_json is not None:
        print(json.dumps(result.parsed_json, indent=2, ensure_ascii=False))
    else:
        print(result.text or "")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    if args.command == "serve":
        uvicorn.run(
            "ai_gateway.app:create_app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            factory=True,
        )
        return 0

    configure_logging(get_settings().log_level)
    try:
        return asyncio.run(_ask(args))
    except GatewayError as exc:
        print(f"error [{exc.kind.value}]: {exc.message}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
