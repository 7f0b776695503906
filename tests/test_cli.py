import httpx

from ai_gateway import __main__ as cli
from ai_gateway.services.gateway import AiGatewayService


def test_serve_invokes_uvicorn(monkeypatch):
    called = {}

    def fake_run(*args, host, port, reload, **kwargs):
        called["app"] = args[0]
        called["host"] = host
        called["port"] = port
        called["reload"] = reload

    monkeypatch.setattr("ai_gateway.__main__.uvicorn.run", fake_run)

    assert cli.main(["serve", "--host", "127.0.0.1", "--port", "9001", "--reload"]) == 0
    assert called == {
        "app": "ai_gateway.app:create_app",
        "host": "127.0.0.1",
        "port": 9001,
        "reload": True,
    }


def _patch_gateway(monkeypatch, handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

    class _Factory:
        @staticmethod
        def from_settings(settings):
            return AiGatewayService(api_key="test-key", default_model="test-model", client=client)

    monkeypatch.setattr(cli, "AiGatewayService", _Factory)


def test_ask_prints_completion(monkeypatch, capsys):
    def handler(request):
        return httpx.Response(
            200,
            json={
                "id": "gen-1",
                "model": "test-model",
                "created": 1,
                "choices": [{"message": {"content": "Why did the chicken cross?"}}],
            },
        )

    _patch_gateway(monkeypatch, handler)

    assert cli.main(["ask", "Tell me a riddle", "--temperature", "0.2"]) == 0
    assert capsys.readouterr().out.strip().endswith("Why did the chicken cross?")


def test_ask_reports_gateway_errors(monkeypatch, capsys):
    _patch_gateway(
        monkeypatch,
        lambda request: httpx.Response(401, json={"error": {"message": "No auth"}}),
    )

    assert cli.main(["ask", "hello"]) == 1
    assert "api_error" in capsys.readouterr().err
