from ai_gateway.logging import REDACTED, redact_secrets


def test_redact_secrets_masks_key_fields():
    event = {"event": "gateway.request", "authorization": "Bearer sk-or-1", "api_key": "sk-or-1"}

    redacted = redact_secrets(None, "info", event)

    assert redacted["authorization"] == REDACTED
    assert redacted["api_key"] == REDACTED
    assert redacted["event"] == "gateway.request"


def test_redact_secrets_leaves_other_fields():
    event = {"event": "gateway.retrying", "attempt": 0, "status_code": 503}

    assert redact_secrets(None, "warning", dict(event)) == event
