"""Unit tests for the inbound payload models."""

from models.events import ActivityChange, CodeChange, LanguageChange, OutputChange


class TestInboundPayloads:
    """camelCase aliases, ignored extras and raw values left for the gateway."""

    def test_aliases_and_extra_keys(self):
        payload = CodeChange.model_validate({"sessionId": "s-1", "code": "x", "cursor": 3})
        assert payload.session_id == "s-1"
        assert payload.code == "x"
        assert not hasattr(payload, "cursor")

    def test_language_keeps_raw_value(self):
        assert LanguageChange.model_validate({"sessionId": "s", "language": 5}).language == 5
        assert LanguageChange.model_validate({"sessionId": "s", "language": "python"}).language == "python"

    def test_output_nulls_become_defaults(self):
        payload = OutputChange.model_validate({"sessionId": "s", "output": None, "isRunning": None})
        assert payload.output == ""
        assert payload.is_running is False
        assert payload.error is None

    def test_activity_flag(self):
        assert ActivityChange.model_validate({"sessionId": "s", "isActive": False}).is_active is False
        assert ActivityChange.model_validate({"sessionId": "s"}).is_active is None
