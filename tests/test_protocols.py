"""Tests for protocol tags and source-format detection."""

import logging

import pytest

from chatbridge.core.exceptions import UnsupportedProtocolError
from chatbridge.core.protocols import Protocol, WireShape, detect_protocol


class TestProtocolFromTag:
    @pytest.mark.parametrize(
        "tag,expected",
        [
            ("openai", Protocol.OPENAI),
            ("openrouter", Protocol.OPENROUTER),
            ("groq", Protocol.GROQ),
            ("claude", Protocol.CLAUDE),
            ("gemini", Protocol.GEMINI),
            ("anthropic", Protocol.CLAUDE),
            ("Claude", Protocol.CLAUDE),
            (" GEMINI ", Protocol.GEMINI),
        ],
    )
    def test_resolves_known_tags(self, tag, expected):
        assert Protocol.from_tag(tag) is expected

    def test_passes_protocol_values_through(self):
        assert Protocol.from_tag(Protocol.GROQ) is Protocol.GROQ

    @pytest.mark.parametrize("tag", ["mistral", "", None, 42])
    def test_rejects_unknown_tags(self, tag):
        with pytest.raises(UnsupportedProtocolError):
            Protocol.from_tag(tag)


class TestWireShape:
    def test_openai_family_shares_a_shape(self):
        shapes = {Protocol.OPENAI.shape, Protocol.OPENROUTER.shape, Protocol.GROQ.shape}
        assert shapes == {WireShape.OPENAI}

    def test_claude_and_gemini_have_their_own_shapes(self):
        assert Protocol.CLAUDE.shape is WireShape.ANTHROPIC
        assert Protocol.GEMINI.shape is WireShape.GEMINI


class TestDetectProtocol:
    """Detection overrides the hint only for a clearly different wire shape."""

    def test_contents_means_gemini(self):
        body = {"contents": [{"parts": [{"text": "hi"}]}]}
        assert detect_protocol(body, Protocol.OPENAI) is Protocol.GEMINI

    def test_system_field_means_anthropic(self):
        body = {"model": "gpt-4", "system": "be brief", "messages": []}
        assert detect_protocol(body, Protocol.OPENAI) is Protocol.CLAUDE

    def test_messages_without_model_means_anthropic(self):
        body = {"messages": [{"role": "user", "content": "hi"}]}
        assert detect_protocol(body, Protocol.GEMINI) is Protocol.CLAUDE

    def test_messages_with_model_means_openai(self):
        body = {"model": "gpt-4", "messages": [{"role": "user", "content": "hi"}]}
        assert detect_protocol(body, Protocol.CLAUDE) is Protocol.OPENAI

    def test_hint_wins_within_the_same_shape(self):
        body = {"model": "llama3", "messages": [{"role": "user", "content": "hi"}]}
        assert detect_protocol(body, Protocol.GROQ) is Protocol.GROQ
        assert detect_protocol(body, Protocol.OPENROUTER) is Protocol.OPENROUTER

    def test_unrecognized_body_keeps_hint(self):
        assert detect_protocol({"prompt": "hi"}, Protocol.CLAUDE) is Protocol.CLAUDE

    def test_override_is_logged(self, caplog):
        body = {"contents": []}
        with caplog.at_level(logging.INFO, logger="chatbridge"):
            detect_protocol(body, Protocol.OPENAI)
        assert "overriding source 'openai'" in caplog.text
