"""Tests for the Anthropic Messages adapter."""

from chatbridge.translation.adapters import AnthropicAdapter
from chatbridge.translation.context import AdapterContext
from chatbridge.types.ir import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    Choice,
    ChunkChoice,
    ContentPart,
    Delta,
    StreamChunk,
    Usage,
)

adapter = AnthropicAdapter()


class TestRequestToIR:
    def test_reads_system_and_messages(self, anthropic_request):
        request = adapter.request_to_ir(anthropic_request)
        assert request.system == "You are terse."
        assert request.max_tokens == 512
        assert request.temperature == 0.7
        assert request.messages == (ChatMessage("user", "Hello"),)

    def test_system_blocks_are_joined(self):
        body = {
            "model": "claude",
            "system": [{"type": "text", "text": "one"}, {"type": "text", "text": "two"}],
            "messages": [],
        }
        assert adapter.request_to_ir(body).system == "one\ntwo"

    def test_image_block_becomes_image_url_part(self):
        body = {
            "model": "claude",
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "image", "source": {"type": "base64", "media_type": "image/jpeg", "data": "QUJD"}},
                        {"type": "text", "text": "what is this?"},
                    ],
                }
            ],
        }
        image, text = adapter.request_to_ir(body).messages[0].content
        assert image.type == "image_url"
        assert image.fields["image_url"]["url"] == "data:image/jpeg;base64,QUJD"
        assert text.text == "what is this?"


class TestRequestFromIR:
    def test_promotes_first_system_message(self):
        request = ChatRequest(
            model="claude-3-haiku",
            messages=(ChatMessage("system", "sys"), ChatMessage("user", "hi")),
        )
        body = adapter.request_from_ir(request, AdapterContext())
        assert body["system"] == "sys"
        assert body["messages"] == [{"role": "user", "content": "hi"}]

    def test_ir_system_wins_over_messages(self):
        request = ChatRequest(
            model="claude-3-haiku",
            messages=(ChatMessage("system", "inline"), ChatMessage("user", "hi")),
            system="hoisted",
        )
        body = adapter.request_from_ir(request, AdapterContext())
        assert body["system"] == "hoisted"
        assert body["messages"][0]["role"] == "system"

    def test_no_system_key_without_system(self):
        request = ChatRequest(model="gpt-4", messages=(ChatMessage("user", "Hello"),), max_tokens=1000)
        body = adapter.request_from_ir(request, AdapterContext())
        assert body == {
            "model": "gpt-4",
            "messages": [{"role": "user", "content": "Hello"}],
            "max_tokens": 1000,
            "temperature": 0.7,
            "stream": False,
        }

    def test_image_part_becomes_base64_block(self):
        image = ContentPart("image_url", fields={"image_url": {"url": "data:image/png;base64,AAAA"}})
        request = ChatRequest(model="claude", messages=(ChatMessage("user", (image,)),))
        block = adapter.request_from_ir(request, AdapterContext())["messages"][0]["content"][0]
        assert block == {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "AAAA"}}

    def test_caching_opt_in_marks_last_user_message(self):
        request = ChatRequest(model="claude-3-opus", messages=(ChatMessage("user", "hi"),))
        body = adapter.request_from_ir(request, AdapterContext(prompt_caching=True))
        assert body["messages"][0]["content"] == [
            {"type": "text", "text": "hi", "cache_control": {"type": "ephemeral"}}
        ]


class TestResponses:
    def test_to_ir(self, anthropic_response):
        response = adapter.response_to_ir(anthropic_response)
        assert response.choices[0].message.text == "Hi"
        assert response.choices[0].finish_reason == "end_turn"
        assert response.usage == Usage(10, 5, 15)

    def test_to_ir_defaults_finish_reason_to_stop(self):
        response = adapter.response_to_ir({"id": "m", "content": [{"type": "text", "text": "x"}]})
        assert response.choices[0].finish_reason == "stop"

    def test_to_ir_uses_first_text_block(self):
        body = {"content": [{"type": "tool_use", "id": "t"}, {"type": "text", "text": "answer"}]}
        assert adapter.response_to_ir(body).choices[0].message.text == "answer"

    def test_from_ir_defaults_stop_reason_to_end_turn(self):
        response = ChatResponse(id="r", model="m", choices=(Choice(0, ChatMessage("assistant", "Hi")),))
        assert adapter.response_from_ir(response)["stop_reason"] == "end_turn"

    def test_from_ir(self):
        response = ChatResponse(
            id="r",
            model="m",
            choices=(Choice(0, ChatMessage("assistant", "Hi"), "stop"),),
            usage=Usage.from_counts(3, 4),
        )
        body = adapter.response_from_ir(response)
        assert body["type"] == "message"
        assert body["content"] == [{"type": "text", "text": "Hi"}]
        assert body["stop_reason"] == "stop"
        assert body["usage"] == {"input_tokens": 3, "output_tokens": 4}


class TestChunks:
    def test_content_block_delta(self):
        chunk = adapter.chunk_to_ir(
            {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "He"}}
        )
        assert chunk.choices[0].delta.content == "He"

    def test_message_stop(self):
        chunk = adapter.chunk_to_ir({"type": "message_stop"})
        assert chunk.choices[0].finish_reason == "stop"

    def test_message_start_carries_identity(self):
        chunk = adapter.chunk_to_ir({"type": "message_start", "message": {"id": "msg_1", "model": "claude"}})
        assert (chunk.id, chunk.model, chunk.choices) == ("msg_1", "claude", ())

    def test_other_events_are_empty(self):
        assert adapter.chunk_to_ir({"type": "ping"}) == StreamChunk()

    def test_from_ir_content_and_finish(self):
        chunk = StreamChunk(choices=(ChunkChoice(0, Delta(content="bye"), "stop"),))
        events = adapter.chunk_from_ir(chunk)
        assert [event["type"] for event in events] == ["content_block_delta", "message_stop"]
        assert events[0]["delta"] == {"type": "text_delta", "text": "bye"}

    def test_from_ir_role_only_emits_nothing(self):
        chunk = StreamChunk(choices=(ChunkChoice(0, Delta(role="assistant", content="")),))
        assert adapter.chunk_from_ir(chunk) == []

    def test_event_names_follow_type(self):
        assert adapter.event_name({"type": "message_stop"}) == "message_stop"
        payload = adapter.error_payload("boom")
        assert payload == {"type": "error", "error": {"type": "api_error", "message": "boom"}}
        assert adapter.event_name(payload) == "error"
