"""Tests for the assistant: citations, chat session and Gemini client."""

from __future__ import annotations

import threading
import time
from unittest.mock import MagicMock

import pytest

from autotrace.assistant import (
    ChatSession,
    GeminiClient,
    build_system_instruction,
    cited_ids,
    format_message,
    lookup_citation,
)
from autotrace.assistant import client as client_module
from autotrace.assistant.client import (
    EMPTY_RESPONSE_MESSAGE,
    GENERATION_ERROR_MESSAGE,
    MISSING_KEY_MESSAGE,
    to_gemini_history,
)
from autotrace.assistant.knowledge import PROJECT_CONTEXT
from autotrace.assistant.session import HISTORY_WINDOW, NETWORK_ERROR_MESSAGE, WELCOME_MESSAGE

# ─────────────────────────────────────────────────────────────────────────────
# Citations
# ─────────────────────────────────────────────────────────────────────────────


class TestFormatMessage:
    def test_known_ids_become_citations(self):
        segments = format_message("See REQ-001 and TC-302.")
        assert [(s.kind, s.text) for s in segments] == [
            ("text", "See "),
            ("citation", "REQ-001"),
            ("text", " and "),
            ("citation", "TC-302"),
            ("text", "."),
        ]

    def test_unknown_ids_become_code(self):
        segments = format_message("TC-304 is missing")
        assert segments[0].kind == "code"
        assert segments[0].text == "TC-304"

    def test_adjacent_ids_have_no_empty_text(self):
        segments = format_message("REQ-001REQ-002")
        assert [s.text for s in segments] == ["REQ-001", "REQ-002"]

    def test_plain_text(self):
        assert [s.kind for s in format_message("No ids here")] == ["text"]

    def test_empty(self):
        assert format_message("") == []

    def test_cited_ids_unique_in_order(self):
        assert cited_ids("ARCH-101, REQ-001, ARCH-101, ARCH-103") == ["ARCH-101", "REQ-001"]


class TestKnowledgeBase:
    def test_lookup(self):
        item = lookup_citation("DD-201")
        assert item.to_dict()["type"] == "Code"

    def test_lookup_unknown(self):
        with pytest.raises(KeyError):
            lookup_citation("ARCH-103")

    def test_context_lists_sections(self):
        assert '"ADAS L2+ System"' in PROJECT_CONTEXT
        assert "[Test Cases]" in PROJECT_CONTEXT
        assert "- REQ-001: Adaptive Cruise Control (Status: Approved)" in PROJECT_CONTEXT

    def test_system_instruction_embeds_context(self):
        instruction = build_system_instruction("CTX-LINE")
        assert "CONTEXT:\nCTX-LINE" in instruction
        assert "ISO 26262" in instruction


# ─────────────────────────────────────────────────────────────────────────────
# Chat session
# ─────────────────────────────────────────────────────────────────────────────


class TestChatSession:
    def test_starts_with_welcome(self, fake_client):
        session = ChatSession(fake_client)
        assert len(session.messages) == 1
        welcome = session.messages[0]
        assert (welcome.id, welcome.role, welcome.content) == ("welcome", "model", WELCOME_MESSAGE)

    def test_send_appends_user_and_reply(self, fake_client):
        session = ChatSession(fake_client)
        reply = session.send("What covers REQ-001?")
        assert [m.role for m in session.messages] == ["model", "user", "model"]
        assert reply.content == fake_client.reply
        prompt, history = fake_client.calls[0]
        assert prompt == "What covers REQ-001?"
        assert history == [{"role": "model", "content": WELCOME_MESSAGE}]

    def test_blank_prompt_ignored(self, fake_client):
        session = ChatSession(fake_client)
        assert session.send("   ") is None
        assert len(session.messages) == 1
        assert fake_client.calls == []

    def test_history_window(self, fake_client):
        session = ChatSession(fake_client)
        for i in range(8):
            session.send(f"question {i}")
        _, history = fake_client.calls[-1]
        assert len(history) == HISTORY_WINDOW
        # The prompt being sent is not part of its own context
        assert history[-1] == {"role": "model", "content": fake_client.reply}

    def test_zero_window_sends_no_history(self, fake_client):
        session = ChatSession(fake_client, history_window=0)
        session.send("hi")
        assert fake_client.calls[0][1] == []

    def test_client_failure_becomes_network_message(self, failing_client, capsys):
        session = ChatSession(failing_client)
        reply = session.send("hi")
        assert reply.content == NETWORK_ERROR_MESSAGE
        assert "[assistant] Request failed: down" in capsys.readouterr().err

    def test_transcript_has_segments(self, fake_client):
        session = ChatSession(fake_client)
        session.send("status?")
        last = session.transcript()[-1]
        assert {"kind": "citation", "text": "TC-301"} in last["segments"]

    def test_message_ids_unique(self, fake_client):
        session = ChatSession(fake_client)
        session.send("a")
        session.send("b")
        ids = [m.id for m in session.messages]
        assert len(set(ids)) == len(ids)

    def test_parallel_sends_keep_each_reply_after_its_prompt(self):
        class EchoClient:
            has_credentials = True

            def generate(self, prompt, history):
                time.sleep(0.001)
                return f"re: {prompt}"

        session = ChatSession(EchoClient())
        barrier = threading.Barrier(6)

        def worker(i):
            barrier.wait()
            session.send(f"question {i}")

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        turns = session.messages[1:]
        assert len(turns) == 12
        for prompt, reply in zip(turns[::2], turns[1::2]):
            assert (prompt.role, reply.role) == ("user", "model")
            assert reply.content == f"re: {prompt.content}"


# ─────────────────────────────────────────────────────────────────────────────
# Gemini client
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def fake_genai(monkeypatch):
    """Replace the SDK module used by the client."""
    genai = MagicMock()
    response = MagicMock()
    response.text = "ARCH-101 implements REQ-001."
    genai.GenerativeModel.return_value.start_chat.return_value.send_message.return_value = (
        response
    )
    monkeypatch.setattr(client_module, "genai", genai)
    return genai


class TestGeminiClient:
    def test_missing_key_returns_message_without_calling_sdk(self, fake_genai):
        client = GeminiClient(api_key="")
        assert client.has_credentials is False
        assert client.generate("hi", []) == MISSING_KEY_MESSAGE
        fake_genai.configure.assert_not_called()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("API_KEY", "k-123")
        assert GeminiClient.from_env().has_credentials is True
        monkeypatch.delenv("API_KEY")
        assert GeminiClient.from_env().has_credentials is False

    def test_generate(self, fake_genai):
        client = GeminiClient(api_key="k", model="gemini-test", system_instruction="SYS")
        history = [{"role": "model", "content": "hello"}, {"role": "user", "content": "q"}]
        text = client.generate("next", history)

        assert text == "ARCH-101 implements REQ-001."
        fake_genai.configure.assert_called_once_with(api_key="k")
        fake_genai.GenerativeModel.assert_called_once_with(
            model_name="gemini-test", system_instruction="SYS"
        )
        model = fake_genai.GenerativeModel.return_value
        model.start_chat.assert_called_once_with(
            history=[
                {"role": "model", "parts": ["hello"]},
                {"role": "user", "parts": ["q"]},
            ]
        )
        model.start_chat.return_value.send_message.assert_called_once_with("next")

    def test_configures_once(self, fake_genai):
        client = GeminiClient(api_key="k")
        client.generate("a", [])
        client.generate("b", [])
        assert fake_genai.configure.call_count == 1

    def test_sdk_error_returns_error_message(self, fake_genai, capsys):
        fake_genai.GenerativeModel.side_effect = RuntimeError("quota")
        assert GeminiClient(api_key="k").generate("a", []) == GENERATION_ERROR_MESSAGE
        assert "Gemini API error: quota" in capsys.readouterr().err

    def test_empty_reply(self, fake_genai):
        send = fake_genai.GenerativeModel.return_value.start_chat.return_value.send_message
        send.return_value.text = ""
        assert GeminiClient(api_key="k").generate("a", []) == EMPTY_RESPONSE_MESSAGE

    def test_default_system_instruction(self):
        assert GeminiClient(api_key="k").system_instruction == build_system_instruction()


class TestHistoryConversion:
    def test_non_model_roles_sent_as_user(self):
        converted = to_gemini_history([{"role": "assistant", "content": "x"}])
        assert converted == [{"role": "user", "parts": ["x"]}]
