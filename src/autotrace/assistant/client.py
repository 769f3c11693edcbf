"""Generation client for the assistant.

``GeminiClient`` wraps the Google Generative AI SDK: it builds a chat from
the prior turns, sends the new prompt with the system instruction and
returns plain text. Failures degrade to fixed messages instead of raising.
"""

from __future__ import annotations

import os
import sys
from typing import Protocol, Sequence

import google.generativeai as genai

from autotrace.assistant.knowledge import PROJECT_CONTEXT

DEFAULT_MODEL = "gemini-2.5-flash"

MISSING_KEY_MESSAGE = "Error: API Key is missing. Please set the API_KEY environment variable."
GENERATION_ERROR_MESSAGE = (
    "I encountered an error while processing your request. Please try again later."
)
EMPTY_RESPONSE_MESSAGE = "I couldn't generate a response."

SYSTEM_INSTRUCTION_TEMPLATE = """\
You are AutoTrace AI, an expert assistant for automotive software engineering.
Your expertise includes:
- ASPICE (Automotive SPICE) process compliance.
- ISO 26262 Functional Safety standards.
- Bidirectional traceability (Requirements <-> Design <-> Code <-> Test).

CONTEXT:
{context}

INSTRUCTIONS:
1. Always cite specific artifact IDs (e.g., REQ-001, TC-302) when relevant to the user's question.
2. If the user asks about the status of the project, use the provided artifact statuses.
3. Provide professional, concise, and actionable advice.
4. Use markdown for formatting lists or code.
"""


def build_system_instruction(context: str = PROJECT_CONTEXT) -> str:
    return SYSTEM_INSTRUCTION_TEMPLATE.format(context=context)


class GenerationClient(Protocol):
    """Anything that turns (history, prompt) into reply text."""

    @property
    def has_credentials(self) -> bool: ...

    def generate(self, prompt: str, history: Sequence[dict[str, str]]) -> str: ...


def to_gemini_history(history: Sequence[dict[str, str]]) -> list[dict]:
    """Convert ``{"role", "content"}`` turns to SDK chat history.

    Any role other than ``model`` is sent as ``user``.
    """
    return [
        {
            "role": "model" if turn.get("role") == "model" else "user",
            "parts": [turn.get("content", "")],
        }
        for turn in history
    ]


class GeminiClient:
    """Gemini chat client.

    Args:
        api_key: API key; when empty, ``generate`` returns the missing-key
            message without calling the SDK.
        model: Model name.
        system_instruction: System prompt sent with every chat.
    """

    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        system_instruction: str | None = None,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self.system_instruction = system_instruction or build_system_instruction()
        self._configured = False

    @classmethod
    def from_env(cls, env_var: str = "API_KEY", model: str = DEFAULT_MODEL) -> GeminiClient:
        """Read the API key from ``env_var``."""
        return cls(api_key=os.environ.get(env_var, ""), model=model)

    @property
    def has_credentials(self) -> bool:
        return bool(self._api_key)

    def _ensure_configured(self) -> None:
        if not self._configured:
            genai.configure(api_key=self._api_key)
            self._configured = True

    def generate(self, prompt: str, history: Sequence[dict[str, str]]) -> str:
        if not self.has_credentials:
            return MISSING_KEY_MESSAGE

        try:
            self._ensure_configured()
            model = genai.GenerativeModel(
                model_name=self.model,
                system_instruction=self.system_instruction,
            )
            chat = model.start_chat(history=to_gemini_history(history))
            response = chat.send_message(prompt)
            text = response.text
        except Exception as e:
            print(f"[assistant] Gemini API error: {e}", file=sys.stderr)
            return GENERATION_ERROR_MESSAGE

        return text or EMPTY_RESPONSE_MESSAGE
