"""Chat session - transcript with a sliding context window."""

from __future__ import annotations

import sys
import threading
import time
from dataclasses import dataclass, field

from autotrace.assistant.citations import format_message
from autotrace.assistant.client import GenerationClient

WELCOME_MESSAGE = (
    "Hello! I am your AutoTrace AI assistant. I have access to your project artifacts "
    "(Requirements, Tests, Architecture). Ask me about traceability gaps or specific "
    "items like REQ-001."
)
NETWORK_ERROR_MESSAGE = "I'm having trouble connecting to the network right now."
HISTORY_WINDOW = 10


@dataclass(frozen=True)
class ChatMessage:
    id: str
    role: str
    content: str
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp,
            "segments": [s.to_dict() for s in format_message(self.content)],
        }


class ChatSession:
    """One assistant conversation.

    The transcript starts with the welcome message. Each ``send`` passes
    the last ``history_window`` messages before the new prompt as context.
    Sends are serialized so each reply directly follows its prompt.

    Args:
        client: Generation client.
        history_window: Number of prior messages sent as context.
    """

    def __init__(self, client: GenerationClient, history_window: int = HISTORY_WINDOW) -> None:
        self.client = client
        self.history_window = history_window
        self.messages: list[ChatMessage] = [ChatMessage("welcome", "model", WELCOME_MESSAGE)]
        self._counter = 0
        self._lock = threading.Lock()

    @property
    def has_credentials(self) -> bool:
        return self.client.has_credentials

    def _next_id(self) -> str:
        self._counter += 1
        return f"{int(time.time() * 1000)}-{self._counter}"

    def context_window(self) -> list[dict[str, str]]:
        """The prior turns that would accompany the next prompt."""
        if self.history_window <= 0:
            return []
        return [
            {"role": m.role, "content": m.content}
            for m in self.messages[-self.history_window:]
        ]

    def send(self, prompt: str) -> ChatMessage | None:
        """Send a prompt and append the reply.

        Blank prompts are ignored.

        Returns:
            The model's reply message, or None for a blank prompt.
        """
        if not prompt or not prompt.strip():
            return None

        with self._lock:
            history = self.context_window()
            self.messages.append(ChatMessage(self._next_id(), "user", prompt))

            try:
                text = self.client.generate(prompt, history)
            except Exception as e:
                print(f"[assistant] Request failed: {e}", file=sys.stderr)
                text = NETWORK_ERROR_MESSAGE

            reply = ChatMessage(self._next_id(), "model", text)
            self.messages.append(reply)
            return reply

    def transcript(self) -> list[dict]:
        return [m.to_dict() for m in list(self.messages)]
