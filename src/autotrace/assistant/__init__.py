"""AI assistant - chat transcript, citation lookup and Gemini generation."""

from autotrace.assistant.citations import CITATION_PATTERN, Segment, cited_ids, format_message
from autotrace.assistant.client import GeminiClient, GenerationClient, build_system_instruction
from autotrace.assistant.knowledge import KNOWLEDGE_BASE, KnowledgeItem, lookup_citation
from autotrace.assistant.session import ChatMessage, ChatSession

__all__ = [
    "CITATION_PATTERN",
    "ChatMessage",
    "ChatSession",
    "GeminiClient",
    "GenerationClient",
    "KNOWLEDGE_BASE",
    "KnowledgeItem",
    "Segment",
    "build_system_instruction",
    "cited_ids",
    "format_message",
    "lookup_citation",
]
