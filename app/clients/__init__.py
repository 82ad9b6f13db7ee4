"""
Movie Facts — LLM Client (LangChain + OpenAI)

Factory + Adapter pattern: wraps LangChain's ChatOpenAI behind a small
chat-completion interface.

Design patterns used:
  - Factory: create_llm() builds configured ChatOpenAI instances
  - Adapter: ChatClient.complete() adapts LangChain to plain dict messages
"""

from __future__ import annotations

import logging
from typing import Dict, List

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

logger = logging.getLogger(__name__)


# ── LLM Factory ──────────────────────────────────────────


def create_llm(
    *,
    api_key: str,
    model: str = "gpt-3.5-turbo",
    temperature: float = 0.8,
    max_tokens: int = 200,
    timeout: float = 30.0,
) -> ChatOpenAI:
    """Factory: create a ChatOpenAI instance for the OpenAI API."""
    return ChatOpenAI(
        model=model,
        api_key=api_key,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=timeout,
        max_retries=0,
    )


# ── Message conversion helper ─────────────────────────────

def _to_langchain_messages(messages: List[Dict[str, str]]) -> list:
    """Convert our dict-based messages to LangChain message objects."""
    lc_msgs = []
    for msg in messages:
        role = msg["role"]
        content = msg["content"]
        if role == "system":
            lc_msgs.append(SystemMessage(content=content))
        elif role == "assistant":
            lc_msgs.append(AIMessage(content=content))
        else:
            lc_msgs.append(HumanMessage(content=content))
    return lc_msgs


# ── Chat client ───────────────────────────────────────────


class ChatClient:
    """Non-streaming chat completion over a single ChatOpenAI instance."""

    def __init__(self, llm: ChatOpenAI):
        self.llm = llm

    async def complete(self, messages: List[Dict[str, str]]) -> str:
        """Send a chat completion request and return the trimmed text content."""
        logger.debug("LLM request: model=%s messages=%d", self.llm.model_name, len(messages))

        response = await self.llm.ainvoke(_to_langchain_messages(messages))
        content = str(response.content or "").strip()

        logger.info("LLM response: %d chars, first 100: %s", len(content), repr(content[:100]))
        return content
