"""
Movie Facts — Fact Generator

Priority order for a movie title:
  1. the hard-coded fact table (most specific key first)
  2. the LLM, when an OpenAI key is configured
  3. a canned sentence naming the movie

The table lookup avoids repeating the previously shown fact and is
deterministic when the caller supplies a request id.
"""

from __future__ import annotations

import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple

from app.clients import ChatClient
from app.errors import clean_title
from app.models import FactSource, GeneratedFact

logger = logging.getLogger(__name__)


_HOME_ALONE_2_FACTS = (
    "Home Alone 2 was the first film to be shot inside the Plaza Hotel, and Donald Trump "
    "has a cameo directing Kevin to the lobby.",
    "The pigeon lady was played by Brenda Fricker, who won an Oscar for 'My Left Foot' "
    "the same year Home Alone was released.",
    "Tim Curry was originally cast as the hotel concierge but was replaced by Rob Schneider "
    "after creative differences.",
)

# Ordered most specific first: sequel keys must be checked before "home alone".
FACT_TABLE: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("home alone 2", _HOME_ALONE_2_FACTS),
    ("lost in new york", _HOME_ALONE_2_FACTS),
    ("home alone", (
        "Home Alone was originally written for John Hughes' own son, and the famous scream face "
        "was inspired by Edvard Munch's painting 'The Scream'.",
        "Macaulay Culkin was paid $100,000 for the first Home Alone, but earned $4.5 million "
        "for Home Alone 2.",
        "The tarantula used in the movie was actually harmless, and Daniel Stern's scream was "
        "dubbed in later because his real scream was too loud.",
    )),
    ("titanic", (
        "The famous 'I'm flying' scene was filmed against a real sunset, and Kate Winslet's hair "
        "kept getting caught in Leo's mouth during takes.",
        "James Cameron drew the nude sketches of Rose himself, and the hands shown sketching in "
        "the movie are actually his hands.",
        "The elderly couple lying in bed as the ship sinks were based on the real Ida and "
        "Isidor Straus, who died on the Titanic.",
    )),
    ("avatar", (
        "James Cameron developed the technology for Avatar over 14 years, waiting for CGI to "
        "advance enough to bring his vision to life.",
        "The Na'vi language was created by linguist Paul Frommer and has over 1,000 words with "
        "its own grammar structure.",
        "Sam Worthington was working as a bricklayer in Australia when he was cast as Jake Sully.",
    )),
)

FACTS_BY_KEY: Dict[str, Tuple[str, ...]] = dict(FACT_TABLE)

_SYSTEM_PROMPT = (
    "You are a movie trivia expert. Provide specific, interesting facts about movies including "
    "behind-the-scenes information, production details, cast trivia, or box office records. "
    "Always be specific to the movie mentioned."
)

_USER_PROMPT = (
    'Tell me a specific and interesting fact about the movie "{title}". Include details like '
    "cast, production, box office, or behind-the-scenes trivia. Be specific to this movie, not "
    "general movie facts. Keep it 1-2 sentences."
)

NO_CREDENTIAL_TEMPLATE = (
    'I don\'t have specific facts about "{title}" available right now, but it\'s a great movie! '
    "Try refreshing the page."
)
EMPTY_OUTPUT_TEMPLATE = (
    'Sorry, I couldn\'t generate a specific fact about "{title}" right now. '
    "Try refreshing the page for a new attempt!"
)
CALL_FAILED_TEMPLATE = (
    'I\'m having trouble generating facts right now, but "{title}" is definitely a great movie! '
    "Try refreshing the page."
)


# ── Table lookup ─────────────────────────────────────────


def match_fact_key(title: str) -> Optional[str]:
    """First key in FACT_TABLE contained in the lowercased title."""
    title_lower = title.lower()
    for key, _ in FACT_TABLE:
        if key in title_lower:
            return key
    return None


def select_fact(
    facts: Sequence[str],
    request_id: Optional[int] = None,
    exclude_fact: Optional[str] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """
    Pick one fact, avoiding `exclude_fact` when there is an alternative.

    A single-entry list is returned as is. Otherwise the excluded fact is
    dropped unless that leaves nothing. With a request id the choice is
    `request_id % len(candidates)`; without one it is random.
    """
    if not facts:
        raise ValueError("facts must not be empty")
    if len(facts) == 1:
        return facts[0]

    candidates: List[str] = [f for f in facts if f != exclude_fact] if exclude_fact else list(facts)
    if not candidates:
        candidates = list(facts)

    if request_id is not None:
        return candidates[request_id % len(candidates)]
    return (rng or random).choice(candidates)


def table_fact(
    title: str,
    request_id: Optional[int] = None,
    exclude_fact: Optional[str] = None,
) -> Optional[str]:
    key = match_fact_key(title)
    if key is None:
        return None
    return select_fact(FACTS_BY_KEY[key], request_id=request_id, exclude_fact=exclude_fact)


# ── LLM wrapper ──────────────────────────────────────────


class FactLLM:
    """Prompts the chat client for one trivia sentence about a movie."""

    def __init__(self, chat: ChatClient):
        self.chat = chat

    async def complete(self, title: str) -> str:
        messages = [
            {"role": "system", "content": _SYSTEM_PROMPT},
            {"role": "user", "content": _USER_PROMPT.format(title=title)},
        ]
        return await self.chat.complete(messages)


# ── Generator ────────────────────────────────────────────


class FactGenerator:
    """Table → LLM → canned sentence."""

    def __init__(self, llm: Optional[FactLLM] = None):
        self.llm = llm

    async def generate(
        self,
        title: str,
        request_id: Optional[int] = None,
        exclude_fact: Optional[str] = None,
    ) -> GeneratedFact:
        """
        Return one fact about `title` with its provenance.

        Raises InvalidTitleError for a missing or blank title; every other
        failure degrades to a canned sentence.
        """
        title = clean_title(title)

        fact = table_fact(title, request_id=request_id, exclude_fact=exclude_fact)
        if fact is not None:
            return GeneratedFact(text=fact, source=FactSource.TABLE)

        if self.llm is None:
            return GeneratedFact(text=NO_CREDENTIAL_TEMPLATE.format(title=title), source=FactSource.GENERIC)

        try:
            text = await self.llm.complete(title)
        except Exception as exc:
            logger.warning("LLM fact generation failed for %r: %s", title, exc)
            return GeneratedFact(text=CALL_FAILED_TEMPLATE.format(title=title), source=FactSource.GENERIC)

        text = (text or "").strip()
        if not text:
            return GeneratedFact(text=EMPTY_OUTPUT_TEMPLATE.format(title=title), source=FactSource.GENERIC)

        return GeneratedFact(text=text, source=FactSource.LLM)
