"""Module 5 — Song trivia: cache, fetch backends, stale-result guard"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from .config import (
    OLLAMA_HOST,
    OLLAMA_MODEL,
    OPENAI_API_KEY,
    OPENAI_BASE_URL,
    TRIVIA_MODEL,
    TRIVIA_TIMEOUT,
)
from .models import TrackIdentity
from .state import POLL, PresentationState

logger = logging.getLogger(__name__)

TRIVIA_FETCHING = "Fetching trivia…"
TRIVIA_HINT = "Set OPENAI_API_KEY to show trivia."
TRIVIA_UNAVAILABLE = "Trivia unavailable"
TRIVIA_ERROR = "(AI error)"
TRIVIA_EMPTY = "(no trivia)"

SENTINELS = (TRIVIA_FETCHING, TRIVIA_HINT, TRIVIA_UNAVAILABLE, TRIVIA_ERROR, TRIVIA_EMPTY)

Fetcher = Callable[[str, str], Awaitable[str]]


def build_prompt(title: str, artist: str) -> str:
    return (
        f'Write a detailed and engaging description in Markdown format about the song "{title}" '
        f"by {artist}. Include historical context, lyrical themes, impact, and any notable facts "
        f"about the artist related to the track. The response should be at least 5-10 sentences "
        f"and formatted with proper Markdown (e.g. headings, italics, bold if needed)."
    )


class OpenAIFetcher:
    """Chat completions against an OpenAI-compatible endpoint."""

    def __init__(
        self,
        api_key: str = OPENAI_API_KEY,
        base_url: str = OPENAI_BASE_URL,
        model: str = TRIVIA_MODEL,
        timeout: float = TRIVIA_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.timeout = timeout
        self.transport = transport

    async def __call__(self, title: str, artist: str) -> str:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": build_prompt(title, artist)}],
                },
            )
            response.raise_for_status()
            data = response.json()
            return (data["choices"][0]["message"]["content"] or "").strip()


class OllamaFetcher:
    """Local model through Ollama's /api/chat."""

    def __init__(
        self,
        host: str = OLLAMA_HOST,
        model: str = OLLAMA_MODEL,
        timeout: float = TRIVIA_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.host = host
        self.model = model
        self.timeout = timeout
        self.transport = transport

    async def __call__(self, title: str, artist: str) -> str:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                f"{self.host}/api/chat",
                json={
                    "model": self.model,
                    "messages": [{"role": "user", "content": build_prompt(title, artist)}],
                    "stream": False,
                },
            )
            response.raise_for_status()
            data = response.json()
            return data["message"]["content"].strip()


def make_fetcher(backend: Optional[str]) -> Optional[Fetcher]:
    if backend == "openai":
        return OpenAIFetcher()
    if backend == "ollama":
        return OllamaFetcher()
    return None


class TriviaService:
    """One fetch per distinct track; results land only on the track they were for.

    Entries are written once and kept for the whole session. Errors are cached
    like any other answer and never retried.
    """

    def __init__(self, fetcher: Optional[Fetcher] = None, on_change: Optional[Callable[[], None]] = None):
        self.fetcher = fetcher
        self.available = fetcher is not None
        self.on_change = on_change
        self.cache: dict[TrackIdentity, str] = {}
        self.pending: dict[TrackIdentity, asyncio.Task] = {}
        self.current: Optional[TrackIdentity] = None
        self.text: str = self.placeholder
        self.scroll = 0
        self.fetch_count = 0

    @property
    def placeholder(self) -> str:
        return TRIVIA_FETCHING if self.available else TRIVIA_HINT

    def get_trivia(self, identity: TrackIdentity) -> str:
        if identity in self.cache:
            return self.cache[identity]
        if not self.available:
            self.cache[identity] = TRIVIA_UNAVAILABLE
            return TRIVIA_UNAVAILABLE
        if identity not in self.pending:
            self.fetch_count += 1
            task = asyncio.create_task(self._fetch(identity))
            self.pending[identity] = task
        return TRIVIA_FETCHING

    async def _fetch(self, identity: TrackIdentity):
        title, artist = identity
        try:
            text = (await self.fetcher(title, artist) or "").strip() or TRIVIA_EMPTY
        except Exception as e:
            logger.warning("trivia fetch failed for %s - %s: %s", title, artist, e)
            text = TRIVIA_ERROR
        self.cache[identity] = text
        self.pending.pop(identity, None)
        if self.current == identity:
            self.text = text
            self._changed()

    def show(self, identity: Optional[TrackIdentity]):
        """Point the panel at a track, fetching its trivia if needed."""
        if identity is None or identity == self.current:
            return
        self.current = identity
        self.scroll = 0
        result = self.get_trivia(identity)
        self.text = self.placeholder if result == TRIVIA_FETCHING else result

    def observe(self, state: PresentationState):
        """State subscriber: follow track changes reported by polls."""
        if state.origin != POLL or state.snapshot is None:
            return
        self.show(state.snapshot.identity)

    def scroll_by(self, lines: int):
        self.scroll = max(0, self.scroll + lines)
        self._changed()

    def _changed(self):
        if self.on_change:
            self.on_change()
