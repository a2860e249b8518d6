"""Lazily populated filter vocabularies (tags, model tags, categories, keywords).

Vocabularies only feed the filter UI, so they are advisory: fetching one must
never block a listing, and a dead or changed endpoint must not be hammered.
Each vocabulary kind therefore gets

* a monotonic ``populated`` flag: once a non-empty vocabulary is stored it is
  never fetched again;
* an attempt counter: every fetch that is actually issued counts once, success
  or failure, and nothing is issued after ``max_attempts``;
* at most one in-flight attempt: callers arriving while a fetch is pending
  share it instead of starting another.

State is guarded by a lock so the check-then-schedule step is atomic even when
callers come from several threads.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Mapping, Optional, Tuple

from bs4 import Tag

from .errors import ParseFailure, TransportFailure
from .html_normalize import clean_text
from .models import FacetKind, FacetOption
from .settings import FACET_MAX_ATTEMPTS
from .transport import HtmlDocument, Transport

logger = logging.getLogger(__name__)

Vocabulary = Tuple[FacetOption, ...]
VocabularyParser = Callable[[HtmlDocument], Vocabulary]


@dataclass(frozen=True)
class VocabularySource:
    """Where a vocabulary lives and how to read it."""

    url_factory: Callable[[], str]
    parse: VocabularyParser
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass
class _VocabularyState:
    options: Vocabulary = ()
    attempts: int = 0
    populated: bool = False
    inflight: Optional["asyncio.Task[Vocabulary]"] = None


def parse_input_vocabulary(document: HtmlDocument, selector: str, label_prefix: str = "") -> Vocabulary:
    """Read ``<span><label>Text</label><input value="v"></span>`` filter entries."""

    options = []
    for entry in document.select(selector):
        label = entry.select_one("label")
        box = entry.select_one("input")
        value = box.get("value") if isinstance(box, Tag) else None
        if not isinstance(value, str) or not value.strip():
            continue
        text = clean_text(label.get_text(" ", strip=True)) if label is not None else value
        options.append(FacetOption(f"{label_prefix}{text}", value.strip()))
    if not options:
        raise ParseFailure(document.url, selector, f"no vocabulary entries matched {selector!r} in {document.url}")
    return tuple(options)


class FacetCache:
    """Per-adapter vocabulary cache with bounded, de-duplicated refreshes."""

    def __init__(
        self,
        transport: Transport,
        sources: Mapping[FacetKind, VocabularySource],
        *,
        max_attempts: int = FACET_MAX_ATTEMPTS,
    ) -> None:
        self.transport = transport
        self.sources: Dict[FacetKind, VocabularySource] = dict(sources)
        self.max_attempts = max_attempts
        self._lock = threading.Lock()
        self._states: Dict[FacetKind, _VocabularyState] = {}

    def _state(self, kind: FacetKind) -> _VocabularyState:
        state = self._states.get(kind)
        if state is None:
            state = self._states[kind] = _VocabularyState()
        return state

    def vocabulary(self, kind: FacetKind) -> Vocabulary:
        with self._lock:
            return self._state(kind).options

    def attempts(self, kind: FacetKind) -> int:
        with self._lock:
            return self._state(kind).attempts

    def is_populated(self, kind: FacetKind) -> bool:
        with self._lock:
            return self._state(kind).populated

    def is_exhausted(self, kind: FacetKind) -> bool:
        with self._lock:
            state = self._state(kind)
            return not state.populated and state.attempts >= self.max_attempts

    def ensure_vocabulary(self, kind: FacetKind) -> Vocabulary:
        """Return the cached vocabulary now; schedule a fetch in the background if due."""

        self._admit(kind)
        return self.vocabulary(kind)

    def ensure_all(self, kinds: Optional[Iterable[FacetKind]] = None) -> None:
        for kind in kinds if kinds is not None else list(self.sources):
            self.ensure_vocabulary(kind)

    async def refresh(self, kind: FacetKind) -> Vocabulary:
        """Like :meth:`ensure_vocabulary` but wait for the pending attempt, if any."""

        task = self._admit(kind)
        if task is not None:
            await asyncio.shield(task)
        return self.vocabulary(kind)

    async def wait_idle(self) -> None:
        with self._lock:
            pending = [s.inflight for s in self._states.values() if s.inflight is not None]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def cancel_pending(self) -> None:
        """Abandon in-flight attempts; each still counts against the budget."""

        with self._lock:
            pending = [s.inflight for s in self._states.values() if s.inflight is not None]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        with self._lock:
            # Tasks cancelled before their first step never reach _attempt's finally.
            for state in self._states.values():
                if state.inflight is not None and state.inflight.done():
                    state.inflight = None
                    state.attempts += 1

    def populate_from(self, kind: FacetKind, document: HtmlDocument, parse: VocabularyParser) -> Vocabulary:
        """Fill a vocabulary from a document fetched for another purpose.

        No request is made, so the attempt budget is untouched.
        """

        with self._lock:
            if self._state(kind).populated:
                return self._state(kind).options
        try:
            options = parse(document)
        except ParseFailure as exc:
            logger.debug("could not read %s vocabulary from %s: %s", kind.value, document.url, exc)
            return self.vocabulary(kind)
        with self._lock:
            state = self._state(kind)
            if options and not state.populated:
                state.options = options
                state.populated = True
                logger.info("%s vocabulary populated from %s (%d entries)", kind.value, document.url, len(options))
            return state.options

    def _admit(self, kind: FacetKind) -> Optional["asyncio.Task[Vocabulary]"]:
        source = self.sources.get(kind)
        if source is None:
            return None
        with self._lock:
            state = self._state(kind)
            if state.populated:
                return None
            if state.inflight is not None and not state.inflight.done():
                return state.inflight
            if state.attempts >= self.max_attempts:
                return None
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.debug("no running event loop; %s vocabulary not scheduled", kind.value)
                return None
            task = loop.create_task(self._attempt(kind, source))
            state.inflight = task
            return task

    async def _attempt(self, kind: FacetKind, source: VocabularySource) -> Vocabulary:
        options: Vocabulary = ()
        url = source.url_factory()
        try:
            try:
                document = await self.transport.fetch(url, source.headers or None)
                options = source.parse(document)
            except (TransportFailure, ParseFailure) as exc:
                logger.warning("%s vocabulary fetch failed (%s): %s", kind.value, url, exc)
            except Exception:
                # Runs as a detached task; nobody awaits its exception.
                logger.exception("%s vocabulary fetch crashed (%s)", kind.value, url)
        finally:
            with self._lock:
                state = self._state(kind)
                state.attempts += 1
                state.inflight = None
                if options and not state.populated:
                    state.options = options
                    state.populated = True
                    logger.info("%s vocabulary loaded (%d entries)", kind.value, len(options))
                elif not state.populated and state.attempts >= self.max_attempts:
                    logger.warning("%s vocabulary unavailable after %d attempts; giving up", kind.value, state.attempts)
        return self.vocabulary(kind)


__all__ = [
    "Vocabulary",
    "VocabularySource",
    "FacetCache",
    "parse_input_vocabulary",
]
