"""Keyed tracking of in-flight generations.

A caller starts a generation for a scope (e.g. "settlements:default") with
its effective parameters. Starting another one on the same scope supersedes
the first; a superseded result is dropped instead of being returned.
Nothing is kept once a generation finishes, so every request recomputes
from the ledger.
"""
import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, TypeVar

from brokerage.core.exceptions import GenerationSuperseded

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class GenerationTicket:
    scope: str
    params: Hashable
    serial: int


class GenerationRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self._serials = itertools.count(1)
        self._current: Dict[str, GenerationTicket] = {}

    def begin(self, scope: str, params: Hashable) -> GenerationTicket:
        with self._lock:
            ticket = GenerationTicket(scope, params, next(self._serials))
            previous = self._current.get(scope)
            if previous is not None:
                logger.debug(f"Generation {previous.serial} on '{scope}' superseded by {ticket.serial}")
            self._current[scope] = ticket
            return ticket

    def is_current(self, ticket: GenerationTicket) -> bool:
        with self._lock:
            return self._current.get(ticket.scope) == ticket

    def complete(self, ticket: GenerationTicket) -> bool:
        """Close a generation. False when a newer one took the scope meanwhile."""
        with self._lock:
            if self._current.get(ticket.scope) != ticket:
                logger.debug(f"Dropping stale result of generation {ticket.serial} on '{ticket.scope}'")
                return False
            del self._current[ticket.scope]
            return True

    def in_flight(self) -> int:
        with self._lock:
            return len(self._current)


def run_generation(registry: GenerationRegistry, scope: str, params: Hashable, produce: Callable[[], T]) -> T:
    """Produce a result, raising GenerationSuperseded if a newer generation started on the scope."""
    ticket = registry.begin(scope, params)
    try:
        result = produce()
    finally:
        current = registry.complete(ticket)
    if not current:
        raise GenerationSuperseded(scope)
    return result


registry = GenerationRegistry()
