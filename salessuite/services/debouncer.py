"""
Debounced suggestion lookups for the business and location inputs.

Each keystroke restarts a per-field timer; only when the timer elapses is a
lookup issued. Every input change bumps the field's generation counter and a
lookup result is applied only if no newer input has happened since, so a slow
response can never overwrite fresher suggestions.

This is the client-side half of /api/suggestions. An input widget wires it to
``sales_ai.get_suggestions`` (in process) or to a call against the HTTP route:

    debouncer = SuggestionDebouncer(get_suggestions, on_result=render_dropdown)
    debouncer.on_input("business", text, context=location_text)
    debouncer.select("business", picked)

Any exception raised by the lookup is passed to ``on_error`` or logged; it
never escapes into the timer thread.
"""
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from salessuite.models import MAX_SUGGESTIONS, SuggestionSet

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.3
MIN_QUERY_LENGTH = 2

Lookup = Callable[[str, str, Any], List[str]]


class SuggestionDebouncer:
    """
    Coalesces rapid input changes into one lookup per quiet window, per field.

    Args:
        lookup: Called as ``lookup(query, field, context)``; returns suggestions.
        on_result: Called with (field, suggestions) whenever a field's suggestions change.
        on_error: Called with (field, exception) when a lookup fails.
        delay: Quiet window in seconds.
        min_length: Queries shorter than this clear suggestions without a lookup.
        timer_factory: ``threading.Timer`` compatible constructor.
    """

    def __init__(
        self,
        lookup: Lookup,
        on_result: Optional[Callable[[str, List[str]], None]] = None,
        on_error: Optional[Callable[[str, Exception], None]] = None,
        delay: float = DEBOUNCE_SECONDS,
        min_length: int = MIN_QUERY_LENGTH,
        timer_factory=threading.Timer,
    ):
        self.lookup = lookup
        self.on_result = on_result
        self.on_error = on_error
        self.delay = delay
        self.min_length = min_length
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timers: Dict[str, Any] = {}
        self._generations: Dict[str, int] = {}
        self._suggestions: Dict[str, SuggestionSet] = {}

    def suggestions(self, field: str) -> List[str]:
        with self._lock:
            current = self._suggestions.get(field)
            return list(current.suggestions) if current else []

    def generation(self, field: str) -> int:
        with self._lock:
            return self._generations.get(field, 0)

    def on_input(self, field: str, value: str, context: Any = None) -> None:
        """Register an input change; (re)starts the field's timer."""
        query = (value or "").strip()
        with self._lock:
            self._cancel_timer(field)
            generation = self._bump(field)
            if len(query) < self.min_length:
                changed = self._set(field, [])
            else:
                changed = False
                timer = self._timer_factory(
                    self.delay, self._fire, args=(field, query, generation, context)
                )
                timer.daemon = True
                self._timers[field] = timer
                timer.start()
        if changed:
            self._notify(field, [])

    def select(self, field: str, value: str) -> None:
        """A suggestion was picked; clear the list and drop pending lookups."""
        logger.debug(f"Suggestion selected for {field}: {value!r}")
        self._clear(field)

    def blur(self, field: str) -> None:
        self._clear(field)

    def cancel_all(self) -> None:
        with self._lock:
            for field in list(self._timers):
                self._cancel_timer(field)

    def _fire(self, field: str, query: str, generation: int, context: Any) -> None:
        with self._lock:
            if self._generations.get(field) != generation:
                return
            self._timers.pop(field, None)

        try:
            result = self.lookup(query, field, context)
        except Exception as e:
            logger.warning(f"Suggestion lookup failed for {field}={query!r}: {e}")
            if self.on_error:
                self.on_error(field, e)
            return

        with self._lock:
            if self._generations.get(field) != generation:
                logger.debug(f"Discarding stale suggestions for {field}={query!r}")
                return
            suggestions = list(result or [])[:MAX_SUGGESTIONS]
            self._set(field, suggestions)
        self._notify(field, suggestions)

    def _clear(self, field: str) -> None:
        with self._lock:
            self._cancel_timer(field)
            self._bump(field)
            changed = self._set(field, [])
        if changed:
            self._notify(field, [])

    def _bump(self, field: str) -> int:
        generation = self._generations.get(field, 0) + 1
        self._generations[field] = generation
        return generation

    def _set(self, field: str, suggestions: List[str]) -> bool:
        previous = self._suggestions.get(field)
        self._suggestions[field] = SuggestionSet(field=field, suggestions=suggestions)
        return previous is None or previous.suggestions != suggestions

    def _cancel_timer(self, field: str) -> None:
        timer = self._timers.pop(field, None)
        if timer is not None:
            timer.cancel()

    def _notify(self, field: str, suggestions: List[str]) -> None:
        if self.on_result:
            self.on_result(field, suggestions)
