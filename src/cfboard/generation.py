from __future__ import annotations


class FetchGeneration:
    """Monotonic tag for in-flight fetches.

    Every fetch captures ``advance()`` before awaiting; on completion it
    checks ``is_current``. Anything that supersedes the fetch (a newer
    fetch, a settings reset, teardown) advances the counter, so the older
    completion is dropped without touching widget state.
    """

    def __init__(self) -> None:
        self._current = 0

    @property
    def current(self) -> int:
        return self._current

    def advance(self) -> int:
        self._current += 1
        return self._current

    def is_current(self, generation: int) -> bool:
        return generation == self._current
