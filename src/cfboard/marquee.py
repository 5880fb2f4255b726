from __future__ import annotations

MARQUEE_PAUSE_TICKS = 3
MARQUEE_SEPARATOR = "  •  "
DEFAULT_MAX_VISIBLE = 10


class MarqueeController:
    """Circular scrolling window over text wider than a key.

    The text loops through ``text + MARQUEE_SEPARATOR`` like a news ticker.
    Each cycle pauses for ``MARQUEE_PAUSE_TICKS`` ticks at offset 0, then
    advances one character per tick until the offset wraps back to 0.
    ``tick()`` returns True only when the visible window changed.
    """

    def __init__(self, max_visible: int = DEFAULT_MAX_VISIBLE) -> None:
        self.max_visible = max_visible
        self._text = ""
        self._offset = 0
        self._pause_remaining = 0

    @property
    def full_text(self) -> str:
        return self._text

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def pause_remaining(self) -> int:
        return self._pause_remaining

    @property
    def loop_length(self) -> int:
        return len(self._text) + len(MARQUEE_SEPARATOR)

    def set_text(self, text: str) -> None:
        if text == self._text:
            return
        self._text = text
        self.reset()

    def reset(self) -> None:
        self._offset = 0
        self._pause_remaining = MARQUEE_PAUSE_TICKS

    def needs_animation(self) -> bool:
        return len(self._text) > self.max_visible

    def current_text(self) -> str:
        if not self.needs_animation():
            return self._text
        loop = self._text + MARQUEE_SEPARATOR
        n = len(loop)
        return "".join(loop[(self._offset + i) % n] for i in range(self.max_visible))

    def tick(self) -> bool:
        if not self.needs_animation():
            return False
        if self._pause_remaining > 0:
            self._pause_remaining -= 1
            return False
        self._offset = (self._offset + 1) % self.loop_length
        if self._offset == 0:
            self._pause_remaining = MARQUEE_PAUSE_TICKS
        return True
