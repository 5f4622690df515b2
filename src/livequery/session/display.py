"""Output surface sizing policy."""

from __future__ import annotations

from dataclasses import dataclass

from livequery.config.schema import ResizeStyle, SessionOptions


def count_lines(output: bytes) -> int:
    """Number of display lines in output; an unterminated last line counts."""
    if not output:
        return 0
    lines = output.count(b"\n")
    if not output.endswith(b"\n"):
        lines += 1
    return lines


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


@dataclass(frozen=True)
class DisplayUpdate:
    """What the host should do with a new result."""

    height: int
    resize: bool  # Height differs from the cached height


class DisplayController:
    """Translate results into surface heights for one resize style.

    - FIXED: always min_height
    - FIT: clamp(lines, min, max)
    - GROW: clamp(max(cached, lines), min, max), never shrinks in a session
    """

    def __init__(self, style: ResizeStyle, min_height: int, max_height: int) -> None:
        if max_height < min_height:
            raise ValueError(f"max_height {max_height} < min_height {min_height}")
        self.style = style
        self.min_height = min_height
        self.max_height = max_height

    @classmethod
    def from_options(cls, options: SessionOptions) -> DisplayController:
        return cls(options.resize_style, options.min_height, options.max_height)

    def initial_height(self) -> int:
        return self.min_height

    def target_height(self, line_count: int, cached_height: int = 0) -> int:
        if self.style is ResizeStyle.FIXED:
            return self.min_height
        if self.style is ResizeStyle.GROW:
            line_count = max(cached_height, line_count)
        return clamp(line_count, self.min_height, self.max_height)

    def plan(
        self,
        output: bytes,
        cached_result: bytes | None,
        cached_height: int,
    ) -> DisplayUpdate | None:
        """Plan a redraw for new output.

        Returns:
            None when output is byte-identical to the cached result,
            otherwise the target height.
        """
        if cached_result is not None and output == cached_result:
            return None
        height = self.target_height(count_lines(output), cached_height)
        return DisplayUpdate(height=height, resize=height != cached_height)
