"""Test utilities for the pagestruct test suite.

This module provides builders for positioned lines and small synthetic pages
used across the unit and integration tests.
"""

from pagestruct.models import PositionedLine


def make_line(
    text: str = "Line of text",
    y: float = 0.0,
    x: float = 50.0,
    width: float = 300.0,
    font_size: float = 12.0,
    page: int = 1,
    **kwargs,
) -> PositionedLine:
    """Build a positioned line with sensible defaults."""
    return PositionedLine(page=page, x=x, y=y, width=width, text=text, font_size=font_size, **kwargs)


def body_text(index: int, length: int = 110) -> str:
    """Return a capitalized line of body text without a trailing period."""
    text = f"Body line {index} continues the running paragraph text with more words to fill it out"
    while len(text) < length:
        text += " and more words"
    return text[:length].rstrip()


def end_to_end_page() -> list[PositionedLine]:
    """Five lines forming a title, a two-line intro, a heading and a closing line."""
    return [
        make_line("Title", y=0, font_size=24, width=80),
        make_line("Intro paragraph text.", y=40),
        make_line("Intro continues without break.", y=60),
        make_line("Conclusion", y=160, font_size=24, width=140),
        make_line("Final text.", y=200),
    ]


def homogeneous_page(count: int = 20, page: int = 1) -> list[PositionedLine]:
    """Body lines spaced 20 +/- 0.1 apart in one font size."""
    lines = []
    y = 100.0
    for i in range(count):
        lines.append(make_line(body_text(i), y=y, width=480, page=page))
        y += 20.0 + (0.1 if i % 2 == 0 else -0.1)
    return lines


def two_column_page(rows: int = 20, page: int = 1) -> list[PositionedLine]:
    """Lines split evenly between columns at x=50 and x=450, 280 wide."""
    lines = []
    for i in range(rows):
        y = 100.0 + 20 * i
        lines.append(make_line(body_text(i, 60), y=y, x=50, width=280, page=page))
        lines.append(make_line(body_text(i + rows, 60), y=y, x=450, width=280, page=page))
    return lines
