"""Narration sizing for toddler books.

Text metrics here are estimates (average glyph width = 0.6 × font size), good
enough to pick a font size and line breaks before the real renderer runs.
"""
import math
from typing import NamedTuple

_AVG_CHAR_WIDTH = 0.6
MIN_FONT_SIZE = 42
MAX_FONT_SIZE = 72


class TextMetrics(NamedTuple):
    font_size: float
    line_height: float
    lines: list[str]
    total_height: float


def wrap_words(words: list[str], chars_per_line: int) -> list[str]:
    """Greedy word wrap by character count."""
    lines: list[str] = []
    current = ""
    for word in words:
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= chars_per_line:
            current = candidate
        else:
            if current:
                lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def calculate_optimal_font_size(
    text: str,
    max_width: float,
    max_height: float,
    min_font_size: int = MIN_FONT_SIZE,
    max_font_size: int = MAX_FONT_SIZE,
    line_height_ratio: float = 1.6,
) -> TextMetrics:
    """Largest font size (stepping down by 2) whose wrapped text fits the box.

    When nothing fits, the smallest size tried is returned with its overflowing
    lines — the caller decides whether to shorten the text.
    """
    words = text.split()
    font_size = max_font_size
    lines: list[str] = []
    for size in range(max_font_size, min_font_size - 1, -2):
        font_size = size
        chars_per_line = max(1, int(max_width // (size * _AVG_CHAR_WIDTH)))
        lines = wrap_words(words, chars_per_line)
        if len(lines) * size * line_height_ratio <= max_height:
            break
    line_height = font_size * line_height_ratio
    return TextMetrics(
        font_size=font_size,
        line_height=line_height,
        lines=lines,
        total_height=len(lines) * line_height,
    )


def split_text_for_display(text: str, max_words_per_line: int = 5) -> list[str]:
    """Balanced line breaks; a single trailing word is pulled up to avoid an orphan."""
    words = text.split()
    if len(words) <= max_words_per_line:
        return [text]

    line_count = math.ceil(len(words) / max_words_per_line)
    per_line = math.ceil(len(words) / line_count)
    lines = [" ".join(words[i:i + per_line]) for i in range(0, len(words), per_line)]

    if len(lines) > 1 and len(lines[-1].split()) == 1:
        orphan = lines.pop()
        lines[-1] = f"{lines[-1]} {orphan}"
    return lines


def recommended_font_size(word_count: int) -> int:
    if word_count <= 10:
        return 72
    if word_count <= 15:
        return 56
    if word_count <= 20:
        return 48
    if word_count <= 25:
        return 44
    return MIN_FONT_SIZE
