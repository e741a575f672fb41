"""SVG funding badge rendering."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from fundbadge.config.constants import (
    ERROR_COLOR,
    EXCEEDED_COLOR,
    PROGRESS_COLORS,
    BadgeStyle,
)

LOGO_URL = "https://cdn.simpleicons.org/{logo}/fff"
MIN_MESSAGE_WIDTH = 200


@dataclass(frozen=True)
class _StyleMetrics:
    height: int
    font_size: int
    padding: int
    char_width: float
    radius: int
    uppercase: bool = False
    letter_spacing: float = 0.0
    bold: bool = False


_METRICS = {
    BadgeStyle.FLAT: _StyleMetrics(height=20, font_size=11, padding=6, char_width=6.5, radius=3),
    BadgeStyle.FLAT_SQUARE: _StyleMetrics(height=20, font_size=11, padding=6, char_width=6.5, radius=0),
    BadgeStyle.FOR_THE_BADGE: _StyleMetrics(
        height=28,
        font_size=10,
        padding=12,
        char_width=7.5,
        radius=0,
        uppercase=True,
        letter_spacing=1.25,
        bold=True,
    ),
}


def progress_color(percentage: float) -> str:
    """Colour for a goal completion percentage."""
    for upper, color in PROGRESS_COLORS:
        if percentage < upper:
            return color
    return EXCEEDED_COLOR


def format_amount(amount: float) -> str:
    if amount >= 1_000_000:
        return f"{amount / 1_000_000:.1f}M"
    if amount >= 1_000:
        return f"{amount / 1_000:.1f}k"
    return f"{amount:.0f}"


def format_message(current: float, goal: float) -> str:
    percentage = round((current / goal) * 100)
    return f"${format_amount(current)} / ${format_amount(goal)} ({percentage}%)"


class BadgeGenerator:
    """Renders shields-style SVG badges."""

    TEMPLATE_DIR = Path(__file__).parent.parent / "templates"

    def __init__(self) -> None:
        self._env = Environment(
            loader=FileSystemLoader(str(self.TEMPLATE_DIR)),
            autoescape=select_autoescape(["html", "xml", "svg"]),
        )

    def generate_funding_badge(
        self,
        current: float,
        goal: float,
        style: str = BadgeStyle.FLAT.value,
        label: str = "Funding",
        logo: str | None = None,
        color: str | None = None,
    ) -> str:
        if goal <= 0:
            raise ValueError("goal must be positive")

        percentage = (current / goal) * 100
        return self._render(
            label=label,
            message=format_message(current, goal),
            color=color or progress_color(percentage),
            style=BadgeStyle(style),
            logo=logo,
            min_message_width=MIN_MESSAGE_WIDTH,
        )

    def generate_error_badge(self, message: str = "Error") -> str:
        return self._render(
            label="Maintenance Fund",
            message=message,
            color=ERROR_COLOR,
            style=BadgeStyle.FLAT_SQUARE,
        )

    def _render(
        self,
        label: str,
        message: str,
        color: str,
        style: BadgeStyle,
        logo: str | None = None,
        min_message_width: int = 0,
    ) -> str:
        m = _METRICS[style]
        if m.uppercase:
            label, message = label.upper(), message.upper()

        logo_width = 17 if logo else 0
        label_width = self._text_width(label, m) + 2 * m.padding + logo_width
        message_width = max(self._text_width(message, m) + 2 * m.padding, min_message_width)

        context: dict[str, Any] = {
            "style": style.value,
            "label": label,
            "message": message,
            "color": color.lstrip("#").lower(),
            "width": label_width + message_width,
            "height": m.height,
            "radius": m.radius,
            "padding": m.padding,
            "label_width": label_width,
            "message_width": message_width,
            "label_x": (label_width + logo_width) / 2,
            "message_x": label_width + message_width / 2,
            "text_y": m.height / 2 + m.font_size / 2 - 1,
            "font_size": m.font_size,
            "letter_spacing": m.letter_spacing,
            "bold": m.bold,
            "logo_url": LOGO_URL.format(logo=logo) if logo else None,
        }
        return self._env.get_template("badge.svg").render(**context)

    @staticmethod
    def _text_width(text: str, m: _StyleMetrics) -> int:
        return round(len(text) * (m.char_width + m.letter_spacing))
