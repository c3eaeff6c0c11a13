"""
Colour themes. The choice is a persistent preference (see config.py).
"""

from typing import Optional

from pydantic import BaseModel


class ThemeOption(BaseModel):
    name: str
    css_class: str
    color: str


THEMES = [
    ThemeOption(name="Pink", css_class="theme-pink", color="#f472b6"),
    ThemeOption(name="Purple", css_class="theme-purple", color="#8b5cf6"),
    ThemeOption(name="Blue", css_class="theme-blue", color="#3b82f6"),
    ThemeOption(name="Green", css_class="theme-green", color="#10b981"),
    ThemeOption(name="Yellow", css_class="theme-yellow", color="#facc15"),
    ThemeOption(name="Red", css_class="theme-red", color="#ef4444"),
    ThemeOption(name="Orange", css_class="theme-orange", color="#f97316"),
]


def find_theme(name_or_class: str) -> Optional[ThemeOption]:
    key = name_or_class.strip().lower()
    for theme in THEMES:
        if key in (theme.name.lower(), theme.css_class):
            return theme
    return None
