"""Line-level edits to a .zshrc.

All functions are pure: text in, text out. Reading/writing the file and
taking a backup is the caller's job.
"""

from __future__ import annotations

import re
from typing import Mapping, Sequence

ALIAS_MARKER = "# Custom aliases added by setup script"

_THEME_RE = re.compile(r"^ZSH_THEME=.*$", re.MULTILINE)
_PLUGINS_RE = re.compile(r"^plugins=.*$", re.MULTILINE)


def _replace_or_append(text: str, pattern: re.Pattern[str], line: str) -> str:
    if pattern.search(text):
        return pattern.sub(lambda _m: line, text)
    if text and not text.endswith("\n"):
        text += "\n"
    return text + line + "\n"


def set_theme(text: str, theme: str) -> str:
    return _replace_or_append(text, _THEME_RE, f'ZSH_THEME="{theme}"')


def set_plugins(text: str, plugins: Sequence[str]) -> str:
    return _replace_or_append(text, _PLUGINS_RE, f"plugins=({' '.join(plugins)})")


def has_aliases_block(text: str) -> bool:
    return any(line.strip() == ALIAS_MARKER for line in text.splitlines())


def _dquote(value: str) -> str:
    # characters that stay special inside zsh double quotes
    escaped = re.sub(r'([\\"$`])', r"\\\1", value)
    return f'"{escaped}"'


def ensure_aliases(text: str, aliases: Mapping[str, str]) -> str:
    """Append the marker and alias lines, preceded by one blank line."""
    if has_aliases_block(text):
        return text
    if text and not text.endswith("\n"):
        text += "\n"
    block = [ALIAS_MARKER] + [f"alias {name}={_dquote(value)}" for name, value in aliases.items()]
    return text + "\n" + "\n".join(block) + "\n"
