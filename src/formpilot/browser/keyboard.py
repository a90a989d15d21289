"""Keyboard shortcut normalization and parsing.

A shortcut string such as ``"Ctrl+Shift+I"`` or ``"Tab Tab Enter"`` goes
through two pure stages:

1. ``normalize_shortcut`` rewrites platform-ambiguous modifier names for the
   target platform (``Ctrl``/``Cmd`` become ``Meta`` on macOS, ``Cmd``/``Meta``
   become ``Ctrl`` elsewhere).
2. ``parse_key_sequence`` splits the result into ordered ``KeySequence``
   steps, one per whitespace-separated token.

``to_key_press`` then maps a parsed step onto the key description accepted by
Playwright's ``keyboard.press``.
"""

import platform
import re
from typing import Dict, List

from formpilot.models.browser_models import KeySequence

_MAC_MODIFIERS = re.compile(r"(?<![A-Za-z0-9])(ctrl|control|cmd|command)\+", re.IGNORECASE)
_OTHER_MODIFIERS = re.compile(r"(?<![A-Za-z0-9])(cmd|command|meta)\+", re.IGNORECASE)

_MODIFIER_FLAGS: Dict[str, str] = {
    "ctrl": "ctrl",
    "control": "ctrl",
    "alt": "alt",
    "option": "alt",
    "shift": "shift",
    "meta": "meta",
    "cmd": "meta",
    "command": "meta",
}

KEY_SYNONYMS: Dict[str, str] = {
    "tab": "Tab",
    "enter": "Enter",
    "return": "Enter",
    "escape": "Escape",
    "esc": "Escape",
    "space": "Space",
    "backspace": "Backspace",
    "delete": "Delete",
    "del": "Delete",
    "up": "ArrowUp",
    "arrowup": "ArrowUp",
    "down": "ArrowDown",
    "arrowdown": "ArrowDown",
    "left": "ArrowLeft",
    "arrowleft": "ArrowLeft",
    "right": "ArrowRight",
    "arrowright": "ArrowRight",
    "home": "Home",
    "end": "End",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    "insert": "Insert",
}
KEY_SYNONYMS.update({f"f{number}": f"F{number}" for number in range(1, 13)})


def is_mac_platform() -> bool:
    """Return True when running on macOS."""
    return platform.system() == "Darwin"


def normalize_shortcut(raw: str, is_mac: bool) -> str:
    """Rewrite modifier names for the target platform.

    Only names used as modifiers (followed by ``+``) are rewritten; every
    occurrence is replaced, case-insensitively. Applying the function twice
    with the same ``is_mac`` gives the same result as applying it once.

    Args:
        raw: Shortcut string as written by a human
        is_mac: Whether the target platform is macOS

    Returns:
        Normalized shortcut string
    """
    normalized = (raw or "").strip()
    if is_mac:
        return _MAC_MODIFIERS.sub("Meta+", normalized)
    return _OTHER_MODIFIERS.sub("Ctrl+", normalized)


def parse_key_sequence(keys: str) -> List[KeySequence]:
    """Split a normalized shortcut string into ordered key sequences.

    Each whitespace-separated token is one sequence. Within a token, every
    ``+``-separated segment but the last names a modifier; unrecognized
    modifier names are ignored. The last segment is the key.

    Args:
        keys: Normalized shortcut string

    Returns:
        Key sequences in execution order
    """
    sequences = []
    for token in (keys or "").split():
        if token == "+" or token.endswith("++"):
            # The plus key itself.
            parts = token[:-2].split("+") + ["+"] if token != "+" else ["+"]
        else:
            parts = token.split("+")
        flags = {}
        for part in parts[:-1]:
            flag = _MODIFIER_FLAGS.get(part.strip().lower())
            if flag:
                flags[flag] = True
        sequences.append(KeySequence(key=parts[-1].strip(), **flags))
    return sequences


def to_key_name(key: str) -> str:
    """Map a key name onto Playwright's key naming.

    Single characters pass through literally; known names are mapped through
    ``KEY_SYNONYMS``; anything else is returned unchanged.
    """
    if len(key) <= 1:
        return key
    return KEY_SYNONYMS.get(key.lower(), key)


def to_key_press(sequence: KeySequence) -> str:
    """Build the ``keyboard.press`` argument for a key sequence.

    Example:
        >>> to_key_press(KeySequence(key="s", ctrl=True, shift=True))
        'Control+Shift+s'
    """
    modifiers = []
    if sequence.ctrl:
        modifiers.append("Control")
    if sequence.alt:
        modifiers.append("Alt")
    if sequence.shift:
        modifiers.append("Shift")
    if sequence.meta:
        modifiers.append("Meta")
    return "+".join(modifiers + [to_key_name(sequence.key)])
