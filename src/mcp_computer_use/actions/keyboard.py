"""Key-name validation and per-protocol key translation."""

from typing import List, Sequence

from selenium.webdriver.common.keys import Keys

from ..errors import InvalidInput


# alias (lower case) -> canonical DOM key name
_ALIASES = {
    "enter": "Enter",
    "return": "Enter",
    "tab": "Tab",
    "escape": "Escape",
    "esc": "Escape",
    "backspace": "Backspace",
    "delete": "Delete",
    "insert": "Insert",
    "home": "Home",
    "end": "End",
    "pageup": "PageUp",
    "pagedown": "PageDown",
    "arrowleft": "ArrowLeft",
    "left": "ArrowLeft",
    "arrowright": "ArrowRight",
    "right": "ArrowRight",
    "arrowup": "ArrowUp",
    "up": "ArrowUp",
    "arrowdown": "ArrowDown",
    "down": "ArrowDown",
    "space": "Space",
    "control": "Control",
    "ctrl": "Control",
    "shift": "Shift",
    "alt": "Alt",
    "meta": "Meta",
    "command": "Meta",
    "cmd": "Meta",
}
_ALIASES.update({f"f{n}": f"F{n}" for n in range(1, 13)})

MODIFIERS = ("Control", "Shift", "Alt", "Meta")

_FORBIDDEN_CHARS = ('"', "'", "\\")

_SELENIUM_KEYS = {
    "Enter": Keys.ENTER,
    "Tab": Keys.TAB,
    "Escape": Keys.ESCAPE,
    "Backspace": Keys.BACKSPACE,
    "Delete": Keys.DELETE,
    "Insert": Keys.INSERT,
    "Home": Keys.HOME,
    "End": Keys.END,
    "PageUp": Keys.PAGE_UP,
    "PageDown": Keys.PAGE_DOWN,
    "ArrowLeft": Keys.ARROW_LEFT,
    "ArrowRight": Keys.ARROW_RIGHT,
    "ArrowUp": Keys.ARROW_UP,
    "ArrowDown": Keys.ARROW_DOWN,
    "Space": Keys.SPACE,
    "Control": Keys.CONTROL,
    "Shift": Keys.SHIFT,
    "Alt": Keys.ALT,
    "Meta": Keys.META,
}
_SELENIUM_KEYS.update({f"F{n}": getattr(Keys, f"F{n}") for n in range(1, 13)})


def normalize_key(key: str) -> str:
    """
    Map a user-supplied key name to its canonical DOM name.

    Named keys are matched case-insensitively against a fixed allow-list;
    any other input must be a single printable character that is not a
    quote or a backslash.

    Raises:
        InvalidInput: for anything else
    """
    if not isinstance(key, str) or not key:
        raise InvalidInput(f"Invalid key: {key!r}")
    canonical = _ALIASES.get(key.lower())
    if canonical is not None:
        return canonical
    if len(key) == 1 and key.isprintable() and key not in _FORBIDDEN_CHARS:
        return key
    raise InvalidInput(f"Invalid key: {key!r}")


def validate_keys(keys: Sequence[str]) -> List[str]:
    """Normalize every key of a combination. An empty combination is invalid."""
    if not keys:
        raise InvalidInput("No keys provided")
    return [normalize_key(k) for k in keys]


def is_modifier(key: str) -> bool:
    return key in MODIFIERS


def split_modifiers(keys: Sequence[str]):
    """Return (modifiers, main_keys), both in their original order."""
    modifiers = [k for k in keys if is_modifier(k)]
    main = [k for k in keys if not is_modifier(k)]
    return modifiers, main


def selenium_key(key: str) -> str:
    """Value to pass to WebElement.send_keys for a canonical key."""
    return _SELENIUM_KEYS.get(key, key)


def playwright_key(key: str) -> str:
    """Name understood by Playwright's keyboard.press/down/up."""
    return key


def dom_key(key: str) -> str:
    """KeyboardEvent.key value for a canonical key."""
    return " " if key == "Space" else key


__all__ = [
    "MODIFIERS",
    "normalize_key",
    "validate_keys",
    "is_modifier",
    "split_modifiers",
    "selenium_key",
    "playwright_key",
    "dom_key",
]
