from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterable

from PyQt5.QtCore import Qt


def key_code(name: str) -> int:
    """Qt key code for a name such as "Space", "Escape" or "Return"."""
    code = getattr(Qt, f"Key_{name}", None)
    if not isinstance(code, int):
        raise ValueError(f"Unknown key name: {name!r}")
    return int(code)


@dataclass(frozen=True)
class KeyBindings:
    tap_keys: FrozenSet[int] = field(default_factory=lambda: frozenset({int(Qt.Key_Space)}))
    reset_keys: FrozenSet[int] = field(default_factory=lambda: frozenset({int(Qt.Key_Escape)}))
    ignore_auto_repeat: bool = False

    @classmethod
    def from_names(cls, tap: Iterable[str] = ("Space",), reset: Iterable[str] = ("Escape",),
                   ignore_auto_repeat: bool = False) -> "KeyBindings":
        tap_keys = frozenset(key_code(n) for n in tap)
        reset_keys = frozenset(key_code(n) for n in reset)
        overlap = tap_keys & reset_keys
        if overlap:
            raise ValueError("A key cannot both tap and reset")
        return cls(tap_keys, reset_keys, bool(ignore_auto_repeat))


class InputAdapter:
    """Turns raw key presses and clicks into tap / reset calls."""

    def __init__(self, on_tap: Callable[[], None], on_reset: Callable[[], None],
                 bindings: KeyBindings = None):
        self._on_tap = on_tap
        self._on_reset = on_reset
        self.bindings = bindings or KeyBindings()

    def key_pressed(self, key: int, auto_repeat: bool = False) -> bool:
        """Returns True when the key is bound (the event is consumed)."""
        key = int(key)
        if key in self.bindings.tap_keys:
            if not (auto_repeat and self.bindings.ignore_auto_repeat):
                self._on_tap()
            return True
        if key in self.bindings.reset_keys:
            if not (auto_repeat and self.bindings.ignore_auto_repeat):
                self._on_reset()
            return True
        return False

    def clicked(self):
        self._on_tap()

    def reset_clicked(self):
        self._on_reset()
