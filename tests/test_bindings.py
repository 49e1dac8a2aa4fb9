"""Tests for key binding translation into tap / reset calls."""

import pytest

pytest.importorskip("PyQt5")

from PyQt5.QtCore import Qt  # noqa: E402

from tapbpm.bindings import InputAdapter, KeyBindings, key_code  # noqa: E402


def _adapter(bindings=None):
    calls = []
    adapter = InputAdapter(lambda: calls.append("tap"), lambda: calls.append("reset"), bindings)
    return adapter, calls


def test_default_keys():
    adapter, calls = _adapter()
    assert adapter.key_pressed(Qt.Key_Space)
    assert adapter.key_pressed(Qt.Key_Escape)
    assert calls == ["tap", "reset"]


def test_unbound_key_not_consumed():
    adapter, calls = _adapter()
    assert not adapter.key_pressed(Qt.Key_A)
    assert calls == []


def test_auto_repeat_taps_by_default():
    adapter, calls = _adapter()
    adapter.key_pressed(Qt.Key_Space, auto_repeat=True)
    assert calls == ["tap"]


def test_auto_repeat_filtered_when_configured():
    adapter, calls = _adapter(KeyBindings(ignore_auto_repeat=True))
    assert adapter.key_pressed(Qt.Key_Space, auto_repeat=True)
    assert adapter.key_pressed(Qt.Key_Escape, auto_repeat=True)
    assert calls == []
    adapter.key_pressed(Qt.Key_Space)
    assert calls == ["tap"]


def test_clicks():
    adapter, calls = _adapter()
    adapter.clicked()
    adapter.reset_clicked()
    assert calls == ["tap", "reset"]


def test_from_names():
    bindings = KeyBindings.from_names(tap=["Return", "T"], reset=["Backspace"])
    adapter, calls = _adapter(bindings)
    adapter.key_pressed(Qt.Key_T)
    adapter.key_pressed(Qt.Key_Return)
    adapter.key_pressed(Qt.Key_Space)
    adapter.key_pressed(Qt.Key_Backspace)
    assert calls == ["tap", "tap", "reset"]


def test_unknown_key_name():
    with pytest.raises(ValueError):
        key_code("NotAKey")


def test_same_key_for_tap_and_reset():
    with pytest.raises(ValueError):
        KeyBindings.from_names(tap=["Space"], reset=["Space"])
