"""
Tests for pipeline/notifications.py
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from pipeline.notifications import Notification, NotificationCenter


def test_default_kind_is_success():
    assert Notification("Data Loaded", "Loaded 3 work orders").kind == "success"


def test_invalid_kind_rejected():
    with pytest.raises(ValueError, match="Invalid notification kind"):
        Notification("x", "y", kind="fatal")


def test_to_dict():
    d = Notification("Filters Reset", "All filters have been reset", "info").to_dict()
    assert d["title"] == "Filters Reset"
    assert d["kind"] == "info"
    assert d["created_at"]


def test_drain_returns_oldest_first_and_empties():
    center = NotificationCenter()
    center.push("a", "1")
    center.push("b", "2", "warning")
    assert [n.title for n in center.peek()] == ["a", "b"]
    assert [n.title for n in center.drain()] == ["a", "b"]
    assert len(center) == 0
    assert center.drain() == []


def test_bounded():
    center = NotificationCenter(maxlen=3)
    for i in range(5):
        center.push(f"t{i}", "m")
    assert [n.title for n in center.drain()] == ["t2", "t3", "t4"]
