"""Tests for Store."""

import pytest

from nestfx import Store


class TestStore:
    def test_creation_from_schema(self):
        s = Store({"x": 10, "y": "hello"})
        assert s.get("x") == 10
        assert s.get("y") == "hello"

    def test_initial_overrides(self):
        s = Store({"x": 10, "y": "hello"}, initial={"x": 99})
        assert s.get("x") == 99
        assert s.get("y") == "hello"

    def test_get_nonexistent(self):
        s = Store({"x": 1})
        assert s.get("nope") is None

    def test_set(self):
        s = Store({"x": 0})
        s.set("x", 42)
        assert s.get("x") == 42
        assert s.get_state() == {"x": 42}

    def test_set_nonexistent_is_noop(self):
        s = Store({"x": 0})
        log = []
        s.subscribe(lambda: log.append(1))
        s.set("nope", 99)
        assert log == []
        assert "nope" not in s.get_state()

    def test_dedup(self):
        """Setting the same value does not notify."""
        s = Store({"x": 1})
        log = []
        s.subscribe(lambda: log.append(1))
        s.set("x", 1)
        assert log == []

    def test_state_replaced_on_change(self):
        s = Store({"x": 0})
        before = s.get_state()
        s.set("x", 0)
        assert s.get_state() is before
        s.set("x", 1)
        assert s.get_state() is not before
        assert before == {"x": 0}


class TestSubscribe:
    def test_notifies_in_order(self):
        s = Store({"x": 0})
        log = []
        s.subscribe(lambda: log.append("a"))
        s.subscribe(lambda: log.append("b"))
        s.set("x", 1)
        assert log == ["a", "b"]

    def test_unsubscribe(self):
        s = Store({"x": 0})
        log = []
        unsub = s.subscribe(lambda: log.append(s.get("x")))
        s.set("x", 1)
        unsub()
        unsub()  # should not raise
        s.set("x", 2)
        assert log == [1]

    def test_dispose(self):
        s = Store({"x": 0})
        log = []
        unsub = s.subscribe(lambda: log.append(1))
        s.dispose()
        s.set("x", 1)
        assert log == []
        unsub()  # stale, no error

    def test_reentrant_set(self):
        """A listener may change the store again; every listener sees the final state."""
        s = Store({"x": 0, "y": 0})
        seen = []

        def follow():
            if s.get("y") != s.get("x"):
                s.set("y", s.get("x"))

        s.subscribe(follow)
        s.subscribe(lambda: seen.append((s.get("x"), s.get("y"))))
        s.set("x", 5)
        assert seen[-1] == (5, 5)


class TestTransaction:
    def test_update_batches(self):
        s = Store({"x": 0, "y": 0})
        log = []
        s.subscribe(lambda: log.append((s.get("x"), s.get("y"))))
        s.update({"x": 1, "y": 2})
        assert log == [(1, 2)]  # single notification

    def test_nested_transactions(self):
        s = Store({"x": 0})
        log = []
        s.subscribe(lambda: log.append(s.get("x")))
        with s.transaction():
            s.set("x", 1)
            with s.transaction():
                s.set("x", 2)
            s.set("x", 3)
        assert log == [3]

    def test_no_change_no_notification(self):
        s = Store({"x": 0})
        log = []
        s.subscribe(lambda: log.append(1))
        with s.transaction():
            s.set("x", 0)
        assert log == []

    def test_notifies_even_when_body_raises(self):
        s = Store({"x": 0})
        log = []
        s.subscribe(lambda: log.append(s.get("x")))
        with pytest.raises(RuntimeError):
            with s.transaction():
                s.set("x", 1)
                raise RuntimeError("oops")
        assert log == [1]
