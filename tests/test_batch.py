"""Tests for the process-wide batch function."""

from nestfx import ListenerCollection, Provider, Store, default_batch, get_batch, set_batch, use_batch


class TestBatchConfig:
    def test_default(self):
        assert get_batch() is default_batch

    def test_set_and_reset(self):
        def mine(work):
            work()

        try:
            set_batch(mine)
            assert get_batch() is mine
        finally:
            set_batch(None)
        assert get_batch() is default_batch

    def test_use_batch_restores_on_exception(self):
        def mine(work):
            work()

        try:
            with use_batch(mine):
                assert get_batch() is mine
                raise RuntimeError("oops")
        except RuntimeError:
            pass
        assert get_batch() is default_batch

    def test_collection_captures_batch_at_creation(self):
        calls = []

        def recording(work):
            calls.append("batch")
            work()

        with use_batch(recording):
            inside = ListenerCollection()
        outside = ListenerCollection()
        inside.subscribe(lambda: None)
        outside.subscribe(lambda: None)
        outside.notify()
        assert calls == []
        inside.notify()
        assert calls == ["batch"]


class TestBatchingInTree:
    def test_one_batch_per_notified_node(self):
        calls = []

        def recording(work):
            calls.append("begin")
            work()
            calls.append("end")

        store = Store({"n": 0})
        with use_batch(recording):
            provider = Provider(store)
            provider.mount()
            a = provider.connect(lambda s, p: s["n"], lambda v: calls.append(("a", v)))
            b = provider.connect(lambda s, p: s["n"], lambda v: calls.append(("b", v)))
            a.mount()
            b.mount()
        calls.clear()
        store.set("n", 1)
        assert ("a", 1) in calls and ("b", 1) in calls
        assert calls.index(("a", 1)) < calls.index(("b", 1))
        assert calls[0] == "begin" and calls[-1] == "end"
