"""
Unit tests for the listener registry.

Tests cover:
- Register/replace/unregister by id
- Failure isolation between subscribers
- Optional advisory delivery
- Concurrent registration during dispatch
"""

import threading

from als_core.proto import LocationSource
from als_core.control import SourceUnavailable
from als_core.io import ListenerRegistry, CallbackSubscriber

from tests.conftest import make_fix, RecordingSubscriber, RaisingSubscriber


class FixOnlySubscriber:
    """Duck-typed subscriber without on_advisory()."""

    def __init__(self):
        self.fixes = []
        self.errors = []

    def on_fix_delivered(self, fix, source):
        self.fixes.append(fix)

    def on_error(self, cause):
        self.errors.append(cause)


class TestMembership:
    """Registration by id."""

    def test_register(self, registry):
        registry.register("a", RecordingSubscriber())

        assert "a" in registry
        assert len(registry) == 1
        assert registry.ids() == ["a"]

    def test_register_same_id_replaces(self, registry):
        first, second = RecordingSubscriber(), RecordingSubscriber()
        registry.register("a", first)
        registry.register("a", second)

        registry.dispatch_fix(make_fix(), LocationSource.GPS)

        assert len(registry) == 1
        assert first.fixes == []
        assert len(second.fixes) == 1

    def test_unregister(self, registry, subscriber):
        assert registry.unregister("recorder")
        assert not registry.unregister("recorder")

        registry.dispatch_fix(make_fix(), LocationSource.GPS)
        assert subscriber.fixes == []


class TestDispatch:
    """Delivery and isolation."""

    def test_fix_reaches_every_subscriber(self, registry, metrics):
        subscribers = [RecordingSubscriber() for _ in range(3)]
        for i, sub in enumerate(subscribers):
            registry.register(f"sub-{i}", sub)
        fix = make_fix()

        delivered = registry.dispatch_fix(fix, LocationSource.WIFI)

        assert delivered == 3
        assert all(sub.fixes == [(fix, LocationSource.WIFI)] for sub in subscribers)
        assert metrics.get_counter('fixes_dispatched') == 1

    def test_raising_subscriber_is_isolated(self, registry, metrics):
        registry.register("bad", RaisingSubscriber())
        good = RecordingSubscriber()
        registry.register("good", good)

        delivered = registry.dispatch_fix(make_fix(), LocationSource.GPS)
        registry.dispatch_error(RuntimeError("boom"))

        assert delivered == 1
        assert len(good.fixes) == 1
        assert len(good.errors) == 1
        assert metrics.get_counter('subscriber_failures') == 2

    def test_advisory_is_optional(self, registry, subscriber):
        plain = FixOnlySubscriber()
        registry.register("plain", plain)

        delivered = registry.dispatch_advisory(SourceUnavailable())

        assert delivered == 1
        assert isinstance(subscriber.advisories[0], SourceUnavailable)
        assert plain.errors == []

    def test_callback_subscriber(self, registry):
        seen = []
        registry.register("cb", CallbackSubscriber(
            on_fix=lambda fix, source: seen.append(source),
        ))

        registry.dispatch_fix(make_fix(), LocationSource.CELL_TOWER)
        registry.dispatch_error(RuntimeError("ignored"))
        registry.dispatch_advisory(SourceUnavailable())

        assert seen == [LocationSource.CELL_TOWER]

    def test_unregister_during_dispatch(self, registry):
        late = RecordingSubscriber()
        registry.register("remover", CallbackSubscriber(
            on_fix=lambda fix, source: registry.unregister("late"),
        ))
        registry.register("late", late)

        registry.dispatch_fix(make_fix(), LocationSource.GPS)
        registry.dispatch_fix(make_fix(), LocationSource.GPS)

        # first dispatch used the snapshot taken before removal
        assert len(late.fixes) == 1


class TestThreadSafety:
    """Concurrent membership changes."""

    def test_concurrent_register_and_dispatch(self, metrics):
        registry = ListenerRegistry(metrics)
        stop = threading.Event()

        def churn(worker: int):
            for i in range(200):
                registry.register(f"w{worker}-{i}", RecordingSubscriber())
                registry.unregister(f"w{worker}-{i}")

        def dispatch():
            while not stop.is_set():
                registry.dispatch_fix(make_fix(), LocationSource.GPS)

        dispatcher = threading.Thread(target=dispatch)
        workers = [threading.Thread(target=churn, args=(w,)) for w in range(4)]

        dispatcher.start()
        for t in workers:
            t.start()
        for t in workers:
            t.join()
        stop.set()
        dispatcher.join()

        assert len(registry) == 0
        assert metrics.get_counter('subscriber_failures') == 0
