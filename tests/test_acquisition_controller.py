"""
Unit tests for one-shot acquisition.

Tests cover:
- Live fix classification
- Fallback to the last known fix (always tagged CACHED)
- NoLocationAvailable when nothing is available
- Source failures wrapped as AcquisitionFailed
- Registry dispatch of results and errors
"""

import pytest

from als_core.proto import LocationSource, Priority, ProviderTag
from als_core.control import AcquisitionController, AcquisitionFailed, NoLocationAvailable

from tests.conftest import make_fix


class TestLiveFix:
    """Live one-shot fixes."""

    def test_live_fix_is_classified(self, acquisition, source):
        source.one_shot_fix = make_fix(accuracy_m=5.0, provider=ProviderTag.GPS)

        tagged = acquisition.get_current_fix()

        assert tagged.fix is source.one_shot_fix
        assert tagged.source == LocationSource.GPS
        assert not tagged.is_cached

    def test_live_fix_preferred_over_cache(self, acquisition, source):
        source.one_shot_fix = make_fix(accuracy_m=200.0, provider=ProviderTag.NETWORK)
        source.last_known_fix = make_fix(accuracy_m=5.0, provider=ProviderTag.GPS)

        tagged = acquisition.get_current_fix()

        assert tagged.source == LocationSource.CELL_TOWER

    def test_priority_passed_through(self, acquisition, source):
        source.one_shot_fix = make_fix()

        acquisition.get_current_fix()
        acquisition.get_current_fix(Priority.LOW_POWER)

        assert source.one_shot_priorities == [Priority.HIGH_ACCURACY, Priority.LOW_POWER]


class TestCachedFallback:
    """Fallback to last known location."""

    def test_accurate_cached_fix_is_tagged_cached(self, acquisition, source, metrics):
        source.last_known_fix = make_fix(accuracy_m=3.0, provider=ProviderTag.GPS)

        tagged = acquisition.get_current_fix()

        assert tagged.source == LocationSource.CACHED
        assert tagged.is_cached
        assert tagged.fix is source.last_known_fix
        assert metrics.get_counter('acquisition_fallbacks') == 1

    def test_nothing_available(self, acquisition, metrics):
        with pytest.raises(NoLocationAvailable):
            acquisition.get_current_fix()

        assert metrics.get_counter('acquisition_failures') == 1


class TestFailures:
    """Position source failures."""

    def test_one_shot_failure(self, acquisition, source):
        denied = PermissionError("location permission revoked")
        source.one_shot_error = denied

        with pytest.raises(AcquisitionFailed) as excinfo:
            acquisition.get_current_fix()

        assert excinfo.value.cause is denied

    def test_last_known_failure(self, acquisition, source):
        source.last_known_error = OSError("cache unreadable")

        with pytest.raises(AcquisitionFailed) as excinfo:
            acquisition.get_current_fix()

        assert isinstance(excinfo.value.cause, OSError)

    def test_failure_is_not_masked_by_cache(self, acquisition, source):
        source.one_shot_error = RuntimeError("provider crashed")
        source.last_known_fix = make_fix()

        with pytest.raises(AcquisitionFailed):
            acquisition.get_current_fix()


class TestRegistryDispatch:
    """Results also reach subscribers."""

    def test_fix_dispatched(self, acquisition, source, subscriber):
        source.last_known_fix = make_fix()

        tagged = acquisition.get_current_fix()

        assert subscriber.fixes == [(tagged.fix, LocationSource.CACHED)]

    def test_error_dispatched(self, acquisition, subscriber):
        with pytest.raises(NoLocationAvailable) as excinfo:
            acquisition.get_current_fix()

        assert subscriber.errors == [excinfo.value]

    def test_without_registry(self, source, metrics):
        acquisition = AcquisitionController(source, metrics=metrics)
        source.one_shot_fix = make_fix()

        assert acquisition.get_current_fix().source == LocationSource.GPS
