"""Tests for threshold and resource monitors (monitors.py)."""

from fractions import Fraction

import pytest

from baton.execution.resources import CounterProbe, ResourceKind
from baton.orchestration import (
    SAFETY_MARGIN,
    Monitor,
    ResourceMonitor,
    State,
    ThresholdMonitor,
    resource_monitors,
)
from tests._support.computes import StaticMonitor


class FixedThreshold(ThresholdMonitor):
    def __init__(self, current, maximum):
        self._current = current
        self._maximum = maximum

    def current(self, state):
        return self._current

    def maximum(self, state):
        return self._maximum


class TestThresholdMonitor:
    def test_margin_is_ninety_percent(self):
        assert SAFETY_MARGIN == Fraction(9, 10)

    @pytest.mark.parametrize(
        "current,maximum,safe",
        [
            (0, 100, True),
            (89, 100, True),
            (90, 100, True),
            (91, 100, False),
            (100, 100, False),
            (9, 10, True),
            (0, 0, True),
            (1, 0, False),
        ],
    )
    def test_boundary(self, current, maximum, safe):
        assert FixedThreshold(current, maximum).is_safe(State()) is safe

    def test_float_usage(self):
        assert FixedThreshold(90.0, 100.0).is_safe(State()) is True
        assert FixedThreshold(90.5, 100).is_safe(State()) is False

    def test_default_message(self):
        assert "90%" in FixedThreshold(1, 10).message

    def test_satisfies_monitor_protocol(self):
        assert isinstance(FixedThreshold(1, 10), Monitor)


class TestResourceMonitor:
    def test_reads_probe(self):
        probe = CounterProbe(ceilings={ResourceKind.QUERIES: 100})
        monitor = ResourceMonitor(ResourceKind.QUERIES, probe)
        probe.set_usage(ResourceKind.QUERIES, 90)
        assert monitor.is_safe(State()) is True
        probe.record(ResourceKind.QUERIES)
        assert monitor.is_safe(State()) is False

    def test_unconfigured_kind_is_safe(self):
        monitor = ResourceMonitor(ResourceKind.CALLOUTS, CounterProbe())
        assert monitor.is_safe(State()) is True

    def test_message_names_resource(self):
        monitor = ResourceMonitor(ResourceKind.CPU_TIME, CounterProbe())
        assert monitor.message == "CPU time usage above 90% of its limit"
        assert monitor.name == "cpu_time"

    def test_is_immutable(self):
        monitor = ResourceMonitor(ResourceKind.MEMORY, CounterProbe())
        with pytest.raises(AttributeError):
            monitor.kind = ResourceKind.CPU_TIME

    def test_shared_between_states(self):
        probe = CounterProbe(ceilings={ResourceKind.MEMORY: 10}, usage={ResourceKind.MEMORY: 10})
        monitor = ResourceMonitor(ResourceKind.MEMORY, probe)
        assert monitor.is_safe(State()) is False
        assert monitor.is_safe(State({"other": 1})) is False


class TestResourceMonitorsFactory:
    def test_one_per_kind_in_enum_order(self):
        monitors = resource_monitors(CounterProbe())
        assert [m.kind for m in monitors] == list(ResourceKind)

    def test_selected_kinds(self):
        probe = CounterProbe()
        monitors = resource_monitors(probe, [ResourceKind.CPU_TIME, ResourceKind.IO_OPERATIONS])
        assert [m.kind for m in monitors] == [ResourceKind.CPU_TIME, ResourceKind.IO_OPERATIONS]
        assert all(m.probe is probe for m in monitors)


class TestMonitorProtocol:
    def test_duck_typed_monitor(self):
        assert isinstance(StaticMonitor(), Monitor)

    def test_object_without_message_is_not_monitor(self):
        class OnlySafe:
            def is_safe(self, state):
                return True

        assert not isinstance(OnlySafe(), Monitor)
