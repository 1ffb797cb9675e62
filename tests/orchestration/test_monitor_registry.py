"""Tests for the monitor registry (monitor_registry.py)."""

import pytest

from baton.core.errors import MonitorRegistryFrozenError
from baton.execution.resources import CounterProbe, ResourceKind, get_process_probe
from baton.orchestration import (
    MonitorRegistry,
    ResourceMonitor,
    clear_monitor_registry,
    get_monitor_registry,
    install_resource_monitors,
    register_monitor,
)
from tests._support.computes import StaticMonitor


class TestMonitorRegistry:
    def test_registration_order_is_iteration_order(self):
        first, second, third = StaticMonitor(), StaticMonitor(), StaticMonitor()
        registry = MonitorRegistry()
        for monitor in (first, second, third):
            registry.register(monitor)
        assert list(registry) == [first, second, third]
        assert registry.monitors == (first, second, third)
        assert len(registry) == 3

    def test_initial_monitors(self):
        first = StaticMonitor()
        assert list(MonitorRegistry([first])) == [first]

    def test_register_returns_monitor(self):
        monitor = StaticMonitor()
        assert MonitorRegistry().register(monitor) is monitor

    def test_frozen_rejects_registration(self):
        registry = MonitorRegistry([StaticMonitor()])
        registry.freeze()
        assert registry.frozen is True
        with pytest.raises(MonitorRegistryFrozenError):
            registry.register(StaticMonitor())
        assert len(registry) == 1

    def test_rejects_non_monitor(self):
        with pytest.raises(TypeError):
            MonitorRegistry().register(object())

    def test_iteration_is_snapshot(self):
        registry = MonitorRegistry([StaticMonitor()])
        iterator = iter(registry)
        registry.register(StaticMonitor())
        assert len(list(iterator)) == 1


class TestDefaultRegistry:
    def test_register_monitor_uses_default(self):
        monitor = StaticMonitor()
        register_monitor(monitor)
        assert list(get_monitor_registry()) == [monitor]

    def test_clear_replaces_registry(self):
        register_monitor(StaticMonitor())
        get_monitor_registry().freeze()
        clear_monitor_registry()
        assert len(get_monitor_registry()) == 0
        assert get_monitor_registry().frozen is False

    def test_install_resource_monitors(self):
        probe = CounterProbe()
        installed = install_resource_monitors(probe)
        registry = get_monitor_registry()
        assert len(registry) == len(ResourceKind)
        assert all(isinstance(m, ResourceMonitor) and m.probe is probe for m in registry)
        assert list(registry) == installed

    def test_install_into_explicit_registry(self):
        registry = MonitorRegistry()
        install_resource_monitors(CounterProbe(), kinds=[ResourceKind.QUERIES], registry=registry)
        assert [m.kind for m in registry] == [ResourceKind.QUERIES]
        assert len(get_monitor_registry()) == 0

    def test_install_defaults_to_process_probe(self):
        install_resource_monitors(kinds=[ResourceKind.CPU_TIME])
        (monitor,) = get_monitor_registry()
        assert monitor.probe is get_process_probe()
