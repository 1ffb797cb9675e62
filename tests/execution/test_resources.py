"""Tests for resource kinds and probes (baton.execution.resources)."""

import threading

import psutil

from baton.core.settings import BatonSettings
from baton.execution.jobs import MemoryJobQueue
from baton.execution.resources import (
    CounterProbe,
    ProcessProbe,
    ResourceKind,
    ResourceProbe,
    get_process_probe,
    reset_process_probe,
)
from baton.orchestration import Atom, AtomStatus, RepeatStep, ResourceMonitor
from tests._support.computes import burn_cpu


class TestResourceKind:
    def test_label(self):
        assert ResourceKind.CPU_TIME.label == "CPU time"
        assert ResourceKind.IO_OPERATIONS.label == "I/O operations"
        assert ResourceKind.QUERY_ROWS.label == "Query rows"

    def test_string_values(self):
        assert ResourceKind("io_operations") is ResourceKind.IO_OPERATIONS


class TestCounterProbe:
    def test_defaults(self):
        probe = CounterProbe()
        assert probe.current_usage(ResourceKind.QUERIES) == 0
        assert probe.ceiling(ResourceKind.QUERIES) == CounterProbe.UNLIMITED

    def test_record_accumulates(self):
        probe = CounterProbe()
        assert probe.record(ResourceKind.CALLOUTS) == 1
        assert probe.record(ResourceKind.CALLOUTS, 4) == 5
        assert probe.current_usage(ResourceKind.CALLOUTS) == 5

    def test_initial_tables(self):
        probe = CounterProbe(
            ceilings={ResourceKind.MEMORY: 1024},
            usage={ResourceKind.MEMORY: 512},
        )
        assert probe.ceiling(ResourceKind.MEMORY) == 1024
        assert probe.current_usage(ResourceKind.MEMORY) == 512

    def test_setters(self):
        probe = CounterProbe()
        probe.set_ceiling(ResourceKind.QUERIES, 100)
        probe.set_usage(ResourceKind.QUERIES, 42)
        assert probe.ceiling(ResourceKind.QUERIES) == 100
        assert probe.current_usage(ResourceKind.QUERIES) == 42

    def test_reset_one_or_all(self):
        probe = CounterProbe(usage={ResourceKind.QUERIES: 3, ResourceKind.CALLOUTS: 2})
        probe.reset(ResourceKind.QUERIES)
        assert probe.current_usage(ResourceKind.QUERIES) == 0
        assert probe.current_usage(ResourceKind.CALLOUTS) == 2
        probe.reset()
        assert probe.current_usage(ResourceKind.CALLOUTS) == 0

    def test_reset_keeps_ceilings(self):
        probe = CounterProbe(ceilings={ResourceKind.QUERIES: 10})
        probe.record(ResourceKind.QUERIES)
        probe.reset()
        assert probe.ceiling(ResourceKind.QUERIES) == 10

    def test_concurrent_records(self):
        probe = CounterProbe()

        def work():
            for _ in range(1000):
                probe.record(ResourceKind.QUERIES)

        threads = [threading.Thread(target=work) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert probe.current_usage(ResourceKind.QUERIES) == 4000

    def test_is_probe(self):
        assert isinstance(CounterProbe(), ResourceProbe)


class TestProcessProbe:
    def test_ceilings_from_settings(self):
        settings = BatonSettings(cpu_time_limit_ms=500, io_operation_limit=7)
        probe = ProcessProbe(settings)
        assert probe.ceiling(ResourceKind.CPU_TIME) == 500
        assert probe.ceiling(ResourceKind.IO_OPERATIONS) == 7
        assert probe.ceiling(ResourceKind.MEMORY) == settings.memory_limit_kb
        assert probe.ceiling(ResourceKind.CONCURRENT_JOBS) == settings.concurrent_job_limit

    def test_unobservable_kinds(self):
        probe = ProcessProbe()
        for kind in (ResourceKind.QUERIES, ResourceKind.QUERY_ROWS, ResourceKind.CALLOUTS):
            assert probe.current_usage(kind) == 0
            assert probe.ceiling(kind) == CounterProbe.UNLIMITED

    def test_live_measurements(self):
        probe = ProcessProbe()
        assert probe.current_usage(ResourceKind.CPU_TIME) >= 0
        assert probe.current_usage(ResourceKind.MEMORY) > 0
        assert probe.current_usage(ResourceKind.IO_OPERATIONS) >= 0
        assert probe.current_usage(ResourceKind.CONCURRENT_JOBS) >= 1

    def test_reset_starts_a_new_cpu_budget(self):
        probe = ProcessProbe()
        burn_cpu(60)
        assert probe.current_usage(ResourceKind.CPU_TIME) >= 50
        probe.reset()
        assert probe.current_usage(ResourceKind.CPU_TIME) < 50

    def test_cpu_is_measured_from_construction(self):
        burn_cpu(60)
        probe = ProcessProbe()
        assert probe.current_usage(ResourceKind.CPU_TIME) < 50

    def test_memory_is_current_resident_set(self):
        probe = ProcessProbe()
        rss_kb = psutil.Process().memory_info().rss // 1024
        assert abs(probe.current_usage(ResourceKind.MEMORY) - rss_kb) < rss_kb // 10

    def test_satisfies_protocol(self):
        assert isinstance(ProcessProbe(), ResourceProbe)


class TestDefaultProcessProbe:
    def test_cached(self):
        assert get_process_probe() is get_process_probe()

    def test_reset_forgets_instance(self):
        probe = get_process_probe()
        reset_process_probe()
        assert get_process_probe() is not probe


def burn_50ms(values):
    burn_cpu(50)


class TestCpuBudgetAcrossHandoffs:
    def test_each_job_gets_a_fresh_cpu_budget(self):
        probe = ProcessProbe(BatonSettings(cpu_time_limit_ms=200))
        queue = MemoryJobQueue(before_run=lambda context: probe.reset())
        atom = Atom(
            RepeatStep(20, burn_50ms),
            monitors=[ResourceMonitor(ResourceKind.CPU_TIME, probe)],
            max_handoffs=10,
            job_facility=queue,
        )

        atom.start()
        queue.drain()

        assert atom.status is AtomStatus.FINISHED
        assert atom.units_executed == 20
        assert 4 <= atom.handoffs <= 10
