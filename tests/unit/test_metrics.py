from __future__ import annotations

import pytest

from logkeep.metrics.metrics import MetricsCollector


@pytest.mark.asyncio
async def test_disabled_metrics_noop_and_state() -> None:
    mc = MetricsCollector(enabled=False)
    assert mc.registry is None
    mc.record_appended(3)
    mc.record_dropped(1)
    mc.set_pending(2)
    await mc.record_flush(batch_size=3, latency_seconds=0.01)
    await mc.record_flush_failure(requeued=2)
    await mc.record_evicted(4)
    await mc.record_evicted(0)
    snap = await mc.snapshot()
    assert snap.records_appended == 3
    assert snap.records_dropped == 1
    assert snap.pending == 2
    assert snap.flushes == 1
    assert snap.records_flushed == 3
    assert snap.flush_failures == 1
    assert snap.records_requeued == 2
    assert snap.records_evicted == 4


@pytest.mark.asyncio
async def test_enabled_counters_histograms_and_gauge() -> None:
    mc = MetricsCollector(enabled=True)
    mc.record_appended(5)
    mc.record_dropped(2, reason="overflow")
    mc.record_dropped(1, reason="unserializable")
    mc.set_pending(7)
    await mc.record_flush(batch_size=5, latency_seconds=0.004)
    await mc.record_flush_failure(requeued=3)
    await mc.record_evicted(2)

    reg = mc.registry
    assert reg is not None
    assert reg.get_sample_value("logkeep_records_appended_total") == 5.0
    assert reg.get_sample_value("logkeep_records_dropped_total", {"reason": "overflow"}) == 2.0
    assert (
        reg.get_sample_value("logkeep_records_dropped_total", {"reason": "unserializable"})
        == 1.0
    )
    assert reg.get_sample_value("logkeep_pending_records") == 7.0
    assert reg.get_sample_value("logkeep_flushes_total") == 1.0
    assert reg.get_sample_value("logkeep_records_flushed_total") == 5.0
    assert reg.get_sample_value("logkeep_flush_failures_total") == 1.0
    assert reg.get_sample_value("logkeep_records_requeued_total") == 3.0
    assert reg.get_sample_value("logkeep_records_evicted_total") == 2.0
    assert reg.get_sample_value("logkeep_flush_seconds_count") == 1.0
    assert reg.get_sample_value("logkeep_batch_size_count") == 1.0


def test_registries_are_isolated() -> None:
    a = MetricsCollector(enabled=True)
    b = MetricsCollector(enabled=True)
    a.record_appended()
    assert b.registry is not None
    assert b.registry.get_sample_value("logkeep_records_appended_total") == 0.0
