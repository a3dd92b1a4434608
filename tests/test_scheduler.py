"""Tests for batched enrichment and progress reporting."""

import asyncio

import pytest

from core.scheduler import batches, enrich_catalog


def collect_progress():
    calls = []
    return calls, lambda done, total: calls.append((done, total))


async def mark(item):
    await asyncio.sleep(0)
    return dict(item, enriched=True)


class TestBatches:
    def test_splits_into_fixed_size_slices(self):
        assert [len(b) for b in batches(list(range(23)), 10)] == [10, 10, 3]

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            list(batches([1], 0))


class TestEnrichCatalog:
    def test_progress_is_reported_after_each_batch(self):
        items = [{"n": i} for i in range(23)]
        calls, on_progress = collect_progress()

        asyncio.run(enrich_catalog(items, mark, batch_size=10, on_progress=on_progress))

        assert calls == [(10, 23), (20, 23), (23, 23)]

    def test_order_is_preserved_when_tasks_finish_out_of_order(self):
        items = [{"n": i} for i in range(12)]

        async def slow_first(item):
            await asyncio.sleep(0.001 * (12 - item["n"]))
            return dict(item, enriched=True)

        result = asyncio.run(enrich_catalog(items, slow_first, batch_size=5))

        assert [r["n"] for r in result] == list(range(12))
        assert all(r["enriched"] for r in result)

    def test_failed_item_is_kept_unchanged_and_siblings_complete(self):
        items = [{"n": i} for i in range(15)]

        async def flaky(item):
            if item["n"] == 4:
                raise RuntimeError("remote exploded")
            return await mark(item)

        calls, on_progress = collect_progress()
        result = asyncio.run(enrich_catalog(items, flaky, batch_size=10, on_progress=on_progress))

        assert len(result) == 15
        assert result[4] == {"n": 4}
        assert all(r.get("enriched") for i, r in enumerate(result) if i != 4)
        assert calls == [(10, 15), (15, 15)]

    def test_input_list_is_not_mutated(self):
        items = [{"n": i} for i in range(3)]
        snapshot = [dict(i) for i in items]

        result = asyncio.run(enrich_catalog(items, mark, batch_size=2))

        assert items == snapshot
        assert result is not items

    def test_concurrency_is_bounded_by_batch_size(self):
        in_flight = 0
        peak = 0
        finished = []

        async def tracked(item):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.001)
            in_flight -= 1
            finished.append(item["n"])
            return item

        items = [{"n": i} for i in range(25)]
        asyncio.run(enrich_catalog(items, tracked, batch_size=10))

        assert peak == 10
        # no item of a later batch finishes before an earlier batch settles
        assert sorted(finished[:10]) == list(range(10))
        assert sorted(finished[10:20]) == list(range(10, 20))

    def test_empty_catalog(self):
        calls, on_progress = collect_progress()
        assert asyncio.run(enrich_catalog([], mark, on_progress=on_progress)) == []
        assert calls == []
