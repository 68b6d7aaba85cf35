"""Tests for the windowed pulse accumulators."""

import asyncio
import math
import threading

import pytest

from weatherstn.core.periodic import LoopState
from weatherstn.sensors.accumulator import RainAccumulator, WindSpeedAccumulator


TIP_MM = 0.2794


def expected_speed(edges: int, interval: float, radius_cm: float = 9.0, factor: float = 1.18) -> float:
    rotations = edges / 2
    distance_km = (2 * math.pi * radius_cm * rotations) / 100000
    return distance_km / interval * 3600 * factor


class TestRainAccumulator:
    @pytest.mark.parametrize("tips", [0, 1, 2, 7, 100])
    def test_rainfall_is_tips_times_depth(self, tips):
        acc = RainAccumulator(interval=5, mm_per_tip=TIP_MM)
        for _ in range(tips):
            acc.on_edge()
        acc.roll_window()

        assert acc.readings() == pytest.approx(tips * TIP_MM)
        assert acc.readings() == 0.0

    def test_total_accumulates_across_windows_until_read(self):
        acc = RainAccumulator(interval=5, mm_per_tip=TIP_MM)
        acc.on_edge()
        acc.roll_window()
        acc.on_edge()
        acc.on_edge()
        acc.roll_window()

        assert acc.readings() == pytest.approx(3 * TIP_MM)

    def test_pulses_in_open_window_are_not_reported_yet(self):
        acc = RainAccumulator(interval=5, mm_per_tip=TIP_MM)
        acc.on_edge()
        assert acc.readings() == 0.0

        # ...but they are carried into the next fold, not dropped
        acc.roll_window()
        assert acc.readings() == pytest.approx(TIP_MM)

    def test_roll_window_returns_and_zeroes_pulse_count(self):
        acc = RainAccumulator(interval=5)
        acc.on_edge()
        acc.on_edge()
        assert acc.roll_window() == 2
        assert acc.roll_window() == 0


class TestWindSpeedAccumulator:
    def test_speed_for_two_rotations(self):
        acc = WindSpeedAccumulator(interval=5)
        assert acc.speed_for(4) == pytest.approx(expected_speed(4, 5))

    def test_mean_and_gust_over_windows(self):
        acc = WindSpeedAccumulator(interval=5)
        edge_counts = [2, 6, 4]
        for count in edge_counts:
            for _ in range(count):
                acc.on_edge()
            acc.roll_window()

        speeds = [expected_speed(c, 5) for c in edge_counts]
        speed, gust = acc.readings()

        assert speed == pytest.approx(sum(speeds) / len(speeds))
        assert gust == pytest.approx(max(speeds))

    def test_readings_drains_aggregate(self):
        acc = WindSpeedAccumulator(interval=5)
        for _ in range(4):
            acc.on_edge()
        acc.roll_window()
        acc.readings()

        assert acc.readings() == (0.0, 0.0)

    def test_no_windows_reports_zero(self):
        acc = WindSpeedAccumulator(interval=5)
        assert acc.readings() == (0.0, 0.0)

    def test_calm_windows_lower_average_but_not_gust(self):
        acc = WindSpeedAccumulator(interval=5)
        for _ in range(4):
            acc.on_edge()
        acc.roll_window()
        acc.roll_window()

        speed, gust = acc.readings()
        assert speed == pytest.approx(expected_speed(4, 5) / 2)
        assert gust == pytest.approx(expected_speed(4, 5))


class TestConcurrentEdges:
    def test_no_pulse_lost_across_rollovers(self):
        acc = RainAccumulator(interval=5, mm_per_tip=1.0)
        threads = 4
        per_thread = 5000
        done = threading.Event()

        def fire():
            for _ in range(per_thread):
                acc.on_edge()

        def roll():
            while not done.is_set():
                acc.roll_window()

        roller = threading.Thread(target=roll)
        roller.start()
        workers = [threading.Thread(target=fire) for _ in range(threads)]
        for w in workers:
            w.start()
        for w in workers:
            w.join()
        done.set()
        roller.join()
        acc.roll_window()

        assert acc.readings() == pytest.approx(threads * per_thread)


class TestAccumulatorLoop:
    @pytest.mark.asyncio
    async def test_background_loop_folds_windows(self):
        acc = RainAccumulator(interval=0.01, mm_per_tip=TIP_MM)
        await acc.start()
        total = 0.0
        try:
            acc.on_edge()
            for _ in range(200):
                await asyncio.sleep(0.01)
                total += acc.readings()
                if total > 0:
                    break
        finally:
            await acc.stop()

        assert total == pytest.approx(TIP_MM)
        assert acc.state is LoopState.STOPPED

    @pytest.mark.asyncio
    async def test_stop_waits_for_loop_exit(self):
        acc = WindSpeedAccumulator(interval=60)
        await acc.start()
        assert acc.running

        await asyncio.wait_for(acc.stop(), timeout=1.0)

        assert acc.state is LoopState.STOPPED
        assert acc._task is None
