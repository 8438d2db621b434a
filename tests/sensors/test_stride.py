"""
Unit tests for indoor_nav/sensors/stride.py.

Run with: pytest tests/sensors/test_stride.py -v
"""

import unittest

import pytest

from indoor_nav.sensors import StrideConfig, StrideEstimator, cadence_from_interval, stride_length_cm


class TestStrideModel(unittest.TestCase):

    def test_cadence(self) -> None:
        assert cadence_from_interval(500.0) == 2.0
        assert cadence_from_interval(0.0) == 0.0
        assert cadence_from_interval(-10.0) == 0.0

    def test_reference_stride(self) -> None:
        # 1.75 m * (0.16 * 2 + 0.25)
        assert stride_length_cm(2.0, 2.0, StrideConfig(height_cm=175.0)) == pytest.approx(99.75)

    def test_instant_and_average_are_blended(self) -> None:
        stride = stride_length_cm(3.0, 1.0, StrideConfig(height_cm=175.0))

        # Smoothed cadence 0.35 * 3 + 0.65 * 1 = 1.7
        assert stride == pytest.approx(175.0 * (0.16 * 1.7 + 0.25))

    def test_short_user_boost(self) -> None:
        stride = stride_length_cm(2.0, 2.0, StrideConfig(height_cm=160.0))

        assert stride == pytest.approx(160.0 * 0.57 * 1.05)

    def test_clamps(self) -> None:
        assert stride_length_cm(0.0, 0.0, StrideConfig(height_cm=150.0)) == 40.0
        assert stride_length_cm(10.0, 10.0, StrideConfig(height_cm=175.0)) == pytest.approx(148.75)

    def test_no_height(self) -> None:
        assert stride_length_cm(2.0, 2.0, StrideConfig()) == 0.0

    def test_invalid_config(self) -> None:
        with pytest.raises(ValueError, match="height_cm"):
            StrideConfig(height_cm=-1.0)


class TestStrideEstimator(unittest.TestCase):

    def test_first_step_in_campus_units(self) -> None:
        estimator = StrideEstimator(StrideConfig(height_cm=175.0))

        stride = estimator.on_step(500.0)

        assert stride == pytest.approx(49.875)
        assert estimator.last_stride_cm == pytest.approx(99.75)
        assert estimator.step_count == 1

    def test_rolling_average_window(self) -> None:
        estimator = StrideEstimator(StrideConfig(height_cm=175.0, cadence_average_size=2))
        for interval in (1000.0, 500.0, 250.0):
            estimator.on_step(interval)

        assert estimator.average_cadence == pytest.approx(3.0)
        assert estimator.last_cadence == 4.0

    def test_update_config_keeps_recent_cadences(self) -> None:
        estimator = StrideEstimator(StrideConfig(height_cm=175.0))
        for interval in (1000.0, 500.0, 250.0):
            estimator.on_step(interval)

        estimator.update_config(StrideConfig(height_cm=175.0, cadence_average_size=1))

        assert estimator.average_cadence == 4.0

    def test_reset(self) -> None:
        estimator = StrideEstimator(StrideConfig(height_cm=175.0))
        estimator.on_step(500.0)

        estimator.reset()

        assert estimator.step_count == 0
        assert estimator.average_cadence == 0.0
