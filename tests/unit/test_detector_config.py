"""Unit tests for DetectorConfig."""

import pytest

from tickscope.models.detector import DetectorConfig


@pytest.mark.unit
class TestDetectorConfig:

    def test_defaults(self):
        config = DetectorConfig()
        assert config.detection_threshold == 0.2
        assert config.noise_reduction == 0.2
        assert config.min_inter_arrival_ms == 100.0
        assert config.adaptive_refractory is False

    def test_out_of_range_values_are_clamped(self):
        config = DetectorConfig(detection_threshold=1.7, noise_reduction=-0.3)
        assert config.detection_threshold == 1.0
        assert config.noise_reduction == 0.0

    def test_min_inter_arrival_never_below_hard_floor(self):
        assert DetectorConfig(min_inter_arrival_ms=10).min_inter_arrival_ms == 50.0

    def test_effective_threshold_is_softened(self):
        assert DetectorConfig(detection_threshold=0.5).effective_threshold == pytest.approx(0.35)

    @pytest.mark.parametrize("noise_reduction, gain", [(0.0, 2.0), (0.4, 1.6), (1.0, 1.0)])
    def test_input_gain(self, noise_reduction, gain):
        assert DetectorConfig(noise_reduction=noise_reduction).input_gain == pytest.approx(gain)

    def test_with_updates_returns_new_snapshot(self):
        original = DetectorConfig()
        updated = original.with_updates(threshold=0.3, noise_reduction=0.4)

        assert updated is not original
        assert original.detection_threshold == 0.2
        assert updated.detection_threshold == 0.3
        assert updated.input_gain == pytest.approx(1.6)

    def test_with_updates_keeps_unspecified_values(self):
        updated = DetectorConfig(noise_reduction=0.6).with_updates(threshold=0.9)
        assert updated.noise_reduction == 0.6

    def test_with_updates_clamps(self):
        assert DetectorConfig().with_updates(threshold=5).detection_threshold == 1.0

    def test_snapshot_is_immutable(self):
        config = DetectorConfig()
        with pytest.raises(AttributeError):
            config.detection_threshold = 0.9

    def test_refractory_without_adaptation_ignores_history(self):
        config = DetectorConfig(min_inter_arrival_ms=100)
        assert config.refractory_ms(120.0) == 100.0

    def test_adaptive_refractory_follows_fast_clock(self):
        config = DetectorConfig(min_inter_arrival_ms=100, adaptive_refractory=True)
        assert config.refractory_ms(None) == 100.0
        assert config.refractory_ms(120.0) == pytest.approx(72.0)
        # Adapts downward only
        assert config.refractory_ms(500.0) == 100.0
        # Never below the hard floor
        assert config.refractory_ms(60.0) == 50.0
