import dataclasses

import pytest

from stamp_remover.config import Settings, Thresholds, get_settings


def test_default_thresholds():
    thresholds = Settings().thresholds()
    assert thresholds == Thresholds()
    assert thresholds.max_dimension == 2048
    assert thresholds.roi_fraction == 0.18
    assert thresholds.roi_padding_fraction == 0.08
    assert thresholds.white_floor == 235
    assert thresholds.alpha_floor == 200
    assert thresholds.dilation_iterations == 2
    assert thresholds.min_masked_pixels == 80
    assert thresholds.max_area_ratio == 0.25


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("STAMP_MIN_MASKED_PIXELS", "50")
    monkeypatch.setenv("STAMP_MAX_AREA_RATIO", "0.3")
    monkeypatch.setenv("STAMP_ROI_FRACTION", "0.2")

    thresholds = Settings().thresholds()

    assert thresholds.min_masked_pixels == 50
    assert thresholds.max_area_ratio == 0.3
    assert thresholds.roi_fraction == 0.2


def test_thresholds_are_immutable():
    thresholds = Thresholds()
    with pytest.raises(dataclasses.FrozenInstanceError):
        thresholds.white_floor = 0


def test_settings_are_cached():
    assert get_settings() is get_settings()


def test_metrics_settings():
    settings = Settings()
    assert settings.metrics_port == 0
    assert settings.pushgateway_url == ""
    assert not hasattr(settings, "metrics_push_interval")
