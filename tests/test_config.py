from __future__ import annotations

import pytest

from parallign.config import AlignmentConfig, ConfigurationError, default_bead_weights


def test_defaults_are_valid():
    config = AlignmentConfig()
    assert config.min_word_frequency <= config.max_word_frequency
    assert set(config.bead_weights) == set(default_bead_weights())
    assert config.bead_weights["1-1"] < config.bead_weights["2-1"] < config.bead_weights["1-0"]


def test_floor_above_ceiling_is_rejected():
    with pytest.raises(ConfigurationError):
        AlignmentConfig(min_word_frequency=5, max_word_frequency=3)


def test_non_positive_iteration_cap_is_rejected():
    with pytest.raises(ConfigurationError):
        AlignmentConfig(max_iterations=0)


def test_bead_weight_validation():
    with pytest.raises(ConfigurationError):
        AlignmentConfig(bead_weights={**default_bead_weights(), "3-1": 1.0})
    weights = default_bead_weights()
    del weights["1-0"]
    with pytest.raises(ConfigurationError):
        AlignmentConfig(bead_weights=weights)
    with pytest.raises(ConfigurationError):
        AlignmentConfig(bead_weights={**default_bead_weights(), "2-2": -1.0})


def test_configuration_error_is_a_value_error():
    with pytest.raises(ValueError):
        AlignmentConfig(significance_threshold=1.5)


def test_significance_tapers_down_to_minimum():
    config = AlignmentConfig(significance_threshold=0.8, significance_taper=0.1, significance_minimum=0.5)
    assert config.significance_at(0) == pytest.approx(0.8)
    assert config.significance_at(1) == pytest.approx(0.7)
    assert config.significance_at(10) == pytest.approx(0.5)
    assert not config.thresholds_settled(0)
    assert config.thresholds_settled(10)


def test_frequency_floor_tapers_down_to_minimum():
    config = AlignmentConfig(min_word_frequency=3, frequency_taper=1, frequency_minimum=1)
    assert [config.frequency_floor_at(i) for i in range(4)] == [3, 2, 1, 1]


def test_without_taper_thresholds_settle_immediately():
    config = AlignmentConfig(significance_taper=0.0)
    assert config.thresholds_settled(0)


def test_from_dict():
    config = AlignmentConfig.from_dict({"max_iterations": 3, "bead_weights": {"1-1": 0, "1-0": 5, "0-1": 5}})
    assert config.max_iterations == 3
    assert config.bead_weights == {"1-1": 0.0, "1-0": 5.0, "0-1": 5.0}
    with pytest.raises(ConfigurationError):
        AlignmentConfig.from_dict({"no_such_option": 1})


def test_with_overrides_ignores_none():
    config = AlignmentConfig()
    assert config.with_overrides(max_iterations=None) is config
    assert config.with_overrides(max_iterations=4, band_scale=None).max_iterations == 4


def test_to_dict_hides_the_mapper():
    data = AlignmentConfig(association_mapper=lambda a, b: a == b).to_dict()
    assert "association_mapper" not in data
    assert data["uses_association_mapper"] is True


def test_from_dict_converts_numeric_strings():
    config = AlignmentConfig.from_dict({"max_iterations": "5", "band_scale": "1.5", "expected_ratio": None})
    assert config.max_iterations == 5
    assert config.band_scale == 1.5
    assert config.expected_ratio is None


def test_from_dict_rejects_values_of_the_wrong_type():
    for data in (
        {"max_iterations": "many"},
        {"max_iterations": 2.5},
        {"min_word_frequency": True},
        {"significance_threshold": [0.8]},
        {"bead_weights": [1.0, 2.0]},
        {"bead_weights": {"1-1": "cheap", "1-0": 5, "0-1": 5}},
    ):
        with pytest.raises(ConfigurationError):
            AlignmentConfig.from_dict(data)


def test_constructor_reports_wrong_types_as_configuration_errors():
    with pytest.raises(ConfigurationError):
        AlignmentConfig(max_iterations="5")
