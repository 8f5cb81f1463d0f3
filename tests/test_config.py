"""
Tests for configuration loading and validation.
"""

import dataclasses

import pytest

from affinity_propagation import AffinityPropagation
from affinity_propagation.config import AffinityPropagationConfig, Config
from affinity_propagation.exceptions import ConfigurationError

ENV_VARS = [
    "AP_DAMPING",
    "AP_MAX_ITER",
    "AP_CONVERGENCE_ITER",
    "AP_ADD_NOISE",
    "AP_RANDOM_STATE",
    "AP_PREFERENCE",
    "AP_EXECUTION_POLICY",
    "AP_MAX_WORKERS",
    "AP_RETAIN_NOISE_FOR_LABELING",
    "AP_METRIC",
    "AP_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ------------------------------------------------------------------
# AffinityPropagationConfig
# ------------------------------------------------------------------


def test_defaults():
    """Test the default model settings."""
    cfg = AffinityPropagationConfig()
    assert cfg.damping == 0.5
    assert cfg.max_iter == 200
    assert cfg.convergence_iter == 15
    assert cfg.add_noise is True
    assert cfg.preference is None
    assert cfg.execution_policy == "auto"
    assert cfg.retain_noise_for_labeling is True
    assert cfg.metric == "euclidean"


@pytest.mark.parametrize("damping", [0.3, 0.49, 1.0, 1.5])
def test_damping_out_of_range(damping):
    """Test that damping outside [0.5, 1) is rejected."""
    with pytest.raises(ConfigurationError, match="damping"):
        AffinityPropagationConfig(damping=damping)


def test_damping_lower_bound_inclusive():
    """Test that damping of exactly 0.5 is accepted."""
    assert AffinityPropagationConfig(damping=0.5).damping == 0.5


@pytest.mark.parametrize(
    "kwargs,match",
    [
        ({"max_iter": 0}, "max_iter"),
        ({"convergence_iter": 0}, "convergence_iter"),
        ({"execution_policy": "gpu"}, "execution_policy"),
        ({"max_workers": 0}, "max_workers"),
        ({"metric": "manhattan"}, "metric"),
        ({"preference": float("nan")}, "preference"),
    ],
)
def test_invalid_settings(kwargs, match):
    """Test validation of the remaining settings."""
    with pytest.raises(ConfigurationError, match=match):
        AffinityPropagationConfig(**kwargs)


def test_config_is_frozen():
    """Test that a validated config cannot be changed afterwards."""
    cfg = AffinityPropagationConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.damping = 1.5
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.max_iter = 0
    assert cfg.damping == 0.5


def test_configuration_error_is_value_error():
    """Test that configuration errors are ValueErrors."""
    with pytest.raises(ValueError):
        AffinityPropagationConfig(damping=2.0)


# ------------------------------------------------------------------
# Environment overrides
# ------------------------------------------------------------------


def test_no_overrides_without_env():
    """Test that an empty environment yields the defaults."""
    assert Config().env_overrides() == {}
    assert Config().get_model_config() == AffinityPropagationConfig()


def test_env_overrides(monkeypatch):
    """Test reading model settings from AP_* variables."""
    monkeypatch.setenv("AP_DAMPING", "0.8")
    monkeypatch.setenv("AP_MAX_ITER", "50")
    monkeypatch.setenv("AP_ADD_NOISE", "false")
    monkeypatch.setenv("AP_PREFERENCE", "-3.5")
    monkeypatch.setenv("AP_EXECUTION_POLICY", "Serial")
    monkeypatch.setenv("AP_METRIC", "cosine")

    cfg = Config().get_model_config()
    assert cfg.damping == 0.8
    assert cfg.max_iter == 50
    assert cfg.add_noise is False
    assert cfg.preference == -3.5
    assert cfg.execution_policy == "serial"
    assert cfg.metric == "cosine"


def test_explicit_overrides_win(monkeypatch):
    """Test that keyword overrides beat environment values."""
    monkeypatch.setenv("AP_DAMPING", "0.8")
    assert Config().get_model_config(damping=0.6).damping == 0.6


def test_blank_env_values_ignored(monkeypatch):
    """Test that blank environment values are skipped."""
    monkeypatch.setenv("AP_MAX_WORKERS", "  ")
    assert Config().get_model_config().max_workers is None


@pytest.mark.parametrize(
    "name,value",
    [
        ("AP_DAMPING", "high"),
        ("AP_MAX_ITER", "2.5"),
        ("AP_ADD_NOISE", "maybe"),
        ("AP_DAMPING", "0.2"),
    ],
)
def test_invalid_env_values(monkeypatch, name, value):
    """Test that unparsable or invalid environment values raise."""
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError):
        Config().get_model_config()


def test_log_level_from_env(monkeypatch):
    """Test reading the log level from the environment."""
    monkeypatch.setenv("AP_LOG_LEVEL", "DEBUG")
    assert Config().log_level == "DEBUG"


def test_estimator_uses_global_config(monkeypatch):
    """Test that the estimator falls back to environment defaults."""
    monkeypatch.setenv("AP_DAMPING", "0.75")
    monkeypatch.setenv("AP_CONVERGENCE_ITER", "5")
    model = AffinityPropagation()
    assert model.config.damping == 0.75
    assert model.config.convergence_iter == 5
