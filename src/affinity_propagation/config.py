"""
Configuration management for affinity propagation.

Model settings live in ``AffinityPropagationConfig``, which validates itself
on construction. Defaults can be overridden through environment variables
(typically from a .env file), loaded with python-dotenv.

Usage:
    from affinity_propagation.config import config

    model_config = config.get_model_config(damping=0.9)
"""

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

# Look for .env in project root (parent of src/)
_env_path = Path(__file__).parent.parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)


MIN_DAMPING = 0.5
EXECUTION_POLICIES = ("auto", "parallel", "serial")
METRICS = ("euclidean", "sqeuclidean", "cosine")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class AffinityPropagationConfig:
    """Settings for one affinity propagation model. Immutable once validated."""

    damping: float = 0.5
    max_iter: int = 200
    convergence_iter: int = 15  # Window of stagnant iterations before stopping
    add_noise: bool = True
    random_state: int = 0
    preference: Optional[float] = None  # None -> median similarity
    execution_policy: str = "auto"  # "auto", "parallel" or "serial"
    max_workers: Optional[int] = None
    retain_noise_for_labeling: bool = True
    metric: str = "euclidean"

    def __post_init__(self):
        """Reject invalid settings before any model is built."""
        if not (MIN_DAMPING <= self.damping < 1.0):
            raise ConfigurationError(
                f"damping must be in [{MIN_DAMPING}, 1), got {self.damping}"
            )
        if self.max_iter <= 0:
            raise ConfigurationError(f"max_iter must be > 0, got {self.max_iter}")
        if self.convergence_iter <= 0:
            raise ConfigurationError(
                f"convergence_iter must be > 0, got {self.convergence_iter}"
            )
        if self.execution_policy not in EXECUTION_POLICIES:
            raise ConfigurationError(
                f"execution_policy must be one of {EXECUTION_POLICIES}, "
                f"got {self.execution_policy!r}"
            )
        if self.max_workers is not None and self.max_workers <= 0:
            raise ConfigurationError(
                f"max_workers must be > 0 when set, got {self.max_workers}"
            )
        if self.metric not in METRICS:
            raise ConfigurationError(
                f"metric must be one of {METRICS}, got {self.metric!r}"
            )
        if self.preference is not None and not math.isfinite(self.preference):
            raise ConfigurationError(
                f"preference must be finite, got {self.preference}"
            )


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def _parse_number(name: str, raw: str, kind):
    try:
        return kind(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be {kind.__name__}, got {raw!r}") from e


class Config:
    """
    Application configuration loaded from environment variables.

    Environment variables can be set:
    1. In a .env file in the project root
    2. In the system environment
    3. In a container/deployment environment
    """

    _ENV_FIELDS = {
        "AP_DAMPING": ("damping", float),
        "AP_MAX_ITER": ("max_iter", int),
        "AP_CONVERGENCE_ITER": ("convergence_iter", int),
        "AP_ADD_NOISE": ("add_noise", bool),
        "AP_RANDOM_STATE": ("random_state", int),
        "AP_PREFERENCE": ("preference", float),
        "AP_EXECUTION_POLICY": ("execution_policy", str),
        "AP_MAX_WORKERS": ("max_workers", int),
        "AP_RETAIN_NOISE_FOR_LABELING": ("retain_noise_for_labeling", bool),
        "AP_METRIC": ("metric", str),
    }

    def __init__(self):
        """Load configuration from environment."""
        self.log_level = os.getenv("AP_LOG_LEVEL", "INFO")

    def env_overrides(self) -> Dict[str, Any]:
        """
        Collect model settings present in the environment.

        Returns:
            Mapping of ``AffinityPropagationConfig`` field names to parsed values

        Raises:
            ConfigurationError: If a variable cannot be parsed
        """
        overrides: Dict[str, Any] = {}
        for env_var, (field_name, kind) in self._ENV_FIELDS.items():
            raw = os.getenv(env_var)
            if raw is None or raw.strip() == "":
                continue
            if kind is bool:
                overrides[field_name] = _parse_bool(env_var, raw)
            elif kind is str:
                overrides[field_name] = raw.strip().lower()
            else:
                overrides[field_name] = _parse_number(env_var, raw, kind)
        return overrides

    def get_model_config(self, **overrides: Any) -> AffinityPropagationConfig:
        """
        Build a validated model configuration.

        Explicit keyword overrides win over environment variables, which win
        over the dataclass defaults.

        Raises:
            ConfigurationError: If the resulting settings are invalid
        """
        settings = self.env_overrides()
        settings.update(overrides)
        return AffinityPropagationConfig(**settings)


# Global config instance
config = Config()
