"""
Affinity Propagation - Core Package

Exemplar-based clustering by message passing over a dense similarity matrix.

This package provides:
- The AffinityPropagation estimator
- The individual algorithm stages (preparation, message passing,
  convergence window, exemplar extraction)
- Environment-backed configuration and logging setup
"""

__version__ = "0.1.0"

from .algorithms import AffinityPropagation, AffinityPropagationResult, UNASSIGNED
from .config import AffinityPropagationConfig, Config, config
from .exceptions import ConfigurationError, ModelNotFitError, ParallelExecutionRejected
from .utils import get_logger, setup_logging

__all__ = [
    "AffinityPropagation",
    "AffinityPropagationResult",
    "AffinityPropagationConfig",
    "Config",
    "config",
    "UNASSIGNED",
    "ConfigurationError",
    "ModelNotFitError",
    "ParallelExecutionRejected",
    "get_logger",
    "setup_logging",
]
