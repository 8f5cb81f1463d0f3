"""
Test suite for Affinity Propagation.

This package contains all tests organized by component:
- test_algorithms/: Tests for the algorithm stages and the estimator
- test_utils/: Tests for logging setup
"""
