"""Exception types raised by the affinity propagation package."""


class ConfigurationError(ValueError):
    """Raised when a model configuration is invalid.

    Always raised while building a configuration or an estimator, never
    from inside ``fit``.
    """


class ModelNotFitError(RuntimeError):
    """Raised when fitted state is queried before a successful ``fit``."""


class ParallelExecutionRejected(RuntimeError):
    """Raised when the worker pool refuses a parallel task.

    The matrix multiply service catches this and retries serially, so it
    does not escape to callers of the public API.
    """
