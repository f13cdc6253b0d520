"""
Exceptions and warnings raised while fitting a path.

A zero-variance column is not an error: its scale is set to 1.
A solver that stops at `maxit` is not an error either: the
iteration count is recorded in the fit.
"""

class ConfigurationError(ValueError):
    """
    Raised when no solver is available for a (family, shape) pair.
    No solver method is called before this is raised.
    """

    def __init__(self, reason):
        self.reason = reason
        super().__init__(f'unsupported configuration: {reason}')


class LambdaOrderWarning(UserWarning):
    """
    A user supplied sequence of lambda values is not non-increasing,
    so warm starts are seeded from a solution at a smaller lambda.
    """
