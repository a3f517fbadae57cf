"""Error taxonomy for the adaptive ensemble Kalman filter."""


class AEnKFError(Exception):
    """
    Base class for fatal filter failures.

    The filter driver sets ``step`` to the (1-based) observation index at
    which the failure occurred before re-raising.
    """

    def __init__(self, message, step=None):
        super().__init__(message)
        self.message = message
        self.step = step

    def __str__(self):
        if self.step is None:
            return self.message
        return f"step {self.step}: {self.message}"


class SingularOperatorError(AEnKFError):
    """Raised when M P_t M^T or the innovation covariance C cannot be solved against."""

    def __init__(self, message, condition_number=None, step=None):
        super().__init__(message, step=step)
        self.condition_number = condition_number


class IntegrationFailureError(AEnKFError):
    """Raised when a member fails to integrate or produces non-finite values."""

    def __init__(self, message, member=None, step=None):
        super().__init__(message, step=step)
        self.member = member


class NonPositiveCovarianceError(AEnKFError):
    """Raised in strict modes when a covariance has a negative eigenvalue."""

    def __init__(self, message, min_eigenvalue=None, step=None):
        super().__init__(message, step=step)
        self.min_eigenvalue = min_eigenvalue
