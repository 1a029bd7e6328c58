"""
Contains the exceptions raised by the algorithms in latentpls.

All exceptions derive from `MatrixAlgorithmsError` so that callers can catch every
library failure at once, while still being able to tell apart configuration
problems, use of unconfigured algorithms, failed matrix inversions and cooperative
cancellation.
"""


class MatrixAlgorithmsError(Exception):
    """
    Base class for all exceptions raised by latentpls.
    """


class InvalidShapeError(MatrixAlgorithmsError, ValueError):
    """
    Raised when a matrix does not have the number of rows or columns that an
    algorithm requires.
    """

    def __init__(self, message: str) -> None:
        super().__init__(f"Invalid shape: {message}")


class UnconfiguredAlgorithmError(MatrixAlgorithmsError):
    """
    Raised when an algorithm is used before it has been configured.
    """

    def __init__(self, algorithm: type) -> None:
        super().__init__(f"Algorithm {algorithm.__name__} requires configuration")


class InverseTransformError(MatrixAlgorithmsError):
    """
    Base class for failures of `inverse_transform`.
    """


class UninvertibleAlgorithmError(InverseTransformError):
    """
    Raised when trying to inverse-transform with an algorithm that cannot be
    inverted under any circumstance.
    """

    def __init__(self, algorithm: type) -> None:
        super().__init__(f"Algorithm {algorithm.__name__} is not invertible")


class MatrixInversionError(MatrixAlgorithmsError):
    """
    Raised when a matrix cannot be inverted. The underlying
    `numpy.linalg.LinAlgError` is available as `__cause__`.
    """

    PREFIX = "Could not invert matrix."

    def __init__(self, message: str = "") -> None:
        super().__init__(f"{self.PREFIX} {message}".strip())


class StoppedError(MatrixAlgorithmsError):
    """
    Raised when an algorithm notices that `stop` has been requested.
    """

    def __init__(self, algorithm: type) -> None:
        super().__init__(f"Algorithm {algorithm.__name__} was stopped")
