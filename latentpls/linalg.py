"""
Thin helpers on top of NumPy for the matrix operations that need library specific
semantics: coercion to 2-D float64 matrices, squared norms and inversions that fail
with a dedicated exception instead of a bare `numpy.linalg.LinAlgError`.
"""

import numpy as np
import numpy.linalg as la
import numpy.typing as npt

from .exceptions import InvalidShapeError, MatrixInversionError

DTYPE = np.float64


def as_matrix(A: npt.ArrayLike, name: str = "matrix") -> npt.NDArray[np.float64]:
    """
    Converts `A` to a 2-D float64 array. A 1-D input is treated as a single column.

    Parameters
    ----------
    A : Array of shape (N, K) or (N,)
        The data to convert.

    name : str, optional, default="matrix"
        Name of the argument, used in the error message.

    Returns
    -------
    A : Array of shape (N, K) or (N, 1)

    Raises
    ------
    InvalidShapeError
        If `A` has more than two dimensions or is a scalar.
    """
    A = np.asarray(A, dtype=DTYPE)
    if A.ndim == 1:
        A = A.reshape(-1, 1)
    if A.ndim != 2:
        raise InvalidShapeError(f"{name} must be 1-D or 2-D, got {A.ndim}-D")
    return A


def norm2_squared(A: npt.NDArray[np.float64]) -> float:
    """
    Squared L2 (Frobenius) norm of `A`.
    """
    return float(np.sum(A * A))


def normalized(v: npt.NDArray[np.float64], eps: float = 0.0) -> npt.NDArray[np.float64]:
    """
    Divides `v` by its L2 norm plus `eps`.
    """
    return v / (np.sqrt(norm2_squared(v)) + eps)


def inverse(A: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """
    Inverts the square matrix `A`.

    Raises
    ------
    MatrixInversionError
        If `A` is singular or not square.
    """
    try:
        return la.inv(A)
    except la.LinAlgError as err:
        raise MatrixInversionError(str(err)) from err


def pseudo_inverse(A: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """
    Moore-Penrose pseudo-inverse of `A`.

    Raises
    ------
    MatrixInversionError
        If the singular value decomposition does not converge.
    """
    try:
        return la.pinv(A)
    except la.LinAlgError as err:
        raise MatrixInversionError(str(err)) from err


def scale_columns(
    A: npt.NDArray[np.float64], v: npt.ArrayLike
) -> npt.NDArray[np.float64]:
    """
    Multiplies column `j` of `A` by `v[j]`.
    """
    return A * np.reshape(np.asarray(v, dtype=DTYPE), (1, -1))
