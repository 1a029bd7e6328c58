"""
Tests for the matrix helpers shared by the algorithms.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from latentpls import linalg
from latentpls.exceptions import (
    InvalidShapeError,
    MatrixAlgorithmsError,
    MatrixInversionError,
)


def test_inverse_of_singular_matrix_raises():
    with pytest.raises(MatrixInversionError, match="Could not invert matrix") as exc:
        linalg.inverse(np.zeros((2, 2)))

    assert isinstance(exc.value, MatrixAlgorithmsError)
    assert isinstance(exc.value.__cause__, np.linalg.LinAlgError)


def test_pseudo_inverse_without_convergence_raises():
    with pytest.raises(MatrixInversionError) as exc:
        linalg.pseudo_inverse(np.full((3, 3), np.nan))

    assert isinstance(exc.value.__cause__, np.linalg.LinAlgError)


def test_inverse():
    A = np.array([[2.0, 1.0], [1.0, 3.0]])
    assert_allclose(linalg.inverse(A) @ A, np.eye(2), atol=1e-12)


def test_as_matrix():
    assert linalg.as_matrix([1, 2, 3], "y").shape == (3, 1)
    assert linalg.as_matrix([[1, 2, 3]], "X").dtype == np.float64
    with pytest.raises(InvalidShapeError):
        linalg.as_matrix(np.zeros((2, 2, 2)), "X")


def test_scale_columns():
    A = np.ones((2, 3))
    assert_allclose(linalg.scale_columns(A, [[1.0, 2.0, 3.0]]), [[1, 2, 3], [1, 2, 3]])
