"""
Contains the PLSBase class, the scaffold shared by all partial least-squares
algorithms in latentpls. It checks the shape of the response matrix, applies the
selected preprocessing to features and targets, delegates the actual modeling to
algorithm specific hooks and undoes the target preprocessing on predictions.
"""

import abc
import numbers
import warnings
from typing import Optional

import numpy as np
import numpy.typing as npt

from .base import PredictingSupervisedMatrixAlgorithm
from .exceptions import InvalidShapeError
from .preprocessing import PreprocessingKind, make_preprocessing


class PLSBase(PredictingSupervisedMatrixAlgorithm):
    """
    Implements an abstract class for partial least-squares algorithms.

    Parameters
    ----------
    n_components : int, default=5
        Maximum number of components to extract. Must be a positive integer.

    preprocessing : PreprocessingKind or str, default=PreprocessingKind.NONE
        Preprocessing applied column-wise to both the predictor variables and the
        response variables before modeling. Predictions are returned on the
        original scale of the response variables.

    Notes
    -----
    Subclasses declare the number of response columns they can handle with the
    class attributes `min_response_columns` and `max_response_columns`, where a
    `max_response_columns` of None means unbounded.

    PLS transformations are projections onto a lower dimensional space, so
    `inverse_transform` always raises `UninvertibleAlgorithmError`.
    """

    min_response_columns: int = 1
    max_response_columns: Optional[int] = None

    def __init__(
        self,
        n_components: int = 5,
        preprocessing: PreprocessingKind = PreprocessingKind.NONE,
    ) -> None:
        super().__init__()
        self._n_components = 5
        self._preprocessing = PreprocessingKind.NONE
        self._trans_predictors = None
        self._trans_response = None
        self.n_components = n_components
        self.preprocessing = preprocessing

    @property
    def n_components(self) -> int:
        return self._n_components

    @n_components.setter
    def n_components(self, value: int) -> None:
        self.set_n_components(value)

    def set_n_components(self, value: int) -> bool:
        """
        Sets the number of components and resets the algorithm.

        Returns
        -------
        accepted : bool
            False if `value` is not a positive integer. A warning is issued and the
            previous value is kept in that case.
        """
        if (
            isinstance(value, bool)
            or not isinstance(value, numbers.Integral)
            or value < 1
        ):
            warnings.warn(
                message="Number of components must be a positive integer but was "
                f"{value}. Keeping {self._n_components}.",
                category=UserWarning,
            )
            return False
        self._n_components = value
        self.reset()
        return True

    @property
    def preprocessing(self) -> PreprocessingKind:
        return self._preprocessing

    @preprocessing.setter
    def preprocessing(self, value: PreprocessingKind) -> None:
        self.set_preprocessing(value)

    def set_preprocessing(self, value: PreprocessingKind) -> bool:
        """
        Sets the preprocessing kind and resets the algorithm.

        Raises
        ------
        ValueError
            If `value` is not a valid `PreprocessingKind`.
        """
        PreprocessingKind(value)
        self._preprocessing = value
        self.reset()
        return True

    def _do_reset(self) -> None:
        self._trans_predictors = None
        self._trans_response = None

    def _check_response_shape(
        self, X: npt.NDArray[np.float64], Y: npt.NDArray[np.float64]
    ) -> None:
        if X.shape[0] != Y.shape[0]:
            raise InvalidShapeError(
                f"X has {X.shape[0]} rows but Y has {Y.shape[0]} rows"
            )
        num_columns = Y.shape[1]
        if num_columns < self.min_response_columns:
            raise InvalidShapeError(
                f"{type(self).__name__} requires at least "
                f"{self.min_response_columns} response columns, found: {num_columns}"
            )
        if (
            self.max_response_columns is not None
            and num_columns > self.max_response_columns
        ):
            raise InvalidShapeError(
                f"{type(self).__name__} can handle at most "
                f"{self.max_response_columns} response columns, found: {num_columns}"
            )

    def _do_configure(
        self, X: npt.NDArray[np.float64], Y: npt.NDArray[np.float64]
    ) -> None:
        self._check_response_shape(X, Y)

        self._trans_predictors = make_preprocessing(self._preprocessing)
        self._trans_response = make_preprocessing(self._preprocessing)

        if self._trans_predictors is not None:
            X = self._trans_predictors.configure_and_transform(X)
        if self._trans_response is not None:
            Y = self._trans_response.configure_and_transform(Y)

        self._do_pls_configure(X, Y)

    @abc.abstractmethod
    def _do_pls_configure(
        self, X: npt.NDArray[np.float64], Y: npt.NDArray[np.float64]
    ) -> None:
        """
        Configures the algorithm on the preprocessed matrices.
        """

    def _do_transform(self, X: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        if self._trans_predictors is not None:
            X = self._trans_predictors.transform(X)
        return self._do_pls_transform(X)

    @abc.abstractmethod
    def _do_pls_transform(
        self, X: npt.NDArray[np.float64]
    ) -> npt.NDArray[np.float64]:
        """
        Transforms the preprocessed `X` into the latent space.
        """

    def _do_predict(self, X: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        if self._trans_predictors is not None:
            X = self._trans_predictors.transform(X)
        Y_pred = self._do_pls_predict(X)
        if self._trans_response is not None:
            Y_pred = self._trans_response.inverse_transform(Y_pred)
        return Y_pred

    @abc.abstractmethod
    def _do_pls_predict(self, X: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """
        Predicts preprocessed targets from the preprocessed `X`.
        """

    @abc.abstractmethod
    def get_matrix_names(self) -> list[str]:
        """
        Returns the names of the matrices available through `get_matrix`.
        """

    @abc.abstractmethod
    def get_matrix(self, name: str) -> Optional[npt.NDArray[np.float64]]:
        """
        Returns the matrix called `name`, or None if there is no such matrix or the
        algorithm has not been configured.
        """

    @abc.abstractmethod
    def has_loadings(self) -> bool:
        pass

    @abc.abstractmethod
    def get_loadings(self) -> Optional[npt.NDArray[np.float64]]:
        pass

    @abc.abstractmethod
    def can_predict(self) -> bool:
        pass

    def is_non_invertible(self) -> bool:
        return True
