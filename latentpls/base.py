"""
Contains the lifecycle contracts shared by every algorithm in latentpls.

`MatrixAlgorithm` holds the configured flag, transform/inverse-transform dispatch,
the invertibility query and cooperative cancellation. `UnsupervisedMatrixAlgorithm`
and `SupervisedMatrixAlgorithm` add configuration on one or on two matrices, and
`PredictingSupervisedMatrixAlgorithm` adds prediction and cross-validation on top.

The classes subclass scikit-learn's BaseEstimator, so hyper-parameters can be
inspected and changed with `get_params` and `set_params`, and algorithms can be
cloned with `sklearn.base.clone`.
"""

import abc
from collections.abc import Callable, Hashable
from typing import Any, Iterable, Optional, Tuple

import joblib
import numpy as np
import numpy.typing as npt
from joblib import Parallel, delayed
from sklearn.base import BaseEstimator, clone

from .exceptions import (
    StoppedError,
    UnconfiguredAlgorithmError,
    UninvertibleAlgorithmError,
)
from .linalg import as_matrix


class MatrixAlgorithm(BaseEstimator, abc.ABC):
    """
    Base class for all matrix algorithms.

    An algorithm starts out unconfigured. Configuration is exposed by the
    subclasses, which call `_set_configured` once their `_do_configure` hook has
    succeeded. `reset` returns the algorithm to the unconfigured state.

    Notes
    -----
    Instances hold mutable state and are not meant to be shared between threads.
    Use one instance per model.
    """

    def __init__(self) -> None:
        self._configured = False
        self._stopped = False

    def transform(self, X: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """
        Applies the transformation that this algorithm represents to `X`.

        Parameters
        ----------
        X : Array of shape (N, K)
            The matrix to transform.

        Returns
        -------
        X_transformed : Array of shape (N, L)

        Raises
        ------
        ValueError
            If `X` is None.

        UnconfiguredAlgorithmError
            If the algorithm has not been configured.
        """
        if X is None:
            raise ValueError("Can't transform None matrix")
        self.ensure_configured()
        return self._do_transform(as_matrix(X, "X"))

    @abc.abstractmethod
    def _do_transform(self, X: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        pass

    def inverse_transform(self, X: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """
        Applies the inverse of the transformation that this algorithm represents
        to `X`.

        Parameters
        ----------
        X : Array of shape (N, L)
            The matrix to inverse-transform.

        Returns
        -------
        X_original : Array of shape (N, K)

        Raises
        ------
        ValueError
            If `X` is None.

        UnconfiguredAlgorithmError
            If the algorithm has not been configured.

        UninvertibleAlgorithmError
            If the algorithm cannot be inverted.
        """
        if X is None:
            raise ValueError("Can't inverse-transform None matrix")
        self.ensure_configured()
        if self.is_non_invertible():
            raise UninvertibleAlgorithmError(type(self))
        return self._do_inverse_transform(as_matrix(X, "X"))

    def _do_inverse_transform(
        self, X: npt.NDArray[np.float64]
    ) -> npt.NDArray[np.float64]:
        raise UninvertibleAlgorithmError(type(self))

    def is_non_invertible(self) -> bool:
        """
        Whether the algorithm is definitely impossible to invert. Unconfigured
        algorithms are never invertible.
        """
        return not self.is_configured()

    def stop(self) -> None:
        """
        Requests the algorithm to stop. Any running or future computation raises
        `StoppedError` at its next check.
        """
        self._stopped = True

    def is_stopped(self) -> bool:
        return self._stopped

    def _check_stopped(self) -> None:
        if self._stopped:
            raise StoppedError(type(self))

    def is_configured(self) -> bool:
        return self._configured

    def ensure_configured(self) -> None:
        """
        Raises
        ------
        UnconfiguredAlgorithmError
            If the algorithm has not been configured.
        """
        if not self._configured:
            raise UnconfiguredAlgorithmError(type(self))

    def reset(self) -> None:
        """
        Returns the algorithm to its unconfigured state and drops all learned
        state.
        """
        self._do_reset()
        self._configured = False

    @abc.abstractmethod
    def _do_reset(self) -> None:
        pass

    def _set_configured(self) -> None:
        self._configured = True


class UnsupervisedMatrixAlgorithm(MatrixAlgorithm):
    """
    Base class for algorithms that are configured on a single matrix.
    """

    def configure(self, X: npt.ArrayLike) -> None:
        """
        Configures the algorithm on `X`. Any previous configuration is discarded,
        also when configuration fails.

        Raises
        ------
        ValueError
            If `X` is None.
        """
        if X is None:
            raise ValueError("Cannot configure on None matrix")
        self.reset()
        self._do_configure(as_matrix(X, "X"))
        self._set_configured()

    @abc.abstractmethod
    def _do_configure(self, X: npt.NDArray[np.float64]) -> None:
        pass

    def configure_and_transform(self, X: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """
        Configures on `X` if not already configured, then transforms `X`.
        """
        if not self.is_configured():
            self.configure(X)
        return self.transform(X)


class SupervisedMatrixAlgorithm(MatrixAlgorithm):
    """
    Base class for algorithms that are configured on a feature matrix and a
    target matrix.
    """

    def configure(self, X: npt.ArrayLike, Y: npt.ArrayLike) -> None:
        """
        Configures the algorithm on features `X` and targets `Y`. Any previous
        configuration is discarded, also when configuration fails.

        Parameters
        ----------
        X : Array of shape (N, K)
            Predictor variables.

        Y : Array of shape (N, M) or (N,)
            Response variables.

        Raises
        ------
        ValueError
            If `X` or `Y` is None.
        """
        if X is None:
            raise ValueError("Cannot configure on None feature matrix")
        if Y is None:
            raise ValueError("Cannot configure on None target matrix")
        self.reset()
        self._do_configure(as_matrix(X, "X"), as_matrix(Y, "Y"))
        self._set_configured()

    @abc.abstractmethod
    def _do_configure(
        self, X: npt.NDArray[np.float64], Y: npt.NDArray[np.float64]
    ) -> None:
        pass

    def configure_and_transform(
        self, X: npt.ArrayLike, Y: npt.ArrayLike
    ) -> npt.NDArray[np.float64]:
        """
        Configures on `X` and `Y` if not already configured, then transforms `X`.
        An already configured algorithm is not re-configured.
        """
        if not self.is_configured():
            self.configure(X, Y)
        return self.transform(X)

    def fit(self, X: npt.ArrayLike, Y: npt.ArrayLike) -> "SupervisedMatrixAlgorithm":
        """
        Configures the algorithm on `X` and `Y` and returns it. Provided for use
        with scikit-learn utilities such as `cross_validate`.
        """
        self.configure(X, Y)
        return self


class ResponseTransformMixin(abc.ABC):
    """
    Mixin for supervised algorithms that can also transform target matrices.
    """

    def transform_response(self, Y: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """
        Applies the algorithm's response transformation to `Y`.

        Raises
        ------
        ValueError
            If `Y` is None.

        UnconfiguredAlgorithmError
            If the algorithm has not been configured.
        """
        if Y is None:
            raise ValueError("Can't transform None target matrix")
        self.ensure_configured()
        return self._do_transform_response(as_matrix(Y, "Y"))

    @abc.abstractmethod
    def _do_transform_response(
        self, Y: npt.NDArray[np.float64]
    ) -> npt.NDArray[np.float64]:
        pass

    def configure_and_transform_response(
        self, X: npt.ArrayLike, Y: npt.ArrayLike
    ) -> npt.NDArray[np.float64]:
        if not self.is_configured():
            self.configure(X, Y)
        return self.transform_response(Y)


class PredictingSupervisedMatrixAlgorithm(SupervisedMatrixAlgorithm):
    """
    Base class for supervised algorithms that, once configured, can predict target
    values from feature matrices.
    """

    def predict(self, X: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """
        Predicts the targets for `X`.

        Parameters
        ----------
        X : Array of shape (N, K)
            Predictor variables.

        Returns
        -------
        Y_pred : Array of shape (N, M)

        Raises
        ------
        ValueError
            If `X` is None.

        UnconfiguredAlgorithmError
            If the algorithm has not been configured.
        """
        if X is None:
            raise ValueError("Can't predict against None feature matrix")
        self.ensure_configured()
        return self._do_predict(as_matrix(X, "X"))

    @abc.abstractmethod
    def _do_predict(self, X: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        pass

    def configure_and_predict(
        self, X: npt.ArrayLike, Y: npt.ArrayLike
    ) -> npt.NDArray[np.float64]:
        """
        Configures on `X` and `Y` if not already configured, then predicts on `X`.
        """
        if not self.is_configured():
            self.configure(X, Y)
        return self.predict(X)

    def cross_validate(
        self,
        X: npt.ArrayLike,
        Y: npt.ArrayLike,
        folds: Iterable[Hashable],
        metric_function: Callable[
            [npt.NDArray[np.float64], npt.NDArray[np.float64]], Any
        ],
        preprocessing_function: Optional[
            Callable[
                [
                    npt.NDArray[np.float64],
                    npt.NDArray[np.float64],
                    npt.NDArray[np.float64],
                    npt.NDArray[np.float64],
                ],
                Tuple[
                    npt.NDArray[np.float64],
                    npt.NDArray[np.float64],
                    npt.NDArray[np.float64],
                    npt.NDArray[np.float64],
                ],
            ]
        ] = None,
        n_jobs: int = -1,
        verbose: int = 10,
    ) -> dict[Hashable, Any]:
        """
        Cross-validates the algorithm on `X` and `Y`. Each split is configured on a
        fresh clone of this algorithm, so this instance is left untouched and the
        splits can run in parallel.

        Parameters
        ----------
        X : Array of shape (N, K)
            Predictor variables.

        Y : Array of shape (N, M) or (N,)
            Response variables.

        folds : Iterable of Hashable with N elements
            An iterable defining cross-validation splits. Each unique value in
            `folds` corresponds to a different fold.

        metric_function : Callable receiving arrays `Y_val` and `Y_pred` and
        returning Any.
            Computes a metric based on true values `Y_val` and predicted values
            `Y_pred`.

        preprocessing_function : Callable or None, optional, default=None
            Receives `X_train`, `Y_train`, `X_val` and `Y_val` and returns them
            preprocessed. Applied to each split before the algorithm's own
            preprocessing, so statistics can be computed on the training rows only.

        n_jobs : int, optional, default=-1
            Number of parallel jobs to use. A value of -1 will use the minimum of
            all available cores and the number of unique values in `folds`.

        verbose : int, optional, default=10
            Controls verbosity of parallel jobs.

        Returns
        -------
        metrics : dict of Hashable to Any
            A dictionary mapping each unique value in `folds` to the result of
            evaluating `metric_function` on the corresponding validation set.
        """
        X = as_matrix(X, "X")
        Y = as_matrix(Y, "Y")

        folds_dict = self._init_folds_dict(folds)
        num_splits = len(folds_dict)
        all_indices = np.arange(X.shape[0])

        if n_jobs == -1:
            n_jobs = min(num_splits, joblib.cpu_count())
        else:
            n_jobs = min(num_splits, n_jobs)

        def worker(val_indices: npt.NDArray[np.int_]) -> Any:
            train_indices = np.setdiff1d(all_indices, val_indices, assume_unique=True)
            X_train = X[train_indices]
            Y_train = Y[train_indices]
            X_val = X[val_indices]
            Y_val = Y[val_indices]

            if preprocessing_function is not None:
                X_train, Y_train, X_val, Y_val = preprocessing_function(
                    X_train, Y_train, X_val, Y_val
                )

            estimator = clone(self)
            estimator.configure(X_train, Y_train)
            Y_pred = estimator.predict(X_val)
            return metric_function(Y_val, Y_pred)

        metrics_list = Parallel(n_jobs=n_jobs, verbose=verbose)(
            delayed(worker)(val_indices) for val_indices in folds_dict.values()
        )
        return dict(zip(folds_dict, metrics_list))

    def _init_folds_dict(
        self, folds: Iterable[Hashable]
    ) -> dict[Hashable, npt.NDArray[np.int_]]:
        """
        Generates a list of validation indices for each fold in `folds`.
        """
        index_dict = {}
        for i, num in enumerate(folds):
            try:
                index_dict[num].append(i)
            except KeyError:
                index_dict[num] = [i]
        for key in index_dict:
            index_dict[key] = np.asarray(index_dict[key], dtype=int)
        return index_dict
