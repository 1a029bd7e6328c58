"""
Contains the PLS1 class which implements partial least-squares regression for a
single response variable as described in module 7 of the Statmaster course:
https://web.archive.org/web/20081001154431/http://statmaster.sdu.dk:80/courses/ST02/module07/module.pdf
"""

import warnings
from dataclasses import dataclass
from typing import Optional

import numpy as np
import numpy.linalg as la
import numpy.typing as npt

from .linalg import inverse
from .pls_base import PLSBase
from .preprocessing import PreprocessingKind


@dataclass(frozen=True)
class PLS1Model:
    x_weights: npt.NDArray[np.float64]
    x_loadings: npt.NDArray[np.float64]
    x_scores: npt.NDArray[np.float64]
    b_hat: npt.NDArray[np.float64]
    regression_vector: npt.NDArray[np.float64]
    max_stable_components: int


class PLS1(PLSBase):
    """
    Implements PLS1, partial least-squares regression with exactly one response
    variable. Only X is deflated, y is kept as is.

    Parameters
    ----------
    n_components : int, default=5
        Number of components to extract.

    preprocessing : PreprocessingKind or str, default=PreprocessingKind.NONE
        Preprocessing applied to `X` and `y` before modeling.

    Raises
    ------
    InvalidShapeError
        From `configure`, if `y` does not have exactly one column.

    Warns
    -----
    UserWarning.
        From `configure`, if the weight of a component is close to zero relative to
        the weight of the first component. Extraction stops at that component and
        the regression vector is computed from the components before it.
    """

    min_response_columns = 1
    max_response_columns = 1

    def __init__(
        self,
        n_components: int = 5,
        preprocessing: PreprocessingKind = PreprocessingKind.NONE,
    ) -> None:
        self._model: Optional[PLS1Model] = None
        super().__init__(n_components=n_components, preprocessing=preprocessing)
        self.eps = np.finfo(np.float64).eps

    @property
    def max_stable_components(self) -> Optional[int]:
        return None if self._model is None else self._model.max_stable_components

    def _do_reset(self) -> None:
        super()._do_reset()
        self._model = None

    def _weight_warning(self, i: int) -> None:
        warnings.warn(
            message=f"Weight is close to zero. Results with A = {i + 1} "
            "component(s) or higher may be unstable.",
            category=UserWarning,
        )

    def _do_pls_configure(
        self, X: npt.NDArray[np.float64], Y: npt.NDArray[np.float64]
    ) -> None:
        N, K = X.shape
        A = self._n_components

        W = np.zeros(shape=(K, A))
        P = np.zeros(shape=(K, A))
        T = np.zeros(shape=(N, A))
        b_hat = np.zeros(shape=(A, 1))
        max_stable_components = A

        for k in range(A):
            self._check_stopped()

            # Step 1: weights
            w = X.T @ Y
            norm = la.norm(w)
            if k == 0:
                # Relative to the first weight, as numpy.linalg.matrix_rank does
                # with the largest singular value.
                weight_tol = max(N, K) * self.eps * norm
            if norm <= weight_tol:
                self._weight_warning(k)
                max_stable_components = k
                break
            w = w / norm

            # Step 2: scores
            t = X @ w
            tTt = (t.T @ t).item()

            # Step 3: inner regression coefficient
            b_hat[k, 0] = (t.T @ Y).item() / tTt

            # Step 4: loadings
            p = (X.T @ t) / tTt

            W[:, k] = w.squeeze(axis=1)
            T[:, k] = t.squeeze(axis=1)
            P[:, k] = p.squeeze(axis=1)

            # Step 5: deflate X
            X = X - t @ p.T

        S = max_stable_components
        if S > 0:
            regression_vector = (
                W[:, :S] @ inverse(P[:, :S].T @ W[:, :S]) @ b_hat[:S]
            )
        else:
            regression_vector = np.zeros(shape=(K, 1))

        self._model = PLS1Model(
            x_weights=W,
            x_loadings=P,
            x_scores=T,
            b_hat=b_hat,
            regression_vector=regression_vector,
            max_stable_components=max_stable_components,
        )

    def _scores(self, X: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        W = self._model.x_weights
        P = self._model.x_loadings
        T = np.zeros(shape=(X.shape[0], self._n_components))
        for j in range(self._n_components):
            self._check_stopped()
            t = X @ W[:, j : j + 1]
            T[:, j] = t.squeeze(axis=1)
            X = X - t @ P[:, j : j + 1].T
        return T

    def _do_pls_transform(
        self, X: npt.NDArray[np.float64]
    ) -> npt.NDArray[np.float64]:
        return self._scores(X)

    def _do_pls_predict(self, X: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        return self._scores(X) @ self._model.b_hat

    def get_matrix_names(self) -> list[str]:
        return ["RegVector", "P", "W", "b_hat"]

    def get_matrix(self, name: str) -> Optional[npt.NDArray[np.float64]]:
        if self._model is None:
            return None
        matrices = {
            "RegVector": self._model.regression_vector,
            "P": self._model.x_loadings,
            "W": self._model.x_weights,
            "b_hat": self._model.b_hat,
        }
        return matrices.get(name)

    def has_loadings(self) -> bool:
        return True

    def get_loadings(self) -> Optional[npt.NDArray[np.float64]]:
        return self.get_matrix("P")

    def can_predict(self) -> bool:
        return True
