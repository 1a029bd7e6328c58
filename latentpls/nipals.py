"""
Contains the NIPALS class which implements Nonlinear Iterative Partial Least Squares
with canonical or regression deflation, and the CCA class which specializes it to
Canonical Correlation Analysis.

The implementation follows the NIPALS algorithm of scikit-learn's cross_decomposition
module: for each component an inner fixed-point iteration refines a pair of X and Y
weights, after which X and Y are deflated by the extracted scores.

For more details, refer to:
"A Survey of Partial Least Squares (PLS) Methods, with Emphasis on the Two-Block
Case" by Wegelin (2000).
"""

import enum
import warnings
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import numpy.typing as npt

from .base import ResponseTransformMixin
from .linalg import norm2_squared, normalized, pseudo_inverse, scale_columns
from .pls_base import PLSBase
from .preprocessing import PreprocessingKind, Standardize

# Below this, the residual of X or Y is considered exhausted.
EPS = 1e-10

# Guards the divisions in the inner loop.
LOOP_EPS = 1e-16


class DeflationMode(str, enum.Enum):
    """
    How the response matrix is deflated after each component. CANONICAL deflates Y
    by its own scores, REGRESSION deflates Y by the X scores.
    """

    CANONICAL = "canonical"
    REGRESSION = "regression"


class WeightCalculationMode(str, enum.Enum):
    """
    How the weights are computed in the inner loop. PLS (mode A) regresses on the
    scores, CCA (mode B) projects with the pseudo-inverse of the residual matrices.
    """

    PLS = "pls"
    CCA = "cca"


@dataclass(frozen=True)
class NIPALSModel:
    """
    Everything learned by one configuration of NIPALS. Matrices have one column per
    requested component. Columns of components that were not extracted because the
    residual was exhausted are zero.
    """

    x_scores: npt.NDArray[np.float64]
    y_scores: npt.NDArray[np.float64]
    x_weights: npt.NDArray[np.float64]
    y_weights: npt.NDArray[np.float64]
    x_loadings: npt.NDArray[np.float64]
    y_loadings: npt.NDArray[np.float64]
    x_rotations: npt.NDArray[np.float64]
    y_rotations: npt.NDArray[np.float64]
    coef: npt.NDArray[np.float64]
    x_residual: npt.NDArray[np.float64]
    iterations: Tuple[int, ...]
    max_stable_components: int
    standardize_x: Standardize
    standardize_y: Standardize


class NIPALS(PLSBase, ResponseTransformMixin):
    """
    Implements Nonlinear Iterative Partial Least Squares for one or more response
    variables.

    Parameters
    ----------
    n_components : int, default=5
        Number of components to extract.

    preprocessing : PreprocessingKind or str, default=PreprocessingKind.NONE
        Preprocessing applied to `X` and `Y` before modeling.

    tol : float, default=1e-6
        Convergence tolerance of the inner loop on the squared change of the X
        weights. Must be non-negative.

    max_iter : int, default=500
        Maximum number of iterations of the inner loop. Must be non-negative.

    norm_y_weights : bool, default=False
        Whether to normalize the Y weights to unit length in the inner loop.

    deflation_mode : DeflationMode or str, default=DeflationMode.REGRESSION
        Whether to deflate Y by its own scores (CANONICAL) or by the X scores
        (REGRESSION).

    Notes
    -----
    On top of `preprocessing`, NIPALS standardizes `X` and `Y` internally.
    Regression coefficients are scaled back by the internal standard deviations of
    `Y` and predictions get the internal means of `Y` added back, so predictions are
    on the scale of the (preprocessed) responses.

    If the Y residual or the X scores become numerically zero, extraction stops
    early with a warning. The remaining components are left at zero and
    `max_stable_components` reports how many were extracted.

    When `Y` has a single column, the inner loop converges in one pass and `tol` and
    `max_iter` have no effect.
    """

    weight_calculation_mode = WeightCalculationMode.PLS

    def __init__(
        self,
        n_components: int = 5,
        preprocessing: PreprocessingKind = PreprocessingKind.NONE,
        tol: float = 1e-6,
        max_iter: int = 500,
        norm_y_weights: bool = False,
        deflation_mode: DeflationMode = DeflationMode.REGRESSION,
    ) -> None:
        self._model: Optional[NIPALSModel] = None
        self._tol = 1e-6
        self._max_iter = 500
        self._norm_y_weights = False
        self._deflation_mode = DeflationMode.REGRESSION
        super().__init__(n_components=n_components, preprocessing=preprocessing)
        self.tol = tol
        self.max_iter = max_iter
        self.norm_y_weights = norm_y_weights
        self.deflation_mode = deflation_mode

    @property
    def tol(self) -> float:
        return self._tol

    @tol.setter
    def tol(self, value: float) -> None:
        self.set_tol(value)

    def set_tol(self, value: float) -> bool:
        """
        Sets the inner loop tolerance. Negative values are rejected with a warning
        and the previous value is kept.
        """
        if value < 0:
            warnings.warn(
                message=f"Tolerance parameter must be non-negative but was {value}.",
                category=UserWarning,
            )
            return False
        self._tol = value
        self.reset()
        return True

    @property
    def max_iter(self) -> int:
        return self._max_iter

    @max_iter.setter
    def max_iter(self, value: int) -> None:
        self.set_max_iter(value)

    def set_max_iter(self, value: int) -> bool:
        """
        Sets the maximum number of inner loop iterations. Negative values are
        rejected with a warning and the previous value is kept.
        """
        if value < 0:
            warnings.warn(
                message="Maximum iterations parameter must be non-negative but was "
                f"{value}.",
                category=UserWarning,
            )
            return False
        self._max_iter = value
        self.reset()
        return True

    @property
    def norm_y_weights(self) -> bool:
        return self._norm_y_weights

    @norm_y_weights.setter
    def norm_y_weights(self, value: bool) -> None:
        self._norm_y_weights = value
        self.reset()

    @property
    def deflation_mode(self) -> DeflationMode:
        return self._deflation_mode

    @deflation_mode.setter
    def deflation_mode(self, value: DeflationMode) -> None:
        self.set_deflation_mode(value)

    def set_deflation_mode(self, value: DeflationMode) -> bool:
        """
        Sets the deflation mode and resets the algorithm.

        Raises
        ------
        ValueError
            If `value` is not a valid `DeflationMode`.
        """
        DeflationMode(value)
        self._deflation_mode = value
        self.reset()
        return True

    @property
    def model(self) -> Optional[NIPALSModel]:
        """
        The learned model, or None if the algorithm is not configured.
        """
        return self._model

    @property
    def max_stable_components(self) -> Optional[int]:
        return None if self._model is None else self._model.max_stable_components

    def _do_reset(self) -> None:
        super()._do_reset()
        self._model = None

    def _early_exit_warning(self, i: int, reason: str) -> None:
        warnings.warn(
            message=f"{reason} at component {i + 1}. Components {i + 1} to "
            f"{self._n_components} are left at zero.",
            category=UserWarning,
        )

    def _do_pls_configure(
        self, X: npt.NDArray[np.float64], Y: npt.NDArray[np.float64]
    ) -> None:
        standardize_x = Standardize()
        standardize_y = Standardize()
        X = standardize_x.configure_and_transform(X)
        Y = standardize_y.configure_and_transform(Y)

        N, K = X.shape
        M = Y.shape[1]
        A = self._n_components

        T = np.zeros(shape=(N, A))
        U = np.zeros(shape=(N, A))
        W = np.zeros(shape=(K, A))
        C = np.zeros(shape=(M, A))
        P = np.zeros(shape=(K, A))
        Q = np.zeros(shape=(M, A))
        iterations = []
        max_stable_components = A

        for k in range(A):
            self._check_stopped()

            if np.all(Y.T @ Y < EPS):
                self._early_exit_warning(k, "Y residual is constant")
                max_stable_components = k
                break

            w, c, passes = self._nipals_loop(X, Y)

            t = X @ w
            tTt = norm2_squared(t)
            if tTt < EPS:
                self._early_exit_warning(k, "X scores are zero")
                max_stable_components = k
                break
            u = (Y @ c) / norm2_squared(c)

            # Deflate X
            p = (X.T @ t) / tTt
            X = X - t @ p.T

            # Deflate Y
            if self._get_deflation_mode() == DeflationMode.CANONICAL:
                q = (Y.T @ u) / norm2_squared(u)
                Y = Y - u @ q.T
            else:
                q = (Y.T @ t) / tTt
                Y = Y - t @ q.T

            T[:, k] = t.squeeze(axis=1)
            U[:, k] = u.squeeze(axis=1)
            W[:, k] = w.squeeze(axis=1)
            C[:, k] = c.squeeze(axis=1)
            P[:, k] = p.squeeze(axis=1)
            Q[:, k] = q.squeeze(axis=1)
            iterations.append(passes)

        R = W @ pseudo_inverse(P.T @ W)
        if M > 1:
            y_rotations = C @ pseudo_inverse(Q.T @ C)
        else:
            y_rotations = np.ones(shape=(1, 1))

        coef = scale_columns(R @ Q.T, standardize_y.stds)

        self._model = NIPALSModel(
            x_scores=T,
            y_scores=U,
            x_weights=W,
            y_weights=C,
            x_loadings=P,
            y_loadings=Q,
            x_rotations=R,
            y_rotations=y_rotations,
            coef=coef,
            x_residual=X,
            iterations=tuple(iterations),
            max_stable_components=max_stable_components,
            standardize_x=standardize_x,
            standardize_y=standardize_y,
        )

    def _nipals_loop(
        self, X: npt.NDArray[np.float64], Y: npt.NDArray[np.float64]
    ) -> Tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], int]:
        """
        Runs the inner NIPALS loop for one component.

        Parameters
        ----------
        X : Array of shape (N, K)
            Residual predictor variables.

        Y : Array of shape (N, M)
            Residual response variables.

        Returns
        -------
        x_weight : Array of shape (K, 1)
            Unit length X weight.

        y_weight : Array of shape (M, 1)
            Y weight.

        passes : int
            Number of passes through the loop.
        """
        cca_mode = self.weight_calculation_mode == WeightCalculationMode.CCA
        # Start from the first column that is not exhausted.
        usable = np.flatnonzero(np.sum(Y * Y, axis=0) > LOOP_EPS)
        first = usable[0] if usable.size > 0 else 0
        y_score = Y[:, first : first + 1]
        x_weight_old = np.zeros(shape=(X.shape[1], 1))
        X_pinv = None
        Y_pinv = None
        iterations = 0

        while True:
            self._check_stopped()

            # Update X weights
            if cca_mode:
                if X_pinv is None:
                    X_pinv = pseudo_inverse(X)
                x_weight = X_pinv @ y_score
            else:
                x_weight = (X.T @ y_score) / norm2_squared(y_score)

            if norm2_squared(x_weight) < LOOP_EPS:
                x_weight = x_weight + LOOP_EPS
            x_weight = normalized(x_weight, LOOP_EPS)

            x_score = X @ x_weight

            # Update Y weights
            if cca_mode:
                if Y_pinv is None:
                    Y_pinv = pseudo_inverse(Y)
                y_weight = Y_pinv @ x_score
            else:
                y_weight = (Y.T @ x_score) / norm2_squared(x_score)

            if self._norm_y_weights:
                y_weight = normalized(y_weight, LOOP_EPS)

            y_score = (Y @ y_weight) / (norm2_squared(y_weight) + LOOP_EPS)

            x_weight_diff = x_weight - x_weight_old
            if norm2_squared(x_weight_diff) < self._tol or Y.shape[1] == 1:
                break
            if iterations >= self._max_iter:
                break

            x_weight_old = x_weight
            iterations += 1

        return x_weight, y_weight, iterations + 1

    def _get_deflation_mode(self) -> DeflationMode:
        return DeflationMode(self.deflation_mode)

    def _do_pls_transform(
        self, X: npt.NDArray[np.float64]
    ) -> npt.NDArray[np.float64]:
        X = self._model.standardize_x.transform(X)
        return X @ self._model.x_rotations

    def _do_pls_predict(self, X: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        X = self._model.standardize_x.transform(X)
        return X @ self._model.coef + self._model.standardize_y.means

    def _do_transform_response(
        self, Y: npt.NDArray[np.float64]
    ) -> npt.NDArray[np.float64]:
        if self._trans_response is not None:
            Y = self._trans_response.transform(Y)
        Y = self._model.standardize_y.transform(Y)
        return Y @ self._model.y_rotations

    def get_matrix_names(self) -> list[str]:
        """
        T: X scores, U: Y scores, P: X loadings, Q: Y loadings, W: X weights,
        C: Y weights, R: X rotations, B: regression coefficients.
        """
        return ["T", "U", "P", "Q", "W", "C", "R", "B"]

    def get_matrix(self, name: str) -> Optional[npt.NDArray[np.float64]]:
        if self._model is None:
            return None
        matrices = {
            "T": self._model.x_scores,
            "U": self._model.y_scores,
            "P": self._model.x_loadings,
            "Q": self._model.y_loadings,
            "W": self._model.x_weights,
            "C": self._model.y_weights,
            "R": self._model.x_rotations,
            "B": self._model.coef,
        }
        return matrices.get(name)

    def has_loadings(self) -> bool:
        return True

    def get_loadings(self) -> Optional[npt.NDArray[np.float64]]:
        return self.get_matrix("P")

    def can_predict(self) -> bool:
        return True

    def get_coef(self) -> Optional[npt.NDArray[np.float64]]:
        return self.get_matrix("B")


class CCA(NIPALS):
    """
    Implements Canonical Correlation Analysis on top of NIPALS. Weights are computed
    with the pseudo-inverses of the residual matrices (mode B) and Y is always
    deflated by its own scores.

    Parameters
    ----------
    n_components : int, default=5
        Number of components to extract.

    preprocessing : PreprocessingKind or str, default=PreprocessingKind.NONE
        Preprocessing applied to `X` and `Y` before modeling.

    tol : float, default=1e-6
        Convergence tolerance of the inner loop.

    max_iter : int, default=500
        Maximum number of iterations of the inner loop.

    norm_y_weights : bool, default=False
        Whether to normalize the Y weights to unit length in the inner loop.

    Notes
    -----
    The deflation mode is fixed to CANONICAL. Setting another mode only issues a
    warning.
    """

    weight_calculation_mode = WeightCalculationMode.CCA

    def __init__(
        self,
        n_components: int = 5,
        preprocessing: PreprocessingKind = PreprocessingKind.NONE,
        tol: float = 1e-6,
        max_iter: int = 500,
        norm_y_weights: bool = False,
    ) -> None:
        super().__init__(
            n_components=n_components,
            preprocessing=preprocessing,
            tol=tol,
            max_iter=max_iter,
            norm_y_weights=norm_y_weights,
            deflation_mode=DeflationMode.CANONICAL,
        )

    @property
    def deflation_mode(self) -> DeflationMode:
        return DeflationMode.CANONICAL

    @deflation_mode.setter
    def deflation_mode(self, value: DeflationMode) -> None:
        self.set_deflation_mode(value)

    def set_deflation_mode(self, value: DeflationMode) -> bool:
        if DeflationMode(value) != DeflationMode.CANONICAL:
            warnings.warn(
                message="CCA only allows CANONICAL deflation mode.",
                category=UserWarning,
            )
            return False
        return True
