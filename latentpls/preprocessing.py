"""
Contains the column-wise preprocessing transforms applied by the PLS algorithms
before modeling: `Center` subtracts the column means and `Standardize` additionally
divides by the column standard deviations. Both are invertible, so predictions made
in the preprocessed space can be returned on the original scale.
"""

import enum
from typing import Optional

import numpy as np
import numpy.typing as npt

from .base import UnsupervisedMatrixAlgorithm


class PreprocessingKind(str, enum.Enum):
    """
    Selects the preprocessing that is applied to both features and targets.
    """

    NONE = "none"
    CENTER = "center"
    STANDARDIZE = "standardize"


class Center(UnsupervisedMatrixAlgorithm):
    """
    Centers the columns of a matrix by subtracting their means.

    Attributes
    ----------
    means : Array of shape (1, K) or None
        Column-wise means of the configuration matrix. None until configured.
    """

    def __init__(self) -> None:
        super().__init__()
        self.means = None

    def _do_reset(self) -> None:
        self.means = None

    def _do_configure(self, X: npt.NDArray[np.float64]) -> None:
        self.means = np.mean(X, axis=0, keepdims=True)

    def _do_transform(self, X: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        self._check_stopped()
        return X - self.means

    def _do_inverse_transform(
        self, X: npt.NDArray[np.float64]
    ) -> npt.NDArray[np.float64]:
        return X + self.means


class Standardize(UnsupervisedMatrixAlgorithm):
    """
    Standardizes the columns of a matrix by subtracting their means and dividing by
    their standard deviations.

    Parameters
    ----------
    ddof : int, default=1
        The delta degrees of freedom to use when computing the sample standard
        deviation. A value of 0 corresponds to the biased estimate of the sample
        standard deviation, while a value of 1 corresponds to Bessel's correction
        for the sample standard deviation.

    Attributes
    ----------
    means : Array of shape (1, K) or None
        Column-wise means of the configuration matrix. None until configured.

    stds : Array of shape (1, K) or None
        Column-wise standard deviations of the configuration matrix. Standard
        deviations that are not larger than machine epsilon are replaced by 1, so
        constant columns are only centered. None until configured.
    """

    def __init__(self, ddof: int = 1) -> None:
        super().__init__()
        self.ddof = ddof
        self.eps = np.finfo(np.float64).eps
        self.means: Optional[npt.NDArray[np.float64]] = None
        self.stds: Optional[npt.NDArray[np.float64]] = None

    def _do_reset(self) -> None:
        self.means = None
        self.stds = None

    def _do_configure(self, X: npt.NDArray[np.float64]) -> None:
        self.means = np.mean(X, axis=0, keepdims=True)
        stds = X.std(axis=0, ddof=self.ddof, keepdims=True, mean=self.means)
        stds[~(np.abs(stds) > self.eps)] = 1
        self.stds = stds

    def _do_transform(self, X: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        self._check_stopped()
        return (X - self.means) / self.stds

    def _do_inverse_transform(
        self, X: npt.NDArray[np.float64]
    ) -> npt.NDArray[np.float64]:
        return X * self.stds + self.means


def make_preprocessing(
    kind: PreprocessingKind,
) -> Optional[UnsupervisedMatrixAlgorithm]:
    """
    Returns a fresh, unconfigured transform for `kind`, or None for
    `PreprocessingKind.NONE`.

    Raises
    ------
    ValueError
        If `kind` is not a valid `PreprocessingKind`.
    """
    kind = PreprocessingKind(kind)
    if kind == PreprocessingKind.CENTER:
        return Center()
    if kind == PreprocessingKind.STANDARDIZE:
        return Standardize()
    return None
