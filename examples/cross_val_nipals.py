"""
This file contains an example of cross-validating NIPALS with the built-in
`cross_validate` method. Each validation split is configured on a fresh clone of the
model, so any preprocessing statistics are computed on the training rows only.

The code includes the following functions:
- `rmse_for_each_target`: Computes the root mean squared error for each target.

To run the cross-validation, execute the file.
"""

import numpy as np

from latentpls import NIPALS, DeflationMode, PreprocessingKind


def rmse_for_each_target(Y_true: np.ndarray, Y_pred: np.ndarray) -> np.ndarray:
    # Y_true and Y_pred have shape (N_val, M). Result has shape (M,).
    return np.sqrt(np.mean((Y_true - Y_pred) ** 2, axis=0))


if __name__ == "__main__":
    N = 100  # Number of samples.
    K = 50  # Number of features.
    M = 4  # Number of targets.
    A = 10  # Number of latent variables (PLS components).

    rng = np.random.default_rng(0)
    splits = rng.integers(0, 5, size=N)  # Assign each sample to one of 5 splits.

    X = rng.uniform(size=(N, K))
    Y = X @ rng.standard_normal((K, M)) + 0.1 * rng.standard_normal((N, M))

    for n_components in range(1, A + 1):
        nipals = NIPALS(
            n_components=n_components,
            preprocessing=PreprocessingKind.STANDARDIZE,
            deflation_mode=DeflationMode.REGRESSION,
        )
        rmses = nipals.cross_validate(
            X=X,
            Y=Y,
            folds=splits,
            metric_function=rmse_for_each_target,
            n_jobs=-1,
            verbose=0,
        )
        # Average over the splits. Shape (M,).
        mean_rmse = np.mean(list(rmses.values()), axis=0)
        print(f"{n_components:2d} components: RMSE per target {np.round(mean_rmse, 4)}")
