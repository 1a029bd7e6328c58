"""
This file contains an example of cross-validating the latentpls algorithms with
scikit-learn's `cross_validate`. The algorithms are scikit-learn estimators, so they
can be cloned, configured with `fit` and scored like any other regressor.

To run the cross-validation, execute the file.
"""

import numpy as np
from sklearn.model_selection import GroupKFold, cross_validate

from latentpls import CCA, NIPALS, PLS1

if __name__ == "__main__":
    N = 100  # Number of samples.
    K = 20  # Number of features.
    A = 5  # Number of latent variables (PLS components).

    rng = np.random.default_rng(0)
    folds = rng.integers(0, 5, size=N)

    X = rng.uniform(size=(N, K))
    y = X @ rng.standard_normal((K, 1)) + 0.1 * rng.standard_normal((N, 1))

    estimators = {
        "PLS1": PLS1(n_components=A, preprocessing="standardize"),
        "NIPALS": NIPALS(n_components=A, preprocessing="standardize"),
        "CCA": CCA(n_components=1, preprocessing="center"),
    }
    for name, estimator in estimators.items():
        results = cross_validate(
            estimator,
            X,
            y,
            groups=folds,
            cv=GroupKFold(n_splits=5),
            scoring="neg_root_mean_squared_error",
            n_jobs=-1,
        )
        rmse = -results["test_score"]
        print(f"{name}: RMSE {rmse.mean():.4f} +/- {rmse.std():.4f}")
