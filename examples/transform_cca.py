"""
This script demonstrates configuring NIPALS and CCA on two blocks of data,
transforming both blocks to score space and accessing the internal model matrices.
"""

import numpy as np

from latentpls import CCA, NIPALS, DeflationMode

if __name__ == "__main__":
    N = 200  # Number of samples.
    K = 10  # Number of features.
    M = 3  # Number of targets.
    A = 2  # Number of latent variables.

    rng = np.random.default_rng(1)
    latent = rng.standard_normal((N, A))
    X = latent @ rng.standard_normal((A, K)) + 0.5 * rng.standard_normal((N, K))
    Y = latent @ rng.standard_normal((A, M)) + 0.5 * rng.standard_normal((N, M))

    nipals = NIPALS(n_components=A, deflation_mode=DeflationMode.CANONICAL)
    cca = CCA(n_components=A)

    for model in (nipals, cca):
        model.configure(X, Y)
        X_scores = model.transform(X)  # Shape (N, A).
        Y_scores = model.transform_response(Y)  # Shape (N, A).
        correlations = [
            np.corrcoef(X_scores[:, a], Y_scores[:, a])[0, 1] for a in range(A)
        ]
        print(f"{type(model).__name__} score correlations: {np.round(correlations, 3)}")
        print(f"  inner loop passes per component: {model.model.iterations}")

        # T, U, P, Q, W, C, R and B are available by name.
        for name in model.get_matrix_names():
            print(f"  {name}: shape {model.get_matrix(name).shape}")
