"""
Tests for the NIPALS and CCA algorithms.
"""

import warnings

import numpy as np
import pytest
from numpy.testing import assert_allclose

from latentpls import CCA, NIPALS, DeflationMode, PreprocessingKind
from latentpls.exceptions import (
    StoppedError,
    UnconfiguredAlgorithmError,
    UninvertibleAlgorithmError,
)


def load_data(M: int = 1, N: int = 40, K: int = 8, seed: int = 42):
    rng = np.random.default_rng(seed)
    X = rng.standard_normal((N, K))
    B = rng.standard_normal((K, M))
    Y = X @ B + 0.1 * rng.standard_normal((N, M))
    return X, Y


@pytest.mark.parametrize("n_components", [1, 2, 3, 4])
def test_transform_has_one_column_per_component(n_components):
    X, Y = load_data()
    pls = NIPALS(n_components=n_components)
    pls.configure(X, Y)
    assert pls.transform(X).shape == (X.shape[0], n_components)


def test_collinear_data_is_recovered_exactly():
    """A rank one relationship is captured completely by one component."""
    X = np.array([[1, 2], [2, 4], [3, 6], [4, 8]], dtype=float)
    y = np.array([[3], [6], [9], [12]], dtype=float)

    pls = NIPALS(
        n_components=1,
        preprocessing=PreprocessingKind.STANDARDIZE,
        deflation_mode=DeflationMode.REGRESSION,
    )
    pls.configure(X, y)

    assert_allclose(pls.predict(X), y, rtol=0, atol=1e-6)


def test_exhausted_residual_stops_extraction_early():
    X = np.array([[1, 2], [2, 4], [3, 6], [4, 8]], dtype=float)
    y = np.array([[3], [6], [9], [12]], dtype=float)

    pls = NIPALS(n_components=3, preprocessing="standardize")
    with pytest.warns(UserWarning, match="Y residual is constant"):
        pls.configure(X, y)

    assert pls.max_stable_components == 1
    assert pls.model.iterations == (1,)
    for name in ["T", "U", "P", "Q", "W", "C"]:
        matrix = pls.get_matrix(name)
        assert matrix.shape[1] == 3
        assert_allclose(matrix[:, 1:], 0)
    T = pls.transform(X)
    assert T.shape == (4, 3)
    assert_allclose(T[:, 1:], 0, atol=1e-12)
    assert_allclose(pls.predict(X), y, atol=1e-6)


def test_single_response_converges_in_one_pass():
    X, Y = load_data(M=1)

    pls_1 = NIPALS(n_components=3, max_iter=1, tol=1e-12)
    pls_500 = NIPALS(n_components=3, max_iter=500, tol=1e-12)
    pls_1.configure(X, Y)
    pls_500.configure(X, Y)

    assert pls_1.model.iterations == (1, 1, 1)
    assert pls_500.model.iterations == (1, 1, 1)
    for name in pls_1.get_matrix_names():
        assert_allclose(pls_1.get_matrix(name), pls_500.get_matrix(name))
    assert_allclose(pls_1.predict(X), pls_500.predict(X))


def test_multi_response_iterates():
    X, Y = load_data(M=3)
    pls = NIPALS(n_components=2, tol=1e-12)
    pls.configure(X, Y)
    assert any(passes > 1 for passes in pls.model.iterations)


def test_deflation_modes_differ_for_multiple_responses():
    X, Y = load_data(M=3)

    canonical = NIPALS(n_components=2, deflation_mode=DeflationMode.CANONICAL)
    regression = NIPALS(n_components=2, deflation_mode=DeflationMode.REGRESSION)
    canonical.configure(X, Y)
    regression.configure(X, Y)

    assert not np.allclose(canonical.get_matrix("Q"), regression.get_matrix("Q"))


def test_matches_scikit_learn_pls_regression():
    from sklearn.cross_decomposition import PLSRegression

    X, Y = load_data(M=1)
    pls = NIPALS(n_components=3)
    pls.configure(X, Y)

    sk_pls = PLSRegression(n_components=3, scale=True)
    sk_pls.fit(X, Y)

    assert_allclose(
        pls.predict(X), sk_pls.predict(X).reshape(-1, 1), rtol=1e-7, atol=1e-8
    )


def test_stop_before_configure_raises_stopped():
    X, Y = load_data(M=3, N=200, K=30)
    pls = NIPALS(n_components=5)
    pls.stop()

    assert pls.is_stopped()
    with pytest.raises(StoppedError):
        pls.configure(X, Y)
    assert not pls.is_configured()
    with pytest.raises(UnconfiguredAlgorithmError):
        pls.predict(X)


class StopDuringInnerLoop(NIPALS):
    """Requests a stop on the second pass of the first inner loop."""

    checks = 0

    def _check_stopped(self):
        self.checks += 1
        if self.checks == 3:
            self.stop()
        super()._check_stopped()


def test_stop_during_inner_loop_raises_stopped():
    X, Y = load_data(M=3)
    pls = StopDuringInnerLoop(n_components=2, tol=1e-12)

    with pytest.raises(StoppedError):
        pls.configure(X, Y)

    # One check per component plus one per inner pass.
    assert pls.checks == 3
    assert not pls.is_configured()
    assert pls.model is None


def test_constant_first_response_column():
    X, y = load_data(M=1, N=20)
    Y = np.hstack([np.ones((20, 1)), y])

    pls = NIPALS(n_components=2)
    pls.configure(X, Y)
    single = NIPALS(n_components=2)
    single.configure(X, y)

    Y_pred = pls.predict(X)
    assert np.all(np.isfinite(Y_pred))
    assert_allclose(Y_pred[:, 0], 1)
    assert_allclose(Y_pred[:, 1:], single.predict(X), rtol=1e-6, atol=1e-8)
    assert_allclose(
        np.abs(pls.transform(X)), np.abs(single.transform(X)), rtol=1e-6, atol=1e-8
    )


def test_inverse_transform_is_not_possible():
    X, Y = load_data()
    pls = NIPALS(n_components=2)
    assert pls.is_non_invertible()
    pls.configure(X, Y)
    assert pls.is_non_invertible()
    with pytest.raises(UninvertibleAlgorithmError):
        pls.inverse_transform(pls.transform(X))


def test_reset_clears_model():
    X, Y = load_data()
    pls = NIPALS(n_components=2)
    pls.configure(X, Y)
    assert pls.get_coef().shape == (X.shape[1], 1)

    pls.reset()

    assert not pls.is_configured()
    assert pls.model is None
    assert pls.get_matrix("T") is None
    assert pls.get_loadings() is None
    with pytest.raises(UnconfiguredAlgorithmError):
        pls.transform(X)


@pytest.mark.parametrize(
    "name, value",
    [
        ("n_components", 3),
        ("preprocessing", PreprocessingKind.CENTER),
        ("tol", 1e-4),
        ("max_iter", 10),
        ("norm_y_weights", True),
        ("deflation_mode", DeflationMode.CANONICAL),
    ],
)
def test_changing_parameters_resets(name, value):
    X, Y = load_data()
    pls = NIPALS(n_components=2)
    pls.configure(X, Y)

    setattr(pls, name, value)

    assert getattr(pls, name) == value
    assert not pls.is_configured()


@pytest.mark.parametrize(
    "setter, value, attribute, expected",
    [
        ("set_n_components", 0, "n_components", 5),
        ("set_n_components", -2, "n_components", 5),
        ("set_tol", -1.0, "tol", 1e-6),
        ("set_max_iter", -1, "max_iter", 500),
    ],
)
def test_invalid_parameters_are_rejected_with_warning(
    setter, value, attribute, expected
):
    pls = NIPALS()
    with pytest.warns(UserWarning):
        accepted = getattr(pls, setter)(value)
    assert not accepted
    assert getattr(pls, attribute) == expected


def test_unknown_deflation_mode_raises():
    with pytest.raises(ValueError):
        NIPALS(deflation_mode="sideways")


def test_transform_response():
    X, Y = load_data(M=3)
    pls = NIPALS(n_components=2, preprocessing="center")
    U = pls.configure_and_transform_response(X, Y)
    assert U.shape == (X.shape[0], 2)

    pls_single = NIPALS(n_components=2)
    pls_single.configure(X, Y[:, :1])
    assert pls_single.transform_response(Y[:, :1]).shape == (X.shape[0], 1)


def test_configure_and_predict_does_not_reconfigure():
    X, Y = load_data()
    pls = NIPALS(n_components=2)
    pred = pls.configure_and_predict(X, Y)
    model = pls.model

    X_other, Y_other = load_data(seed=7)
    pls.configure_and_transform(X_other, Y_other)

    assert pls.model is model
    assert_allclose(pls.predict(X), pred)


def test_configure_replaces_model():
    X, Y = load_data()
    pls = NIPALS(n_components=2)
    pls.configure(X, Y)
    model = pls.model

    pls.configure(X[:20], Y[:20])

    assert pls.model is not model
    assert pls.get_matrix("T").shape == (20, 2)


def test_matrix_names():
    X, Y = load_data(M=2)
    pls = NIPALS(n_components=2)
    pls.configure(X, Y)
    assert pls.has_loadings()
    assert pls.can_predict()
    assert pls.get_matrix("unknown") is None
    assert_allclose(pls.get_loadings(), pls.get_matrix("P"))
    assert pls.get_matrix("R").shape == (X.shape[1], 2)
    assert pls.get_matrix("B").shape == (X.shape[1], 2)


def test_cca_keeps_canonical_deflation():
    cca = CCA(n_components=2)
    with pytest.warns(UserWarning, match="CANONICAL"):
        accepted = cca.set_deflation_mode(DeflationMode.REGRESSION)
    assert not accepted
    assert cca.deflation_mode == DeflationMode.CANONICAL

    with pytest.warns(UserWarning):
        cca.deflation_mode = DeflationMode.REGRESSION
    assert cca.deflation_mode == DeflationMode.CANONICAL

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert cca.set_deflation_mode(DeflationMode.CANONICAL)


def test_cca_differs_from_canonical_nipals():
    X, Y = load_data(M=2, N=60, K=4)

    cca = CCA(n_components=2, preprocessing="center")
    nipals = NIPALS(
        n_components=2,
        preprocessing="center",
        deflation_mode=DeflationMode.CANONICAL,
    )
    cca.configure(X, Y)
    nipals.configure(X, Y)

    assert cca.get_matrix("T").shape == (60, 2)
    assert cca.predict(X).shape == (60, 2)
    assert np.all(np.isfinite(cca.get_matrix("W")))
    assert not np.allclose(
        np.abs(cca.get_matrix("W")), np.abs(nipals.get_matrix("W"))
    )


def test_cca_weights_have_unit_length():
    X, Y = load_data(M=2, N=60, K=4)
    cca = CCA(n_components=2, norm_y_weights=True)
    cca.configure(X, Y)
    assert_allclose(np.linalg.norm(cca.get_matrix("W"), axis=0), 1)
    assert_allclose(np.linalg.norm(cca.get_matrix("C"), axis=0), 1)
