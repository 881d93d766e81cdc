"""SIMPLS partial least squares regression for nirscal.

Implements a deflation-based SIMPLS variant (de Jong, 1993) for a single
response. The functional API (:func:`train`, :func:`predict`) is what the
calibration engine uses; :class:`SIMPLS` wraps it as a scikit-learn
regressor for use in sklearn pipelines.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from sklearn.base import BaseEstimator, RegressorMixin
from sklearn.utils.validation import check_is_fitted

from nirscal.core.exceptions import (
    ConfigurationError,
    DataValidationError,
    InsufficientSamplesError,
    NumericalInstabilityError,
)
from nirscal.core.logging import get_logger
from nirscal.utils.linalg import as_matrix, center, matmul, solve, transpose, vector_norm

logger = get_logger(__name__)

MIN_TRAINING_SAMPLES = 2


@dataclass(frozen=True)
class TrainedModel:
    """Linear model produced by one training run.

    Attributes:
        intercept: Regression intercept (B0) in original units.
        coefficients: Coefficient vector aligned with the spectral axis (M,).
        x_mean: Column means of the training spectra (M,).
        y_mean: Mean of the training reference values.
        n_components: Number of latent components actually used.
        weights: SIMPLS weight matrix R (M, A); scores are ``(X - x_mean) @ weights``.
        loadings: X loadings P (M, A).
        scores: Training scores T (N, A).
    """

    intercept: float
    coefficients: np.ndarray
    x_mean: np.ndarray
    y_mean: float
    n_components: int
    weights: np.ndarray
    loadings: np.ndarray
    scores: np.ndarray

    def __post_init__(self) -> None:
        for name in ("coefficients", "x_mean", "weights", "loadings", "scores"):
            array = np.array(getattr(self, name), dtype=np.float64, copy=True)
            array.setflags(write=False)
            object.__setattr__(self, name, array)

    @property
    def n_features(self) -> int:
        return len(self.coefficients)

    def project(self, X) -> np.ndarray:
        """Latent scores of new spectra (n_samples, n_components)."""
        X = np.atleast_2d(np.asarray(X, dtype=np.float64))
        return matmul(X - self.x_mean, self.weights)


def max_components(n_samples: int, n_features: int) -> int:
    """Largest latent component count a calibration set supports."""
    return max(0, min(n_samples - 1, n_features))


def train(
    X,
    y,
    components: int,
    *,
    ridge: float = 1e-8,
    norm_floor: float = 1e-12,
) -> TrainedModel:
    """Fit a SIMPLS model.

    The requested component count is clamped to ``min(components, N - 1, M)``;
    the value actually used is reported as ``TrainedModel.n_components``.

    Args:
        X: Spectral matrix (N, M).
        y: Reference values (N,).
        components: Requested number of latent components (>= 1).
        ridge: Diagonal term added to TᵀT for numerical stability.
        norm_floor: Norms below this are treated as 1 during normalization.

    Returns:
        TrainedModel: The fitted model.

    Raises:
        ConfigurationError: If ``components`` < 1.
        DataValidationError: If X and y disagree in length.
        InsufficientSamplesError: If N < 2.
        NumericalInstabilityError: If the fit produces non-finite coefficients.
    """
    X = as_matrix(X)
    y = np.asarray(y, dtype=np.float64).ravel()
    n_samples, n_features = X.shape
    if len(y) != n_samples:
        raise DataValidationError(
            f"X has {n_samples} rows but y has {len(y)} values"
        )
    if n_samples < MIN_TRAINING_SAMPLES:
        raise InsufficientSamplesError(n_samples, MIN_TRAINING_SAMPLES)
    if int(components) < 1:
        raise ConfigurationError(f"components must be >= 1, got {components}")

    n_comp = min(int(components), max_components(n_samples, n_features))
    if n_comp < int(components):
        logger.debug(f"Clamped latent components from {components} to {n_comp}")

    X0, x_mean = center(X)
    y_mean = float(y.mean())
    y0 = y - y_mean
    X0_t = transpose(X0)

    W = np.zeros((n_features, n_comp))
    P = np.zeros((n_features, n_comp))
    V = np.zeros((n_features, n_comp))
    S = matmul(X0_t, y0)

    for a in range(n_comp):
        r = S.copy()
        t = matmul(X0, r)
        t_norm = vector_norm(t)
        if t_norm < norm_floor:
            t_norm = 1.0
        t /= t_norm
        r /= t_norm

        p = matmul(X0_t, t)
        v = p.copy()
        for j in range(a):
            v -= V[:, j] * float(V[:, j] @ p)
        v_norm = vector_norm(v)
        if v_norm < norm_floor:
            v_norm = 1.0
        v /= v_norm

        W[:, a] = r
        P[:, a] = p
        V[:, a] = v
        S = S - v * float(v @ S)

    T = matmul(X0, W)
    TT = matmul(transpose(T), T) + ridge * np.eye(n_comp)
    C = solve(TT, matmul(transpose(T), y0))
    coefficients = matmul(W, C)
    intercept = y_mean - float(x_mean @ coefficients)

    if not (np.all(np.isfinite(coefficients)) and np.isfinite(intercept)):
        raise NumericalInstabilityError("SIMPLS produced non-finite coefficients")

    return TrainedModel(
        intercept=intercept,
        coefficients=coefficients,
        x_mean=x_mean,
        y_mean=y_mean,
        n_components=n_comp,
        weights=W,
        loadings=P,
        scores=T,
    )


def predict(model: TrainedModel, spectrum) -> float:
    """Predict the reference value of one preprocessed spectrum.

    A non-finite result is replaced by 0.0 instead of being propagated.

    Raises:
        ValueError: If the spectrum length differs from the model's.
    """
    x = np.asarray(spectrum, dtype=np.float64).ravel()
    if x.size != model.n_features:
        raise ValueError(
            f"Spectrum has {x.size} points but the model expects {model.n_features}"
        )
    with np.errstate(all="ignore"):
        value = model.intercept + float(x @ model.coefficients)
    if not np.isfinite(value):
        logger.debug("Non-finite prediction replaced by 0.0")
        return 0.0
    return value


def predict_many(model: TrainedModel, X) -> np.ndarray:
    """Row-wise :func:`predict`."""
    X = np.atleast_2d(np.asarray(X, dtype=np.float64))
    return np.array([predict(model, row) for row in X])


class SIMPLS(RegressorMixin, BaseEstimator):
    """SIMPLS regressor (single response).

    Parameters
    ----------
    n_components : int, default=5
        Number of latent components. Clamped to ``min(n_samples - 1, n_features)``.
    ridge : float, default=1e-8
        Diagonal stabilizer of the latent regression.

    Attributes
    ----------
    n_components_ : int
        Components actually used.
    coef_ : ndarray of shape (n_features,)
    intercept_ : float
    model_ : TrainedModel
    """

    def __init__(self, n_components: int = 5, ridge: float = 1e-8):
        self.n_components = n_components
        self.ridge = ridge

    def fit(self, X, y):
        X = np.asarray(X)
        y = np.asarray(y)

        self.n_features_in_ = X.shape[1]
        self.model_ = train(X, y, self.n_components, ridge=self.ridge)
        self.n_components_ = self.model_.n_components
        self.coef_ = np.array(self.model_.coefficients)
        self.intercept_ = self.model_.intercept
        return self

    def predict(self, X):
        check_is_fitted(self)
        return predict_many(self.model_, X)

    def transform(self, X):
        check_is_fitted(self)
        return self.model_.project(X)
