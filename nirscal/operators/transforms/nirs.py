import math

import numpy as np
import scipy.sparse
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.utils.validation import check_is_fitted

from nirscal.utils.linalg import matmul, solve, transpose


class SkipStep(Exception):
    """Raised by a spectral kernel when its input makes the transform undefined.

    The pipeline turns it into a pass-through for that step only; it never
    reaches callers of the public API.
    """

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


def _linear_fit(x: np.ndarray, y: np.ndarray):
    """Ordinary least squares fit of ``y = slope * x + intercept``.

    Raises:
        SkipStep: If fewer than 2 points or ``x`` has no variance.
    """
    n = len(x)
    if n < 2:
        raise SkipStep(f"need at least 2 points for a linear fit, got {n}")
    x_mean = x.mean()
    y_mean = y.mean()
    sxx = np.sum((x - x_mean) ** 2)
    if not np.isfinite(sxx) or sxx == 0:
        raise SkipStep("degenerate design: zero variance on the abscissa")
    slope = np.sum((x - x_mean) * (y - y_mean)) / sxx
    intercept = y_mean - slope * x_mean
    if not (np.isfinite(slope) and np.isfinite(intercept)):
        raise SkipStep("non-finite linear fit")
    return float(slope), float(intercept)


def snv(spectrum: np.ndarray) -> np.ndarray:
    """
    Standard Normal Variate: center a spectrum on its own mean and divide by
    its own sample standard deviation (ddof=1).

    Args:
        spectrum (numpy.ndarray): 1-D spectrum.

    Returns:
        numpy.ndarray: Standardized spectrum.

    Raises:
        SkipStep: If the standard deviation is zero or undefined.
    """
    x = np.asarray(spectrum, dtype=np.float64)
    if x.size < 2:
        raise SkipStep("SNV needs at least 2 points")
    std = x.std(ddof=1)
    # roundoff leaves a constant spectrum with std ~ eps * |mean|
    tolerance = np.finfo(np.float64).eps * max(abs(x.mean()), 1.0) * np.sqrt(x.size)
    if np.ptp(x) == 0 or not std > tolerance:
        raise SkipStep("zero standard deviation")
    return (x - x.mean()) / std


def savgol_coefficients(
    window_size: int,
    polynomial_order: int,
    derivative: int = 0,
    delta: float = 1.0,
) -> np.ndarray:
    """
    Compute Savitzky-Golay filter coefficients by least squares.

    Solves the normal equations ``(AᵀA) C = Aᵀ`` for the local polynomial
    design matrix ``A[i, j] = (i - half)^j``. Row ``derivative`` of ``C`` gives
    the polynomial coefficient of that order; it is scaled by
    ``derivative! / delta**derivative`` to yield the derivative value.

    Args:
        window_size (int): Odd window width.
        polynomial_order (int): Order of the local polynomial.
        derivative (int): Derivative order (0 = smoothing).
        delta (float): Sampling distance.

    Returns:
        numpy.ndarray: Coefficients of length ``window_size`` to be dotted with
        the window ``x[i - half : i + half + 1]``.
    """
    half = window_size // 2
    positions = np.arange(-half, half + 1, dtype=np.float64)
    design = np.vander(positions, polynomial_order + 1, increasing=True)
    design_t = transpose(design)
    coeffs = solve(matmul(design_t, design), design_t)
    return coeffs[derivative] * math.factorial(derivative) / (delta ** derivative)


def savgol(
    spectrum: np.ndarray,
    window_size: int = 5,
    polynomial_order: int = 2,
    derivative: int = 1,
    delta: float = 1.0,
    mirrored: bool = False,
) -> np.ndarray:
    """
    Savitzky–Golay smoothing (derivative=0) or differentiation of one spectrum.

    The first and last ``window_size // 2`` points are returned unmodified.

    Args:
        spectrum (numpy.ndarray): 1-D spectrum.
        window_size (int): Odd window width, >= 3 and > polynomial_order.
        polynomial_order (int): Order of the local polynomial.
        derivative (int): Derivative order, <= polynomial_order.
        delta (float): Sampling distance of the data.
        mirrored (bool): Apply the kernel reversed (convolution order). Odd
            derivatives then come out with the opposite sign.

    Returns:
        numpy.ndarray: Filtered spectrum, same length as input.

    Raises:
        SkipStep: If the window does not fit in the spectrum.
    """
    x = np.asarray(spectrum, dtype=np.float64)
    if window_size > x.size:
        raise SkipStep(f"window_size {window_size} exceeds spectrum length {x.size}")
    half = window_size // 2
    coeffs = savgol_coefficients(window_size, polynomial_order, derivative, delta)
    if mirrored:
        coeffs = coeffs[::-1]
    result = x.copy()
    result[half:x.size - half] = np.correlate(x, coeffs, mode="valid")
    return result


def detrend(spectrum: np.ndarray) -> np.ndarray:
    """
    Remove the least-squares line of intensity vs. index position.

    Raises:
        SkipStep: If the linear fit is degenerate.
    """
    x = np.asarray(spectrum, dtype=np.float64)
    index = np.arange(x.size, dtype=np.float64)
    slope, intercept = _linear_fit(index, x)
    return x - (slope * index + intercept)


def msc(spectrum: np.ndarray, reference: np.ndarray, floor: float = 1e-12) -> np.ndarray:
    """
    Multiplicative scatter correction of one spectrum against a reference.

    Fits ``spectrum = a + b * reference`` and returns ``(spectrum - a) / b``.

    Args:
        spectrum (numpy.ndarray): 1-D spectrum.
        reference (numpy.ndarray): Reference spectrum of the same length.
        floor (float): Minimum absolute slope accepted.

    Raises:
        SkipStep: If the reference is missing, has a different length, or the
            fit is degenerate.
    """
    x = np.asarray(spectrum, dtype=np.float64)
    if reference is None:
        raise SkipStep("no reference spectrum")
    ref = np.asarray(reference, dtype=np.float64)
    if ref.shape != x.shape:
        raise SkipStep(f"reference length {ref.size} does not match spectrum length {x.size}")
    b, a = _linear_fit(ref, x)
    if abs(b) < floor:
        raise SkipStep("scatter slope too close to zero")
    return (x - a) / b


def _apply_rows(X, func, **kwargs) -> np.ndarray:
    """Apply a 1-D kernel to every row; rows the kernel skips are left unchanged."""
    X = np.array(X, dtype=np.float64, copy=True)
    if X.ndim == 1:
        X = X.reshape(1, -1)
    for i in range(X.shape[0]):
        try:
            X[i] = func(X[i], **kwargs)
        except SkipStep:
            pass
    return X


class SavitzkyGolay(TransformerMixin, BaseEstimator):
    """
    Savitzky-Golay smoothing / derivative applied to each spectrum (row).

    Parameters
    ----------
    window_size : int, default=5
        Odd window width.
    polynomial_order : int, default=2
        Order of the local polynomial.
    derivative : int, default=1
        Derivative order (0 = smoothing).
    delta : float, default=1.0
        Sampling distance of the data.
    copy : bool, default=True
        Whether to copy the input data.
    """

    _stateless = True

    def __init__(
        self,
        window_size: int = 5,
        polynomial_order: int = 2,
        derivative: int = 1,
        delta: float = 1.0,
        *,
        copy: bool = True
    ):
        self.window_size = window_size
        self.polynomial_order = polynomial_order
        self.derivative = derivative
        self.delta = delta
        self.copy = copy

    def fit(self, X, y=None):
        """
        Verify the X data compliance with the Savitzky-Golay filter.

        Raises
        ------
        ValueError
            If the input X is a sparse matrix.
        """
        if scipy.sparse.issparse(X):
            raise ValueError("SavitzkyGolay does not support scipy.sparse input")
        return self

    def transform(self, X, copy=None):
        if scipy.sparse.issparse(X):
            raise ValueError("Sparse matrices not supported!")
        from nirscal.operators.transforms.steps import SavitzkyGolayStep

        step = SavitzkyGolayStep(
            window_size=self.window_size,
            polynomial_order=self.polynomial_order,
            derivative=self.derivative,
            delta=self.delta,
        )
        if not step.is_valid:
            return np.array(X, dtype=np.float64, copy=True)
        return _apply_rows(
            X,
            savgol,
            window_size=step.window_size,
            polynomial_order=step.polynomial_order,
            derivative=step.derivative,
            delta=step.delta,
        )

    def _more_tags(self):
        return {"allow_nan": False}


class StandardNormalVariate(TransformerMixin, BaseEstimator):
    """Row-wise Standard Normal Variate."""

    _stateless = True

    def __init__(self, *, copy: bool = True):
        self.copy = copy

    def fit(self, X, y=None):
        if scipy.sparse.issparse(X):
            raise ValueError("StandardNormalVariate does not support scipy.sparse input")
        return self

    def transform(self, X, copy=None):
        if scipy.sparse.issparse(X):
            raise ValueError("Sparse matrices not supported!")
        return _apply_rows(X, snv)

    def _more_tags(self):
        return {"allow_nan": False}


class Detrend(TransformerMixin, BaseEstimator):
    """Row-wise linear detrending against the index position."""

    _stateless = True

    def __init__(self, *, copy: bool = True):
        self.copy = copy

    def fit(self, X, y=None):
        if scipy.sparse.issparse(X):
            raise ValueError("Detrend does not support scipy.sparse input")
        return self

    def transform(self, X, copy=None):
        if scipy.sparse.issparse(X):
            raise ValueError("Sparse matrices not supported!")
        return _apply_rows(X, detrend)

    def _more_tags(self):
        return {"allow_nan": False}


class MultiplicativeScatterCorrection(TransformerMixin, BaseEstimator):
    """
    Multiplicative Scatter Correction against the mean training spectrum.

    ``fit`` stores the mean spectrum as ``reference_``; ``transform`` corrects
    each row against it.
    """

    def __init__(self, *, copy: bool = True):
        self.copy = copy

    def _reset(self):
        if hasattr(self, "reference_"):
            del self.reference_

    def fit(self, X, y=None):
        if scipy.sparse.issparse(X):
            raise TypeError("MultiplicativeScatterCorrection does not support scipy.sparse input")
        self._reset()
        X = np.asarray(X, dtype=np.float64)
        if X.ndim == 1:
            X = X.reshape(1, -1)
        self.reference_ = X.mean(axis=0)
        return self

    def transform(self, X):
        check_is_fitted(self)
        X = np.asarray(X, dtype=np.float64)
        n_features = X.shape[-1]
        if n_features != len(self.reference_):
            raise ValueError(
                "Transform cannot be applied with provided X. Bad number of columns."
            )
        return _apply_rows(X, msc, reference=self.reference_)

    def _more_tags(self):
        return {"allow_nan": False}
