"""Dense linear algebra helpers shared by preprocessing and regression.

Every function returns a newly owned array: inputs are never modified and no
view of an input escapes, so callers can mutate results freely.
"""

from __future__ import annotations

import numpy as np

from nirscal.core.exceptions import NumericalInstabilityError


def as_matrix(a) -> np.ndarray:
    """Copy ``a`` into a 2-D float64 array (1-D input becomes a column)."""
    arr = np.array(a, dtype=np.float64, copy=True)
    if arr.ndim == 1:
        arr = arr.reshape(-1, 1)
    if arr.ndim != 2:
        raise ValueError(f"Expected a 1-D or 2-D array, got {arr.ndim} dimensions")
    return arr


def transpose(a: np.ndarray) -> np.ndarray:
    """Return the transpose of ``a`` as a contiguous copy."""
    return np.ascontiguousarray(np.asarray(a, dtype=np.float64).T)


def matmul(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Matrix product ``a @ b``.

    Raises:
        ValueError: If inner dimensions do not match.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape[-1] != b.shape[0]:
        raise ValueError(f"Shape mismatch for matmul: {a.shape} @ {b.shape}")
    return np.array(a @ b)


def solve(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Solve ``a @ x = b`` for ``x``.

    Args:
        a: Square coefficient matrix (n, n).
        b: Right-hand side (n,) or (n, k).

    Returns:
        numpy.ndarray: Solution with the shape of ``b``.

    Raises:
        NumericalInstabilityError: If ``a`` is singular or the solution is not finite.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    try:
        x = np.linalg.solve(a, b)
    except np.linalg.LinAlgError as exc:
        raise NumericalInstabilityError(f"Singular system of size {a.shape}: {exc}") from exc
    if not np.all(np.isfinite(x)):
        raise NumericalInstabilityError(f"Non-finite solution for system of size {a.shape}")
    return x


def inverse(a: np.ndarray) -> np.ndarray:
    """Inverse of a square matrix, via :func:`solve` against the identity."""
    a = np.asarray(a, dtype=np.float64)
    return solve(a, np.eye(a.shape[0]))


def vector_norm(v: np.ndarray) -> float:
    """Euclidean norm of a vector (flattened)."""
    return float(np.linalg.norm(np.asarray(v, dtype=np.float64).ravel()))


def column_means(a: np.ndarray) -> np.ndarray:
    """Mean of each column of a 2-D array."""
    return np.asarray(a, dtype=np.float64).mean(axis=0)


def center(a: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Subtract column means.

    Returns:
        tuple: (centered copy, column means)
    """
    a = np.asarray(a, dtype=np.float64)
    means = column_means(a)
    return a - means, means
