"""
Evaluator module - statistics between reference and predicted values

This module provides:
- regression_stats(actual, predicted): r, r², RMSE, slope and offset
- q2(actual, predicted_cv): cross-validated predictive power
- validation_report(reference, predicted): external validation statistics
  (bias, SEP, RPD, significance of the bias)

Every statistic is clamped to a documented fallback instead of returning
NaN or infinity, so result objects are always JSON-serializable.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

import numpy as np
from scipy import stats

from nirscal.core.exceptions import DataValidationError, InsufficientSamplesError
from nirscal.core.logging import get_logger

logger = get_logger(__name__)

# Fallbacks used when a statistic is undefined or non-finite.
FALLBACKS = {
    'r': 0.0,
    'r2': 0.0,
    'rmse': 0.0,
    'slope': 1.0,
    'offset': 0.0,
}


def _finite(value: float, fallback: float) -> float:
    value = float(value)
    return value if np.isfinite(value) else fallback


def _paired(actual, predicted) -> tuple[np.ndarray, np.ndarray]:
    actual = np.asarray(actual, dtype=np.float64).ravel()
    predicted = np.asarray(predicted, dtype=np.float64).ravel()
    if len(actual) != len(predicted):
        raise DataValidationError(
            f"Length mismatch: actual({len(actual)}) vs predicted({len(predicted)})"
        )
    return actual, predicted


@dataclass(frozen=True)
class RegressionStats:
    """Agreement between actual and predicted values.

    Attributes:
        r: Pearson correlation coefficient.
        r2: Squared correlation.
        rmse: Root mean squared residual.
        slope: Slope of predicted = slope * actual + offset.
        offset: Offset of the same fit.
    """

    r: float
    r2: float
    rmse: float
    slope: float
    offset: float

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


def regression_stats(actual, predicted) -> RegressionStats:
    """Compute r, r², RMSE, slope and offset.

    Non-finite predictions are counted as 0. Fallbacks: r = r2 = rmse =
    offset = 0 and slope = 1 whenever the statistic is undefined (e.g. zero
    variance) or not finite.

    Args:
        actual: Reference values.
        predicted: Predicted values, same length.

    Returns:
        RegressionStats: The statistics.
    """
    actual, predicted = _paired(actual, predicted)
    n = len(actual)
    if n == 0:
        return RegressionStats(**FALLBACKS)

    predicted = np.where(np.isfinite(predicted), predicted, 0.0)
    with np.errstate(all="ignore"):
        residuals = actual - predicted
        rmse = np.sqrt(np.mean(residuals ** 2))

        da = actual - actual.mean()
        dp = predicted - predicted.mean()
        saa = 0.0 if np.ptp(actual) == 0 else np.sum(da ** 2)
        spp = 0.0 if np.ptp(predicted) == 0 else np.sum(dp ** 2)
        sap = np.sum(da * dp)

        denominator = np.sqrt(saa * spp)
        r = 0.0 if (denominator == 0 or not np.isfinite(denominator)) else sap / denominator
        if saa == 0:
            slope, offset = 1.0, 0.0
        else:
            slope = sap / saa
            offset = predicted.mean() - slope * actual.mean()

    r = _finite(r, FALLBACKS['r'])
    return RegressionStats(
        r=r,
        r2=_finite(r * r, FALLBACKS['r2']),
        rmse=_finite(rmse, FALLBACKS['rmse']),
        slope=_finite(slope, FALLBACKS['slope']),
        offset=_finite(offset, FALLBACKS['offset']),
    )


def rmse(actual, predicted) -> float:
    """Root mean squared error (0.0 when undefined)."""
    return regression_stats(actual, predicted).rmse


def q2(actual, predicted_cv, ss_floor: float = 1e-9) -> float:
    """Cross-validated coefficient of determination, 1 - PRESS / SS.

    Args:
        actual: Reference values.
        predicted_cv: Out-of-fold predictions.
        ss_floor: Total sum of squares below which 0.0 is returned.

    Returns:
        float: Q², 0.0 when undefined.
    """
    actual, predicted_cv = _paired(actual, predicted_cv)
    if len(actual) == 0:
        return 0.0
    with np.errstate(all="ignore"):
        press = np.sum((actual - predicted_cv) ** 2)
        ss = np.sum((actual - actual.mean()) ** 2)
        if not ss > ss_floor:
            return 0.0
        return _finite(1.0 - press / ss, 0.0)


@dataclass(frozen=True)
class ValidationReport:
    """External validation of predictions against laboratory references.

    Attributes:
        n: Number of pairs.
        r2: Squared correlation.
        bias: Mean of predicted - reference.
        sep: Standard error of prediction, sqrt(sum(diff²) / (n - 1)).
        rpd: Ratio of the reference standard deviation to SEP (0 if SEP is 0).
        slope: Slope of predicted vs reference.
        intercept: Intercept of predicted vs reference.
        p_value: Two-sided p-value of the bias (normal approximation).
        mean_reference: Mean reference value.
        mean_predicted: Mean predicted value.
    """

    n: int
    r2: float
    bias: float
    sep: float
    rpd: float
    slope: float
    intercept: float
    p_value: float
    mean_reference: float
    mean_predicted: float

    @property
    def bias_significant(self) -> bool:
        """Whether the bias is significant at the 5% level."""
        return self.p_value < 0.05

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


def validation_report(reference, predicted) -> ValidationReport:
    """Compare predictions with laboratory reference values.

    Args:
        reference: Laboratory reference values.
        predicted: Predictions for the same samples.

    Returns:
        ValidationReport: Bias, SEP, RPD and related statistics.

    Raises:
        InsufficientSamplesError: If fewer than 2 pairs are given.
    """
    reference, predicted = _paired(reference, predicted)
    n = len(reference)
    if n < 2:
        raise InsufficientSamplesError(n, 2)

    with np.errstate(all="ignore"):
        diffs = predicted - reference
        bias = diffs.mean()
        sep = np.sqrt(np.sum(diffs ** 2) / (n - 1))
        sd_reference = reference.std(ddof=1)
        rpd = sd_reference / sep if sep > 0 else 0.0

        dr = reference - reference.mean()
        dp = predicted - predicted.mean()
        srr = np.sum(dr ** 2)
        slope = np.sum(dr * dp) / srr if srr != 0 else 0.0
        intercept = predicted.mean() - slope * reference.mean()
        denominator = np.sqrt(srr * np.sum(dp ** 2))
        r = np.sum(dr * dp) / denominator if denominator > 0 else 0.0

        std_diff = diffs.std(ddof=1)
        if std_diff > 0:
            z = abs(bias / (std_diff / np.sqrt(n)))
            p_value = 2.0 * stats.norm.sf(z)
        else:
            p_value = 1.0 if bias == 0 else 0.0

    report = ValidationReport(
        n=n,
        r2=_finite(r * r, 0.0),
        bias=_finite(bias, 0.0),
        sep=_finite(sep, 0.0),
        rpd=_finite(rpd, 0.0),
        slope=_finite(slope, 0.0),
        intercept=_finite(intercept, 0.0),
        p_value=_finite(p_value, 1.0),
        mean_reference=_finite(reference.mean(), 0.0),
        mean_predicted=_finite(predicted.mean(), 0.0),
    )
    logger.debug(
        f"Validation on {n} samples: bias={report.bias:.4f}, SEP={report.sep:.4f}, RPD={report.rpd:.2f}"
    )
    return report
