"""
Utility functions for the nirscal package.

Numerical helpers shared by several modules:
- Dense linear algebra → nirscal.utils.linalg
"""

from .linalg import (
    as_matrix,
    center,
    column_means,
    inverse,
    matmul,
    solve,
    transpose,
    vector_norm,
)

__all__ = [
    'as_matrix',
    'center',
    'column_means',
    'inverse',
    'matmul',
    'solve',
    'transpose',
    'vector_norm',
]
