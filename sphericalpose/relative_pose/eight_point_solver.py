"""Linear eight-point solver for the essential matrix of two spherical cameras.

Works directly on unit bearing vectors, so no intrinsics are involved and
correspondences anywhere on the sphere (including behind the camera) are
usable. See Hartley & Zisserman, Result 11.1, and Moulon's thesis, ch. 4.4.2.

Authors: Auto-generated for spherical SfM
"""

from typing import List

import numpy as np

import sphericalpose.utils.logger as logger_utils
from sphericalpose.robust_estimation.solver_base import SolverBase

logger = logger_utils.get_logger()

MINIMUM_NUM_SAMPLES = 8
MAX_NUM_MODELS = 1
BEARING_DIM = 3


def encode_epipolar_equation(x1: np.ndarray, x2: np.ndarray) -> np.ndarray:
    """Build the linear system encoding x2^T E x1 = 0 for every correspondence.

    Args:
        x1: (N, 3) bearings in the first camera.
        x2: (N, 3) bearings in the second camera.

    Returns:
        (N, 9) matrix whose i-th row holds x2[i, r] * x1[i, c] at column 3r + c,
        i.e. the coefficients of the row-major entries of E.
    """
    return (x2[:, :, np.newaxis] * x1[:, np.newaxis, :]).reshape(-1, 9)


def nullspace(A: np.ndarray) -> np.ndarray:
    """Unit vector spanning the (approximate) right null space of A.

    Returns the right singular vector associated with the smallest singular
    value. Systems with fewer rows than columns are padded with zero rows so
    that a full V is always available.
    """
    num_rows, num_cols = A.shape
    if num_rows < num_cols:
        A = np.vstack([A, np.zeros((num_cols - num_rows, num_cols))])
    _, _, Vt = np.linalg.svd(A)
    return Vt[-1]


def project_to_essential_manifold(E: np.ndarray) -> np.ndarray:
    """Closest matrix to E (Frobenius norm) with singular values (s, s, 0)."""
    U, d, Vt = np.linalg.svd(E)
    s = (d[0] + d[1]) / 2.0
    return U @ np.diag([s, s, 0.0]) @ Vt


class EightPointRelativePoseSolver(SolverBase):
    """Eight-point algorithm on bearing vectors, returning one essential matrix."""

    @property
    def minimum_num_samples(self) -> int:
        return MINIMUM_NUM_SAMPLES

    @property
    def max_num_models(self) -> int:
        return MAX_NUM_MODELS

    def solve(self, x1: np.ndarray, x2: np.ndarray) -> List[np.ndarray]:
        """Estimate the essential matrix i2Ei1 such that x2^T E x1 = 0.

        With exactly 8 correspondences the null vector is returned as is; with
        more, the least-squares estimate is projected onto the essential
        manifold.

        Args:
            x1: (N, 3) bearings in camera 1, N >= 8.
            x2: (N, 3) bearings in camera 2, aligned with x1.

        Returns:
            List holding a single (3, 3) essential matrix.

        Raises:
            ValueError: If the inputs are not aligned (N, 3) arrays with N >= 8.
        """
        x1 = np.asarray(x1, dtype=np.float64)
        x2 = np.asarray(x2, dtype=np.float64)
        if x1.ndim != 2 or x1.shape[1] != BEARING_DIM:
            raise ValueError(f"Expected (N, 3) bearings, got shape {x1.shape}")
        if x1.shape != x2.shape:
            raise ValueError(f"Bearing arrays must have identical shapes, got {x1.shape} and {x2.shape}")
        if x1.shape[0] < MINIMUM_NUM_SAMPLES:
            raise ValueError(f"Need at least {MINIMUM_NUM_SAMPLES} correspondences, got {x1.shape[0]}")

        A = encode_epipolar_equation(x1, x2)
        E = nullspace(A).reshape(3, 3)

        if x1.shape[0] > MINIMUM_NUM_SAMPLES:
            E = project_to_essential_manifold(E)

        logger.debug("EightPointRelativePoseSolver: solved from %d correspondences", x1.shape[0])
        return [E]
