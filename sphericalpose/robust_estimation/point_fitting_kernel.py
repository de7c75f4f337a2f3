"""Kernel binding a solver, an error metric and a fixed set of correspondences.

The kernel is what a robust estimator (RANSAC, AC-RANSAC, ...) drives: it asks
for models fitted to index samples and for per-point residuals of a model.
The kernel only does index bookkeeping; the arrays it holds are read, never
copied or written, so a single instance can be shared across worker threads.

Authors: Auto-generated for spherical SfM
"""

from typing import List, Sequence

import numpy as np

import sphericalpose.utils.logger as logger_utils
from sphericalpose.robust_estimation.solver_base import ErrorMetricBase, SolverBase

logger = logger_utils.get_logger()


class PointFittingKernel:
    """Generic fit/residual kernel over index-aligned point correspondences."""

    def __init__(
        self,
        x1: np.ndarray,
        x2: np.ndarray,
        solver: SolverBase,
        error_metric: ErrorMetricBase,
    ) -> None:
        """Initialize the kernel.

        Args:
            x1: (N, D) observations in the first view.
            x2: (N, D) observations in the second view, aligned with x1.
            solver: Minimal-sample solver producing candidate models.
            error_metric: Residual used to score a model on one correspondence.

        Raises:
            ValueError: If x1 and x2 are not 2D arrays of identical shape.
        """
        if x1.ndim != 2 or x1.shape != x2.shape:
            raise ValueError(f"Correspondences must be aligned 2D arrays, got {x1.shape} and {x2.shape}")
        self._x1 = x1
        self._x2 = x2
        self._solver = solver
        self._error_metric = error_metric

    def num_samples(self) -> int:
        """Number of correspondences held by the kernel."""
        return self._x1.shape[0]

    def minimum_num_samples(self) -> int:
        return self._solver.minimum_num_samples

    def max_models_per_fit(self) -> int:
        return self._solver.max_num_models

    def fit(self, sample_indices: Sequence[int]) -> List[np.ndarray]:
        """Fit candidate models to the correspondences selected by `sample_indices`.

        Args:
            sample_indices: Indices into the held correspondence set.

        Returns:
            Candidate models from the solver.

        Raises:
            ValueError: If too few or out-of-range indices are given.
        """
        idxs = np.asarray(sample_indices, dtype=np.intp).ravel()
        if idxs.size < self.minimum_num_samples():
            raise ValueError(f"Need at least {self.minimum_num_samples()} samples, got {idxs.size}")
        if idxs.min() < 0 or idxs.max() >= self.num_samples():
            raise ValueError(f"Sample indices must lie in [0, {self.num_samples()})")

        # Fancy indexing returns copies, the held arrays stay untouched.
        models = self._solver.solve(self._x1[idxs], self._x2[idxs])
        logger.debug("PointFittingKernel: %d model(s) from %d samples", len(models), idxs.size)
        return models

    def residual(self, model: np.ndarray, index: int) -> float:
        """Residual of correspondence `index` under `model`.

        Raises:
            ValueError: If `index` is outside [0, num_samples()).
        """
        if not 0 <= index < self.num_samples():
            raise ValueError(f"Index {index} must lie in [0, {self.num_samples()})")
        return self._error_metric.error(model, self._x1[index], self._x2[index])

    def residuals(self, model: np.ndarray) -> np.ndarray:
        """(N,) residuals of every held correspondence under `model`."""
        return self._error_metric.errors(model, self._x1, self._x2)
