"""Essential matrix kernel for a pair of spherical cameras.

Authors: Auto-generated for spherical SfM
"""

import numpy as np

from sphericalpose.relative_pose.angular_error import AngularError
from sphericalpose.relative_pose.eight_point_solver import BEARING_DIM, EightPointRelativePoseSolver
from sphericalpose.robust_estimation.point_fitting_kernel import PointFittingKernel


class SphericalEssentialKernel(PointFittingKernel):
    """Eight-point solver and angular error over two sets of unit bearings.

    Residuals are angles in radians, so the consensus threshold of the robust
    estimator driving this kernel must be angular as well.
    """

    def __init__(self, x1: np.ndarray, x2: np.ndarray) -> None:
        """Initialize the kernel.

        Args:
            x1: (N, 3) bearings in camera 1.
            x2: (N, 3) bearings in camera 2, aligned with x1.

        Raises:
            ValueError: If the arrays are not aligned (N, 3) arrays with N >= 8.
        """
        x1 = np.asarray(x1, dtype=np.float64)
        x2 = np.asarray(x2, dtype=np.float64)
        if x1.ndim != 2 or x1.shape[1] != BEARING_DIM:
            raise ValueError(f"Expected (N, 3) bearings, got shape {x1.shape}")
        super().__init__(x1, x2, EightPointRelativePoseSolver(), AngularError())
        if self.num_samples() < self.minimum_num_samples():
            raise ValueError(
                f"Need at least {self.minimum_num_samples()} correspondences, got {self.num_samples()}"
            )
