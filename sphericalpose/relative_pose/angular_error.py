"""Angular residual of a bearing correspondence under an essential matrix.

Authors: Auto-generated for spherical SfM
"""

import numpy as np

from sphericalpose.robust_estimation.solver_base import ErrorMetricBase

# Below this norm E @ x1 is treated as zero: x1 is the epipole of camera 1.
EPIPOLE_NORM_TOL = 1e-12


class AngularError(ErrorMetricBase):
    """Angle between x2 and the epipolar plane predicted from x1, in [0, π/2].

    E @ x1 is the normal of the epipolar plane in camera 2, so the arcsine of
    the normalized dot product with x2 is the angle between x2 and that plane.
    Thresholds compared against this metric must be in radians.

    When x1 is the epipole, E @ x1 vanishes and x2^T E x1 = 0 holds for every
    x2; the error is then 0.
    """

    def error(self, model: np.ndarray, x1: np.ndarray, x2: np.ndarray) -> float:
        Em1 = model @ x1
        norm_Em1 = np.linalg.norm(Em1)
        if norm_Em1 <= EPIPOLE_NORM_TOL * np.linalg.norm(model) * np.linalg.norm(x1):
            return 0.0
        Em1 = Em1 / norm_Em1
        cos_val = np.dot(x2, Em1) / (np.linalg.norm(x2) * np.linalg.norm(Em1))
        return float(np.abs(np.arcsin(np.clip(cos_val, -1.0, 1.0))))

    def errors(self, model: np.ndarray, x1: np.ndarray, x2: np.ndarray) -> np.ndarray:
        Em1 = x1 @ model.T
        norms = np.linalg.norm(Em1, axis=1)
        at_epipole = norms <= EPIPOLE_NORM_TOL * np.linalg.norm(model) * np.linalg.norm(x1, axis=1)
        Em1 = Em1 / np.where(at_epipole, 1.0, norms)[:, np.newaxis]
        cos_val = np.sum(x2 * Em1, axis=1) / np.linalg.norm(x2, axis=1)
        errors = np.abs(np.arcsin(np.clip(cos_val, -1.0, 1.0)))
        errors[at_epipole] = 0.0
        return errors
