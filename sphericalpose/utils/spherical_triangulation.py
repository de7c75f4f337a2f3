"""Two-view triangulation from bearing vectors for spherical cameras.

Implements DLT triangulation from a pair of 3x4 projection matrices and the
bearing vectors observed in each camera. Since a spherical camera has no
intrinsics, its projection matrix is just the world-to-camera transform.

Authors: Auto-generated for spherical SfM
"""

from typing import Optional, Tuple

import gtsam
import numpy as np

import sphericalpose.utils.logger as logger_utils

logger = logger_utils.get_logger()

DEFAULT_MAX_ANGULAR_ERROR_RAD = np.deg2rad(5.0)
DEFAULT_MIN_TRIANGULATION_ANGLE_DEG = 1.0
AT_INFINITY_TOL = 1e-12


def _check_inputs(P: np.ndarray, x: np.ndarray) -> None:
    if P.shape != (3, 4):
        raise ValueError(f"Projection matrix must be 3x4, got shape {P.shape}")
    if x.shape != (3,):
        raise ValueError(f"Bearing must have 3 components, got shape {x.shape}")


def _cross_product_rows(P: np.ndarray, x: np.ndarray) -> np.ndarray:
    """Rows of [x]_x @ P, i.e. the constraint x × (P X) = 0."""
    return np.vstack([
        -x[2] * P[1] + x[1] * P[2],
        x[2] * P[0] - x[0] * P[2],
        -x[1] * P[0] + x[0] * P[1],
    ])


def triangulate_dlt_homogeneous(P1: np.ndarray, x1: np.ndarray, P2: np.ndarray, x2: np.ndarray) -> np.ndarray:
    """Triangulate a point in homogeneous coordinates with the DLT.

    Solves
        [cross(x1, P1)] X = 0
        [cross(x2, P2)] X = 0
    for the unit-norm X minimizing the algebraic residual of the 6x4 system.

    Args:
        P1: (3, 4) projection matrix of camera 1.
        x1: (3,) bearing observed in camera 1.
        P2: (3, 4) projection matrix of camera 2.
        x2: (3,) bearing observed in camera 2.

    Returns:
        (4,) homogeneous point.

    Raises:
        ValueError: If any input has the wrong shape.
    """
    P1, P2 = np.asarray(P1, dtype=np.float64), np.asarray(P2, dtype=np.float64)
    x1, x2 = np.asarray(x1, dtype=np.float64), np.asarray(x2, dtype=np.float64)
    _check_inputs(P1, x1)
    _check_inputs(P2, x2)

    design = np.vstack([_cross_product_rows(P1, x1), _cross_product_rows(P2, x2)])
    _, _, Vt = np.linalg.svd(design)
    return Vt[-1]


def is_at_infinity(X_homogeneous: np.ndarray, tol: float = AT_INFINITY_TOL) -> bool:
    """Whether a homogeneous point has a (near) zero last coordinate."""
    return bool(abs(X_homogeneous[3]) <= tol * np.linalg.norm(X_homogeneous))


def triangulate_dlt(P1: np.ndarray, x1: np.ndarray, P2: np.ndarray, x2: np.ndarray) -> np.ndarray:
    """Triangulate a point in euclidean coordinates with the DLT.

    A point at (or near) infinity, e.g. from parallel rays, is not treated as
    an error: the division by the homogeneous coordinate is carried out
    anyway and may produce huge or non-finite values. Use
    `triangulate_dlt_homogeneous` with `is_at_infinity` to detect that case.

    Returns:
        (3,) euclidean point.
    """
    X = triangulate_dlt_homogeneous(P1, x1, P2, x2)
    with np.errstate(divide="ignore", invalid="ignore"):
        return X[:3] / X[3]


def projection_matrix_from_pose(wTc: gtsam.Pose3) -> np.ndarray:
    """3x4 projection matrix [R^T | -R^T t] of a spherical camera with pose wTc."""
    return wTc.inverse().matrix()[:3, :]


def compute_reprojection_error_bearing(
    wTc: gtsam.Pose3,
    point_world: np.ndarray,
    measured_bearing: np.ndarray,
) -> float:
    """Compute angular reprojection error for a single observation.

    Args:
        wTc: Camera pose (world-from-camera).
        point_world: (3,) 3D point in world frame.
        measured_bearing: (3,) measured bearing in camera frame.

    Returns:
        Angular error in radians.
    """
    point_cam = wTc.transformTo(np.asarray(point_world, dtype=np.float64))
    expected = point_cam / np.linalg.norm(point_cam)
    measured = measured_bearing / np.linalg.norm(measured_bearing)
    dot = np.clip(np.dot(expected, measured), -1.0, 1.0)
    return float(np.arccos(dot))


def check_cheirality(
    wTc: gtsam.Pose3,
    point_world: np.ndarray,
) -> bool:
    """Check that a 3D point is at a usable distance from a spherical camera.

    Spherical cameras see in all directions, so the only requirement is that
    the point is neither at the camera center nor at infinity.

    Args:
        wTc: Camera pose.
        point_world: (3,) 3D point.

    Returns:
        True if the point is at finite positive distance.
    """
    if not np.all(np.isfinite(point_world)):
        return False
    point_cam = wTc.transformTo(np.asarray(point_world, dtype=np.float64))
    dist = np.linalg.norm(point_cam)
    return bool(1e-6 < dist < 1e6)


def triangulate_with_validation(
    wTc1: gtsam.Pose3,
    bearing1: np.ndarray,
    wTc2: gtsam.Pose3,
    bearing2: np.ndarray,
    max_angular_error_rad: float = DEFAULT_MAX_ANGULAR_ERROR_RAD,
    min_triangulation_angle_deg: float = DEFAULT_MIN_TRIANGULATION_ANGLE_DEG,
) -> Tuple[Optional[np.ndarray], float]:
    """Triangulate and validate a 3D point from a pair of bearings.

    Args:
        wTc1: Pose of camera 1.
        bearing1: (3,) bearing in camera 1 frame.
        wTc2: Pose of camera 2.
        bearing2: (3,) bearing in camera 2 frame.
        max_angular_error_rad: Maximum mean angular reprojection error in radians.
        min_triangulation_angle_deg: Minimum angle between the two rays in degrees.

    Returns:
        Tuple of (triangulated point or None, average angular error in radians).
    """
    P1 = projection_matrix_from_pose(wTc1)
    P2 = projection_matrix_from_pose(wTc2)
    X = triangulate_dlt_homogeneous(P1, bearing1, P2, bearing2)
    if is_at_infinity(X):
        logger.debug("Triangulated point is at infinity")
        return None, float("inf")
    point = X[:3] / X[3]

    for pose in (wTc1, wTc2):
        if not check_cheirality(pose, point):
            return None, float("inf")

    errors = [
        compute_reprojection_error_bearing(wTc1, point, np.asarray(bearing1, dtype=np.float64)),
        compute_reprojection_error_bearing(wTc2, point, np.asarray(bearing2, dtype=np.float64)),
    ]
    avg_error = float(np.mean(errors))
    if avg_error > max_angular_error_rad:
        return None, avg_error

    d1 = point - wTc1.translation()
    d2 = point - wTc2.translation()
    d1 = d1 / np.linalg.norm(d1)
    d2 = d2 / np.linalg.norm(d2)
    angle = np.arccos(np.clip(np.dot(d1, d2), -1.0, 1.0))
    if np.rad2deg(angle) < min_triangulation_angle_deg:
        return None, avg_error

    return point, avg_error
