"""Utilities for equirectangular (360) image projection.

Converts between pixel coordinates in equirectangular images and
bearing vectors on the unit sphere.

Convention:
  - Image: x ∈ [0, W), y ∈ [0, H), normalized as u = x / W, v = y / H
  - Polar angle: v * π, measured from +Y (top row = +Y, bottom row = -Y)
  - Azimuth: π * (2u + 0.5), measured from +X towards +Z
  - Bearing: (sin(vπ) cos(az), cos(vπ), sin(vπ) sin(az))

Authors: Auto-generated for spherical SfM
"""

import numpy as np

import gtsam


def _check_image_size(W: float, H: float) -> None:
    if W <= 0 or H <= 0:
        raise ValueError(f"Image size must be positive, got {W}x{H}")


def pixel_to_bearing(x: float, y: float, W: int, H: int) -> gtsam.Unit3:
    """Convert a single equirectangular pixel coordinate to a bearing vector.

    Args:
        x: Horizontal pixel coordinate (0 = left edge).
        y: Vertical pixel coordinate (0 = top edge).
        W: Image width in pixels.
        H: Image height in pixels.

    Returns:
        Unit3 bearing vector on the unit sphere.
    """
    return gtsam.Unit3(planar_to_spherical(np.array([[x, y]]), W, H)[0])


def planar_to_spherical(planar_coords: np.ndarray, W: int, H: int) -> np.ndarray:
    """Convert an array of equirectangular pixel coordinates to bearing vectors.

    Coordinates outside the image are not clamped; the trigonometric mapping
    wraps them around the sphere. Rows at the poles (v = 0 or v = 1) map to
    (0, ±1, 0).

    Args:
        planar_coords: (N, 2) array of pixel coordinates [x, y].
        W: Image width in pixels.
        H: Image height in pixels.

    Returns:
        (N, 3) array of unit bearing vectors [x, y, z].

    Raises:
        ValueError: If the image size is not positive or the input is not (N, 2).
    """
    _check_image_size(W, H)
    xy = np.asarray(planar_coords, dtype=np.float64)
    if xy.ndim != 2 or xy.shape[1] != 2:
        raise ValueError(f"Expected (N, 2) pixel coordinates, got shape {xy.shape}")

    u = xy[:, 0] / float(W)
    v = xy[:, 1] / float(H)
    sin_polar = np.sin(v * np.pi)
    azimuth = np.pi * (2.0 * u + 0.5)
    bearings = np.column_stack([
        sin_polar * np.cos(azimuth),
        np.cos(v * np.pi),
        sin_polar * np.sin(azimuth),
    ])
    return bearings / np.linalg.norm(bearings, axis=1, keepdims=True)


def spherical_to_planar(bearings: np.ndarray, W: int, H: int) -> np.ndarray:
    """Convert an array of bearing vectors to equirectangular pixel coordinates.

    Inverse of `planar_to_spherical`. The horizontal coordinate is wrapped
    into [0, W).

    Args:
        bearings: (N, 3) array of bearing vectors (not necessarily unit length).
        W: Image width in pixels.
        H: Image height in pixels.

    Returns:
        (N, 2) array of pixel coordinates [x, y].
    """
    _check_image_size(W, H)
    b = np.asarray(bearings, dtype=np.float64)
    b = b / np.linalg.norm(b, axis=1, keepdims=True)
    polar = np.arccos(np.clip(b[:, 1], -1.0, 1.0))  # [0, π]
    azimuth = np.arctan2(b[:, 2], b[:, 0])
    u = np.mod(azimuth / (2.0 * np.pi) - 0.25, 1.0)
    v = polar / np.pi
    return np.column_stack([u * W, v * H])


def angular_distance(b1: np.ndarray, b2: np.ndarray) -> np.ndarray:
    """Compute angular distance (in radians) between pairs of bearing vectors.

    Args:
        b1: (N, 3) array of bearing vectors.
        b2: (N, 3) array of bearing vectors.

    Returns:
        (N,) array of angular distances in radians.
    """
    b1 = b1 / np.linalg.norm(b1, axis=1, keepdims=True)
    b2 = b2 / np.linalg.norm(b2, axis=1, keepdims=True)
    dot = np.sum(b1 * b2, axis=1)
    return np.arccos(np.clip(dot, -1.0, 1.0))
