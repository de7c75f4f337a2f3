"""Fit the essential matrix between two equirectangular images from matched pixels.

Usage:
    python -m sphericalpose.estimate_essential --matches matches.npz --width 4000 --height 2000

The .npz file must hold two aligned (N, 2) arrays, `x1` and `x2`, with the
pixel coordinates of the matches in image 1 and image 2. All correspondences
are used in a single linear fit; outlier rejection is left to a robust
estimator driving `SphericalEssentialKernel`.

Authors: Auto-generated for spherical SfM
"""

import argparse
import sys
import time
from typing import Dict, Optional, Tuple

import numpy as np

import sphericalpose.utils.logger as logger_utils
from sphericalpose.relative_pose.essential_kernel import SphericalEssentialKernel
from sphericalpose.utils.equirectangular import planar_to_spherical

logger = logger_utils.get_logger()

DEFAULT_THRESHOLD_RAD = 0.002


def load_matches(matches_path: str) -> Tuple[np.ndarray, np.ndarray]:
    """Load matched pixel coordinates from an .npz file with `x1` and `x2` arrays."""
    with np.load(matches_path) as data:
        if "x1" not in data or "x2" not in data:
            raise ValueError(f"{matches_path} must contain 'x1' and 'x2' arrays")
        return np.asarray(data["x1"], dtype=np.float64), np.asarray(data["x2"], dtype=np.float64)


def estimate_essential(
    pixels_i1: np.ndarray,
    pixels_i2: np.ndarray,
    image_size_i1: Tuple[int, int],
    image_size_i2: Tuple[int, int],
    threshold_rad: float = DEFAULT_THRESHOLD_RAD,
) -> Tuple[np.ndarray, Dict]:
    """Estimate i2Ei1 from matched equirectangular pixels.

    Args:
        pixels_i1: (N, 2) pixel coordinates in image 1.
        pixels_i2: (N, 2) pixel coordinates in image 2.
        image_size_i1: (width, height) of image 1.
        image_size_i2: (width, height) of image 2.
        threshold_rad: Angular threshold used to count inliers in the summary.

    Returns:
        i2Ei1: (3, 3) essential matrix.
        metrics: Residual statistics of all correspondences.
    """
    bearings_i1 = planar_to_spherical(pixels_i1, *image_size_i1)
    bearings_i2 = planar_to_spherical(pixels_i2, *image_size_i2)

    kernel = SphericalEssentialKernel(bearings_i1, bearings_i2)
    i2Ei1 = kernel.fit(np.arange(kernel.num_samples()))[0]
    residuals = kernel.residuals(i2Ei1)

    num_inliers = int(np.sum(residuals < threshold_rad))
    metrics = {
        "num_correspondences": kernel.num_samples(),
        "num_inliers": num_inliers,
        "inlier_ratio": num_inliers / kernel.num_samples(),
        "mean_angular_error_rad": float(np.mean(residuals)),
        "median_angular_error_rad": float(np.median(residuals)),
        "max_angular_error_rad": float(np.max(residuals)),
    }
    return i2Ei1, metrics


def run_estimate_essential(
    matches_path: str,
    image_size_i1: Tuple[int, int],
    image_size_i2: Optional[Tuple[int, int]] = None,
    threshold_rad: float = DEFAULT_THRESHOLD_RAD,
    output_path: Optional[str] = None,
) -> np.ndarray:
    """Load matches, estimate the essential matrix, log a summary and optionally save it."""
    start_time = time.time()
    image_size_i2 = image_size_i2 or image_size_i1

    pixels_i1, pixels_i2 = load_matches(matches_path)
    logger.info("Loaded %d matches from %s", len(pixels_i1), matches_path)

    i2Ei1, metrics = estimate_essential(pixels_i1, pixels_i2, image_size_i1, image_size_i2, threshold_rad)

    logger.info(
        "Essential matrix: %d/%d correspondences below %.4f rad (%.1f%%), "
        "mean angular error: %.4f deg, median: %.4f deg",
        metrics["num_inliers"],
        metrics["num_correspondences"],
        threshold_rad,
        metrics["inlier_ratio"] * 100,
        np.rad2deg(metrics["mean_angular_error_rad"]),
        np.rad2deg(metrics["median_angular_error_rad"]),
    )
    logger.info("i2Ei1 =\n%s", np.array2string(i2Ei1, precision=6))

    if output_path is not None:
        np.save(output_path, i2Ei1)
        logger.info("Essential matrix saved to %s", output_path)

    logger.info("Done in %.2f seconds", time.time() - start_time)
    return i2Ei1


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Essential matrix between two 360 equirectangular images")
    parser.add_argument("--matches", required=True, help="Path to .npz file with x1 and x2 pixel arrays")
    parser.add_argument("--width", type=int, required=True, help="Width of image 1 in pixels")
    parser.add_argument("--height", type=int, required=True, help="Height of image 1 in pixels")
    parser.add_argument("--width2", type=int, default=None, help="Width of image 2 (default: --width)")
    parser.add_argument("--height2", type=int, default=None, help="Height of image 2 (default: --height)")
    parser.add_argument(
        "--threshold_rad", type=float, default=DEFAULT_THRESHOLD_RAD, help="Angular inlier threshold (radians)"
    )
    parser.add_argument("--output", default=None, help="Optional .npy output path for the essential matrix")
    parser.add_argument("--log_level", default="INFO", help="Logging level")
    args = parser.parse_args(argv)

    logger_utils.set_level(args.log_level)
    image_size_i2 = None
    if args.width2 is not None or args.height2 is not None:
        image_size_i2 = (args.width2 or args.width, args.height2 or args.height)

    try:
        run_estimate_essential(
            matches_path=args.matches,
            image_size_i1=(args.width, args.height),
            image_size_i2=image_size_i2,
            threshold_rad=args.threshold_rad,
            output_path=args.output,
        )
    except (ValueError, OSError) as e:
        logger.error("Essential matrix estimation failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
