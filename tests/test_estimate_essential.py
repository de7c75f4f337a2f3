"""Tests for the essential matrix estimation entry point.

Authors: Auto-generated for spherical SfM
"""

import gtsam
import numpy as np

from sphericalpose.estimate_essential import estimate_essential, main
from sphericalpose.relative_pose.angular_error import AngularError
from sphericalpose.utils.equirectangular import planar_to_spherical, spherical_to_planar

W, H = 4000, 2000


def _make_matches(num_points: int = 50, seed: int = 0):
    """Equirectangular pixel matches of random points seen by two cameras."""
    rng = np.random.RandomState(seed)
    wTi1 = gtsam.Pose3()
    wTi2 = gtsam.Pose3(gtsam.Rot3.Ry(0.4), gtsam.Point3(1, 0.2, 0))
    points = rng.uniform(-5, 5, (num_points, 3))
    b1 = np.array([wTi1.transformTo(p) for p in points])
    b2 = np.array([wTi2.transformTo(p) for p in points])
    return spherical_to_planar(b1, W, H), spherical_to_planar(b2, W, H)


class TestEstimateEssential:
    def test_noise_free_matches(self):
        uv1, uv2 = _make_matches()
        i2Ei1, metrics = estimate_essential(uv1, uv2, (W, H), (W, H))
        assert metrics["num_correspondences"] == 50
        assert metrics["inlier_ratio"] == 1.0
        assert metrics["max_angular_error_rad"] < 1e-6

        errors = AngularError().errors(i2Ei1, planar_to_spherical(uv1, W, H), planar_to_spherical(uv2, W, H))
        assert np.max(errors) < 1e-6

    def test_main_writes_essential_matrix(self, tmp_path):
        uv1, uv2 = _make_matches()
        matches_path = tmp_path / "matches.npz"
        output_path = tmp_path / "E.npy"
        np.savez(matches_path, x1=uv1, x2=uv2)

        ret = main([
            "--matches", str(matches_path),
            "--width", str(W),
            "--height", str(H),
            "--output", str(output_path),
            "--log_level", "debug",
        ])
        assert ret == 0
        E = np.load(output_path)
        assert E.shape == (3, 3)
        d = np.linalg.svd(E, compute_uv=False)
        np.testing.assert_allclose(d[0], d[1], rtol=1e-9)

    def test_main_rejects_missing_arrays(self, tmp_path):
        matches_path = tmp_path / "matches.npz"
        np.savez(matches_path, a=np.zeros((10, 2)))
        assert main(["--matches", str(matches_path), "--width", str(W), "--height", str(H)]) == 1

    def test_main_rejects_too_few_matches(self, tmp_path):
        uv1, uv2 = _make_matches(num_points=5)
        matches_path = tmp_path / "matches.npz"
        np.savez(matches_path, x1=uv1, x2=uv2)
        assert main(["--matches", str(matches_path), "--width", str(W), "--height", str(H)]) == 1
