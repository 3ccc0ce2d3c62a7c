"""
电子枪的单元测试
"""

import math

import numpy as np
import pytest

from epma_simulation import config
from epma_simulation.core.context import SimulationContext
from epma_simulation.core.guns import GaussianBeam, OverscanElectronGun, PointBeam


class TestPointBeam:
    """测试点束"""

    def test_electron_at_center(self):
        gun = PointBeam(center=[0, 0, -1e-3], beam_energy=15e3, theta=0.2, phi=0.4)
        electron = gun.create_electron(SimulationContext(0))
        np.testing.assert_array_almost_equal(electron.position, [0, 0, -1e-3])
        assert electron.energy == pytest.approx(15e3)
        assert electron.theta == pytest.approx(0.2)
        assert electron.phi == pytest.approx(0.4)

    def test_default_center(self):
        """默认位置位于腔体内 -z 方向"""
        gun = PointBeam()
        np.testing.assert_array_almost_equal(
            gun.center, [0, 0, -config.GUN_DISTANCE_FRACTION * config.CHAMBER_RADIUS]
        )

    def test_unique_ids(self):
        gun = PointBeam()
        context = SimulationContext(0)
        ids = {gun.create_electron(context).ident for _ in range(10)}
        assert len(ids) == 10

    def test_invalid_energy(self):
        gun = PointBeam()
        with pytest.raises(ValueError):
            gun.beam_energy = 0.0


class TestGaussianBeam:
    """测试高斯束"""

    def test_spread_in_plane(self):
        """电子在束流截面内分布，z 坐标不变"""
        gun = GaussianBeam(width=1e-8, center=[0, 0, -1e-3])
        context = SimulationContext(1)
        positions = np.array([gun.create_electron(context).position for _ in range(500)])
        np.testing.assert_array_almost_equal(positions[:, 2], -1e-3)
        radii = np.hypot(positions[:, 0], positions[:, 1])
        assert radii.max() > 0.0
        # 平均半径 = width * sqrt(pi / 2)
        assert radii.mean() == pytest.approx(1e-8 * math.sqrt(math.pi / 2), rel=0.15)

    def test_minimum_width(self):
        gun = GaussianBeam(width=0.0)
        assert gun.width == config.MIN_BEAM_WIDTH_M

    def test_beam_along_z(self):
        electron = GaussianBeam().create_electron(SimulationContext(0))
        np.testing.assert_array_almost_equal(electron.direction, [0, 0, 1])


class TestOverscanElectronGun:
    """测试扫描束"""

    def test_field_bounds(self):
        gun = OverscanElectronGun(2e-6, 1e-6, center=[0, 0, -1e-3])
        context = SimulationContext(2)
        positions = np.array([gun.create_electron(context).position for _ in range(300)])
        assert np.all(np.abs(positions[:, 0]) <= 1e-6)
        assert np.all(np.abs(positions[:, 1]) <= 0.5e-6)
        np.testing.assert_array_almost_equal(positions[:, 2], -1e-3)

    def test_rotated_field(self):
        """旋转 90° 后视场的长边沿 y 方向"""
        gun = OverscanElectronGun(2e-6, 0.0, rotation=math.pi / 2, center=[0, 0, 0])
        context = SimulationContext(3)
        positions = np.array([gun.create_electron(context).position for _ in range(100)])
        np.testing.assert_array_almost_equal(positions[:, 0], 0.0)
        assert np.all(np.abs(positions[:, 1]) <= 1e-6)

    def test_default_center(self):
        gun = OverscanElectronGun(1e-6, 1e-6)
        np.testing.assert_array_almost_equal(gun.center, config.OVERSCAN_GUN_CENTER)

    def test_negative_dimensions(self):
        with pytest.raises(ValueError):
            OverscanElectronGun(-1.0, 1.0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
