"""
基本形状与变换的单元测试
"""

import math

import numpy as np
import pytest

from epma_simulation.core.constants import NO_INTERSECTION
from epma_simulation.core.shapes import Cylinder, Plane, SimpleBlock, Sphere, as_point
from epma_simulation.core.transforms import normalize, parameter_offset, rotate_point, rotation_matrix
from epma_simulation.testing import validate_shape


BOUNDS = ([-2.0, -2.0, -2.0], [2.0, 2.0, 2.0])


class TestSphere:
    """测试球体"""

    def test_entry_from_outside(self):
        """测试从外部进入时的交点参数"""
        sphere = Sphere([0, 0, 0], 1.0)
        assert sphere.first_intersection([-2, 0, 0], [2, 0, 0]) == pytest.approx(0.25)

    def test_exit_from_inside(self):
        """测试从内部离开时的交点参数"""
        sphere = Sphere([0, 0, 0], 1.0)
        assert sphere.first_intersection([0, 0, 0], [2, 0, 0]) == pytest.approx(0.5)

    def test_crossing_beyond_segment(self):
        """交点在线段终点之后时返回大于 1 的参数"""
        sphere = Sphere([0, 0, 0], 1.0)
        assert sphere.first_intersection([-3, 0, 0], [-2.5, 0, 0]) == pytest.approx(4.0)

    def test_miss_and_behind(self):
        """测试未命中及交点在起点之后的情况"""
        sphere = Sphere([0, 0, 0], 1.0)
        assert sphere.first_intersection([-2, 2, 0], [2, 2, 0]) == NO_INTERSECTION
        assert sphere.first_intersection([2, 0, 0], [3, 0, 0]) == NO_INTERSECTION

    def test_boundary_is_inside(self):
        """边界点属于球体"""
        sphere = Sphere([1, 2, 3], 2.0)
        assert sphere.contains([3, 2, 3])
        assert sphere.contains([1, 2, 3])
        assert not sphere.contains([3.01, 2, 3])

    def test_invalid_radius(self):
        """测试非法半径"""
        with pytest.raises(ValueError):
            Sphere([0, 0, 0], 0.0)

    def test_translated_and_rotated(self):
        """平移与旋转返回新的球体"""
        sphere = Sphere([1, 0, 0], 0.5)
        moved = sphere.translated([0, 0, 1])
        np.testing.assert_array_almost_equal(moved.center, [1, 0, 1])
        np.testing.assert_array_almost_equal(sphere.center, [1, 0, 0])

        turned = sphere.rotated([0, 0, 0], math.pi / 2, 0.0, 0.0)
        np.testing.assert_array_almost_equal(turned.center, [0, 1, 0])


class TestCylinder:
    """测试圆柱"""

    def test_side_crossing(self):
        """测试侧面交点"""
        cylinder = Cylinder([0, 0, 0], [0, 0, 2], 1.0)
        assert cylinder.first_intersection([-2, 0, 1], [2, 0, 1]) == pytest.approx(0.25)

    def test_cap_crossing(self):
        """测试端面交点"""
        cylinder = Cylinder([0, 0, 0], [0, 0, 2], 1.0)
        assert cylinder.first_intersection([0.2, 0, -1], [0.2, 0, 3]) == pytest.approx(0.25)
        assert cylinder.first_intersection([0.2, 0, 1], [0.2, 0, 3]) == pytest.approx(0.5)

    def test_contains(self):
        """测试包含关系"""
        cylinder = Cylinder([0, 0, 0], [0, 0, 2], 1.0)
        assert cylinder.contains([0.5, 0, 1])
        assert not cylinder.contains([0, 0, 2.5])
        assert not cylinder.contains([1.5, 0, 1])
        assert cylinder.length == pytest.approx(2.0)

    def test_degenerate_cylinders(self):
        """半径或长度过小时报错"""
        with pytest.raises(ValueError):
            Cylinder([0, 0, 0], [0, 0, 1], 1e-16)
        with pytest.raises(ValueError):
            Cylinder([0, 0, 0], [0, 0, 0], 1.0)


class TestPlane:
    """测试半空间"""

    def test_contains(self):
        """法向量一侧之外为内部"""
        plane = Plane([0, 0, 1], [0, 0, 0])
        assert plane.contains([0, 0, -1])
        assert plane.contains([0, 0, 0])
        assert not plane.contains([0, 0, 1])

    def test_crossing(self):
        """测试交点、平行及远离的情况"""
        plane = Plane([0, 0, 2], [0, 0, 0])
        assert plane.first_intersection([0, 0, -1], [0, 0, 1]) == pytest.approx(0.5)
        assert plane.first_intersection([0, 0, -1], [1, 0, -1]) == NO_INTERSECTION
        assert plane.first_intersection([0, 0, 1], [0, 0, 2]) == NO_INTERSECTION

    def test_rotated_normal(self):
        """旋转后法向量随之旋转"""
        plane = Plane([1, 0, 0], [0, 0, 0]).rotated([0, 0, 0], math.pi / 2, 0.0, 0.0)
        np.testing.assert_array_almost_equal(plane.normal, [0, 1, 0])


class TestSimpleBlock:
    """测试轴对齐长方体"""

    def test_crossings(self):
        """测试进入与离开的交点"""
        block = SimpleBlock([0, 0, 0], [1, 1, 1])
        assert block.first_intersection([-1, 0.5, 0.5], [2, 0.5, 0.5]) == pytest.approx(1 / 3)
        assert block.first_intersection([0.5, 0.5, 0.5], [0.5, 0.5, 2]) == pytest.approx(1 / 3)
        assert block.first_intersection([-1, 2, 0.5], [2, 2, 0.5]) == NO_INTERSECTION

    def test_corners_are_sorted(self):
        """角点顺序无关"""
        block = SimpleBlock([1, 1, 1], [0, 0, 0])
        np.testing.assert_array_almost_equal(block.corner0, [0, 0, 0])
        assert block.contains([1, 1, 1])

    def test_translated(self):
        block = SimpleBlock([0, 0, 0], [1, 1, 1]).translated([1, 0, 0])
        assert block.contains([1.5, 0.5, 0.5])
        assert not block.contains([0.5, 0.5, 0.5])


class TestTransforms:
    """测试欧拉角旋转"""

    @pytest.mark.parametrize("angles", [
        (0.0, 0.0, 0.0),
        (0.3, 1.1, -0.7),
        (math.pi, 0.5, 2.0),
    ])
    def test_rotation_is_orthonormal(self, angles):
        """旋转矩阵正交且行列式为 1"""
        rot = rotation_matrix(*angles)
        np.testing.assert_array_almost_equal(rot @ rot.T, np.eye(3))
        assert np.linalg.det(rot) == pytest.approx(1.0)

    def test_rotate_about_pivot(self):
        """绕支点旋转"""
        point = rotate_point([2, 0, 0], [1, 0, 0], math.pi / 2, 0.0, 0.0)
        np.testing.assert_array_almost_equal(point, [1, 1, 0])

    def test_normalize_zero_vector(self):
        with pytest.raises(ValueError):
            normalize([0, 0, 0])

    def test_as_point_shape(self):
        with pytest.raises(ValueError):
            as_point([1, 2])

    def test_parameter_offset_near_origin(self):
        """靠近原点的长线段直接使用给定的最小偏移"""
        assert parameter_offset(np.zeros(3), np.array([1.0, 0, 0]), 1e-12) == 1e-12

    def test_parameter_offset_far_from_origin(self):
        """远离原点的短线段，偏移至少覆盖若干个浮点间隔"""
        pos0 = np.array([1.0e-2, 1.0e-2, 1.0e-2])
        pos1 = pos0 + [0, 0, 5.0e-9]
        offset = parameter_offset(pos0, pos1, 1e-12)
        assert offset > 1e-12
        nudged = pos0 + offset * (pos1 - pos0)
        assert nudged[2] > pos0[2]

    def test_parameter_offset_zero_length(self):
        assert parameter_offset(np.ones(3), np.ones(3), 1e-15) == 1e-15


class TestConsistency:
    """测试包含关系与交点的一致性"""

    @pytest.mark.parametrize("name,shape", [
        ("sphere", Sphere([0.1, -0.2, 0.3], 1.2)),
        ("cylinder", Cylinder([0, 0, -1], [0, 0.5, 1], 0.6)),
        ("plane", Plane([1, 1, 1], [0.2, 0, 0])),
        ("block", SimpleBlock([-1, -0.5, -0.3], [0.9, 0.7, 1.1])),
    ])
    def test_validate_shape(self, name, shape):
        """随机线段穿越边界时包含关系必须翻转"""
        is_valid, message = validate_shape(shape, BOUNDS, name=name)
        assert is_valid, message


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
