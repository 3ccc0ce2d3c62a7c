"""
多孔块体的单元测试
"""

import math

import numpy as np
import pytest

from epma_simulation.core.context import SimulationContext
from epma_simulation.core.engine import MonteCarloEngine
from epma_simulation.core.events import EventKind
from epma_simulation.core.guns import PointBeam
from epma_simulation.core.listeners import EventLog
from epma_simulation.core.porous import create_porous_block, estimated_pore_fraction
from epma_simulation.core.scatter_models import BasicScatterModel, NullScatterModel
from epma_simulation.core.shapes import Sphere


DIMS = [1.0e-6, 1.0e-6, 1.0e-6]
PORE_RADIUS = 5.0e-8
# 1e19 pores/m^3 in a 1 µm^3 block gives 10 pores
DENSITY = 1.0e19


def make_engine(seed=1):
    return MonteCarloEngine(gun=PointBeam(center=[0, 0, -5.0e-6]), context=SimulationContext(seed),
                            chamber_radius=1.0e-4)


def bulk_model():
    return BasicScatterModel("bulk", mean_free_path=5.0e-8, stopping_power=-2.0e10, screening=0.1)


class TestPorousBlock:
    """测试多孔块体的区域结构"""

    def test_pore_count_and_parents(self):
        engine = make_engine()
        porous = create_porous_block(engine, None, DIMS, bulk_model(), PORE_RADIUS, DENSITY)
        assert len(porous.pores) == 10
        assert porous.region.parent == engine.chamber.index
        assert all(p.parent == porous.region.index for p in porous.pores)
        assert engine.regions.sub_regions(porous.region) == porous.pores

    def test_pores_inside_block(self):
        """孔洞完整地位于块体内部"""
        engine = make_engine()
        porous = create_porous_block(engine, None, DIMS, bulk_model(), PORE_RADIUS, DENSITY,
                                     center=[0, 0, 1.0e-6])
        for pore in porous.pores:
            offset = np.abs(pore.shape.center - [0, 0, 1.0e-6])
            assert np.all(offset + PORE_RADIUS <= 0.5 * np.asarray(DIMS) + 1e-18)
            assert pore.shape.radius == pytest.approx(PORE_RADIUS)

    def test_lookup_finds_pore(self):
        engine = make_engine()
        porous = create_porous_block(engine, None, DIMS, bulk_model(), PORE_RADIUS, DENSITY)
        for pore in porous.pores:
            assert engine.find_region_containing(pore.shape.center) in porous.pores

    def test_default_pore_model_is_vacuum(self):
        engine = make_engine()
        porous = create_porous_block(engine, None, DIMS, bulk_model(), PORE_RADIUS, DENSITY)
        assert all(isinstance(p.scatter_model, NullScatterModel) for p in porous.pores)
        assert all(p.scatter_model is not engine.chamber.scatter_model for p in porous.pores)

    def test_custom_pore_model_and_parent(self):
        engine = make_engine()
        outer = engine.add_sub_region(engine.chamber, NullScatterModel(), Sphere([0, 0, 0], 5.0e-6), "outer")
        fill = BasicScatterModel("fill", mean_free_path=1.0e-7, stopping_power=-1.0e9)
        porous = create_porous_block(engine, outer, DIMS, bulk_model(), PORE_RADIUS, DENSITY, pore_model=fill)
        assert porous.region.parent == outer.index
        assert all(p.scatter_model is fill for p in porous.pores)

    def test_same_seed_same_pores(self):
        centers = []
        for _ in range(2):
            porous = create_porous_block(make_engine(seed=5), None, DIMS, bulk_model(), PORE_RADIUS, DENSITY)
            centers.append(np.array([p.shape.center for p in porous.pores]))
        np.testing.assert_array_equal(centers[0], centers[1])

    def test_no_pores(self):
        engine = make_engine()
        porous = create_porous_block(engine, None, DIMS, bulk_model(), PORE_RADIUS, 0.0)
        assert porous.pores == []
        assert porous.pore_fraction == 0.0

    @pytest.mark.parametrize("kwargs", [
        {"pore_radius": 0.0},
        {"pore_radius": 6.0e-7},
        {"density": -1.0},
    ])
    def test_invalid_parameters(self, kwargs):
        params = {"pore_radius": PORE_RADIUS, "density": DENSITY}
        params.update(kwargs)
        with pytest.raises(ValueError):
            create_porous_block(make_engine(), None, DIMS, bulk_model(), **params)


class TestPoreFraction:
    """测试孔隙率估计"""

    def test_estimate(self):
        engine = make_engine()
        porous = create_porous_block(engine, None, DIMS, bulk_model(), PORE_RADIUS, DENSITY)
        pore_volume = 4.0 / 3.0 * math.pi * PORE_RADIUS ** 3
        expected = 1.0 - (1.0 - pore_volume / 1.0e-18) ** 10
        assert porous.pore_fraction == pytest.approx(expected)

    def test_dilute_limit(self):
        """稀疏孔洞时孔隙率近似为孔洞体积之和"""
        fraction = estimated_pore_fraction(5, 1.0e-9, 1.0e-18)
        assert fraction == pytest.approx(5 * 4.0 / 3.0 * math.pi * 1.0e-27 / 1.0e-18, rel=1e-6)

    def test_saturates(self):
        assert estimated_pore_fraction(10, 1.0, 1.0) == pytest.approx(1.0)


class TestPorousTransport:
    """测试电子在多孔块体中的输运"""

    def test_material_map_through_block(self):
        """沿 z 轴穿过块体的路径长度等于块体厚度"""
        engine = make_engine()
        pore_model = NullScatterModel()
        porous = create_porous_block(engine, None, DIMS, bulk_model(), PORE_RADIUS, DENSITY,
                                     pore_model=pore_model)
        lengths = engine.material_map([0, 0, -5.0e-6], [0, 0, 5.0e-6])
        inside = lengths[porous.region.scatter_model] + lengths.get(pore_model, 0.0)
        assert inside == pytest.approx(1.0e-6, abs=1e-12)

    def test_trajectories_run(self):
        engine = make_engine(seed=3)
        create_porous_block(engine, None, DIMS, bulk_model(), PORE_RADIUS, DENSITY)
        log = EventLog()
        engine.add_listener(log)
        engine.run_multiple_trajectories(3)
        assert log.count(EventKind.TRAJECTORY_END) == 3
        assert log.count(EventKind.SCATTER) > 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
