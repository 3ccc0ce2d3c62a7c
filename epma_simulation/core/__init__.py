"""
EPMA 模拟核心模块

该子包包含模拟的核心功能模块：
- constants: 几何常数、调试标志和几何统计
- transforms: 欧拉角旋转与平移
- shapes: Shape 接口与基本形状（Sphere, Cylinder, Plane, SimpleBlock）
- csg: 构造实体几何组合（Intersection, SumShape, ShapeDifference）
- solids: 复合形状（MultiPlaneShape, TruncatedSphere, BoundedShapes, CorrugatedSurface, AffinizedShape）
- region: 区域树
- porous: 含随机孔洞的多孔块体
- context: 随机数流与电子编号
- electron: 电子状态
- scatter_models: 材料散射模型接口
- guns: 电子枪
- events: 事件类型与监听器接口
- engine: 蒙特卡罗步进引擎
- listeners: 统计监听器
- io_utils: 输出工具
"""

# 常数
from .constants import (
    NO_INTERSECTION,
    SMALL_DISP,
    DEBUG,
    GEOMETRY_STATS,
    reset_geometry_stats,
    print_geometry_stats,
    count_geometry_event,
)

# 变换
from .transforms import (
    rotation_matrix,
    rotate_vector,
    rotate_point,
    normalize,
    point_between,
    parameter_offset,
)

# 形状
from .shapes import (
    GeometryError,
    Shape,
    Sphere,
    Cylinder,
    Plane,
    SimpleBlock,
)
from .csg import (
    Intersection,
    SumShape,
    ShapeDifference,
)
from .solids import (
    MultiPlaneShape,
    TruncatedSphere,
    BoundedShapes,
    CorrugatedSurface,
    AffinizedShape,
    bounded_sphere,
    bounded_truncated_sphere,
)

# 区域与电子
from .region import Region, RegionTree
from .porous import PorousBlock, create_porous_block, estimated_pore_fraction
from .context import SimulationContext
from .electron import Electron

# 散射模型
from .scatter_models import (
    MaterialScatterModel,
    NullScatterModel,
    BasicScatterModel,
)

# 电子枪
from .guns import (
    ElectronGun,
    PointBeam,
    GaussianBeam,
    OverscanElectronGun,
)

# 事件与引擎
from .events import EventKind, EventListener
from .engine import MonteCarloEngine

# 监听器
from .listeners import (
    Histogram,
    BackscatterRecord,
    TrajectoryPoint,
    BackscatterStats,
    ScatterStats,
    TrajectoryRecorder,
    EventLog,
)

# IO工具
from .io_utils import (
    export_trajectory_records_to_csv,
    export_backscatter_records_to_csv,
    export_backscatter_histogram_to_csv,
)

__all__ = [
    # 常数
    'NO_INTERSECTION',
    'SMALL_DISP',
    'DEBUG',
    'GEOMETRY_STATS',
    'reset_geometry_stats',
    'print_geometry_stats',
    'count_geometry_event',
    # 变换
    'rotation_matrix',
    'rotate_vector',
    'rotate_point',
    'normalize',
    'point_between',
    'parameter_offset',
    # 形状
    'GeometryError',
    'Shape',
    'Sphere',
    'Cylinder',
    'Plane',
    'SimpleBlock',
    'Intersection',
    'SumShape',
    'ShapeDifference',
    'MultiPlaneShape',
    'TruncatedSphere',
    'BoundedShapes',
    'CorrugatedSurface',
    'AffinizedShape',
    'bounded_sphere',
    'bounded_truncated_sphere',
    # 区域与电子
    'Region',
    'RegionTree',
    'PorousBlock',
    'create_porous_block',
    'estimated_pore_fraction',
    'SimulationContext',
    'Electron',
    # 散射模型
    'MaterialScatterModel',
    'NullScatterModel',
    'BasicScatterModel',
    # 电子枪
    'ElectronGun',
    'PointBeam',
    'GaussianBeam',
    'OverscanElectronGun',
    # 事件与引擎
    'EventKind',
    'EventListener',
    'MonteCarloEngine',
    # 监听器
    'Histogram',
    'BackscatterRecord',
    'TrajectoryPoint',
    'BackscatterStats',
    'ScatterStats',
    'TrajectoryRecorder',
    'EventLog',
    # IO
    'export_trajectory_records_to_csv',
    'export_backscatter_records_to_csv',
    'export_backscatter_histogram_to_csv',
]
