"""
导航模块
包含代价场、路径规划、路径跟随和物体推送控制器
"""

from .terrain import TerrainConfig, kernelize, TERRAIN_WALL
from .path_planner import PathPlanner, PathPlannerConfig, scale_path_pixels
from .procedure import Procedure
from .sub_procedures import ReadyMove, ObjectMove, StopCondition
from .object_line import ObjectLine, LineState

__all__ = [
    'TerrainConfig',
    'kernelize',
    'TERRAIN_WALL',
    'PathPlanner',
    'PathPlannerConfig',
    'scale_path_pixels',
    'Procedure',
    'ReadyMove',
    'ObjectMove',
    'StopCondition',
    'ObjectLine',
    'LineState',
]
