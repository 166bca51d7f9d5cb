"""
地形模型模块
将操作员绘制的占据栅格转换为路径规划使用的代价场
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Tuple
from scipy.ndimage import convolve

from minotaur_host import config
from minotaur_host.errors import TerrainError

# 代价场中表示墙的值
TERRAIN_WALL = -1

# 惩罚核半径（距墙最多3格）
KERNEL_OFFSET = 3


@dataclass
class TerrainConfig:
    """地形配置"""
    wall_value: int = config.GRID_WALL_VALUE  # 占据栅格中墙的取值
    wall_penalties: Tuple[int, int, int] = field(default_factory=lambda: (
        config.WALL_PENALTY_0,
        config.WALL_PENALTY_1,
        config.WALL_PENALTY_2,
    ))  # 距墙1/2/3格的附加代价
    spread_wall_penalty: bool = config.WALL_PENALTY_ENABLED  # 是否向墙周围扩散惩罚


def validate_grid(grid: np.ndarray, wall_value: int) -> np.ndarray:
    """检查占据栅格并转换为整数数组

    Args:
        grid: 占据栅格 (rows x cols)
        wall_value: 墙的取值

    Returns:
        int64数组（副本）

    Raises:
        TerrainError: 不是非空二维数组，或存在非墙的负值
    """
    array = np.array(grid, dtype=np.int64)
    if array.ndim != 2 or array.size == 0:
        raise TerrainError(f"占据栅格必须是非空二维数组，实际形状: {array.shape}")

    negative = (array < 0) & (array != wall_value)
    if np.any(negative):
        y, x = np.argwhere(negative)[0]
        raise TerrainError(f"栅格 ({x}, {y}) 的代价为负: {array[y, x]}")

    return array


def penalty_kernel(wall_penalties: Tuple[int, int, int]) -> np.ndarray:
    """构造7x7环形惩罚核

    核中心为0，切比雪夫距离为1/2/3的环分别取 wall_penalties[0/1/2]。
    """
    ring_values = np.array((0,) + tuple(wall_penalties), dtype=np.int64)
    offsets = np.arange(-KERNEL_OFFSET, KERNEL_OFFSET + 1)
    ring = np.maximum(np.abs(offsets)[:, None], np.abs(offsets)[None, :])
    return ring_values[ring]


def kernelize(grid: np.ndarray, terrain_config: TerrainConfig = None) -> np.ndarray:
    """生成代价场

    默认（flat）：墙 → TERRAIN_WALL，其余栅格原样保留。
    spread_wall_penalty=True 时，每个墙体向周围3格内的非墙栅格累加环形惩罚，
    多个墙体覆盖同一栅格时惩罚叠加。

    纯函数，不修改输入。

    Args:
        grid: 占据栅格 (rows x cols)
        terrain_config: 地形配置，None则使用默认配置

    Returns:
        代价场 (rows x cols)，新数组
    """
    cfg = terrain_config if terrain_config else TerrainConfig()
    source = validate_grid(grid, cfg.wall_value)

    walls = source == cfg.wall_value
    terrain = source.copy()

    if cfg.spread_wall_penalty:
        kernel = penalty_kernel(cfg.wall_penalties)
        # 核对称，卷积与相关等价；边界外视为非墙
        penalty = convolve(walls.astype(np.int64), kernel, mode='constant', cval=0)
        terrain = terrain + penalty

    terrain[walls] = TERRAIN_WALL
    return terrain


def is_wall(terrain: np.ndarray, x: int, y: int) -> bool:
    return terrain[y, x] == TERRAIN_WALL


def in_bounds(terrain: np.ndarray, x: int, y: int) -> bool:
    rows, cols = terrain.shape
    return 0 <= x < cols and 0 <= y < rows
