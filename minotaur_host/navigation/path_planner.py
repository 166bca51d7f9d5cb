"""
路径规划模块
在地形代价场上执行A*搜索，并把栅格路径映射为像素坐标
"""

import heapq
import logging
import numpy as np
from typing import List, Tuple, Optional
from dataclasses import dataclass, field

from minotaur_host import config
from minotaur_host.errors import InvalidCellError, PathNotFoundError
from minotaur_host.navigation.terrain import (
    TerrainConfig, kernelize, in_bounds, is_wall
)

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]


@dataclass
class PathPlannerConfig:
    """路径规划配置"""
    cell_size: int = config.GRID_SIZE  # 单个栅格的像素尺寸
    origin: Tuple[int, int] = config.GRID_ORIGIN  # 栅格左上角的像素坐标
    base_step_cost: int = config.BASE_STEP_COST  # 每走一格的基础代价
    terrain: TerrainConfig = field(default_factory=TerrainConfig)


def manhattan_dist(cell: Cell, goal: Cell) -> int:
    """曼哈顿距离（4邻域下的可采纳启发函数）"""
    return abs(goal[0] - cell[0]) + abs(goal[1] - cell[1])


def scale_path_pixels(path: List[Cell],
                      origin: Tuple[int, int] = config.GRID_ORIGIN,
                      cell_size: int = config.GRID_SIZE) -> List[Tuple[float, float]]:
    """栅格路径 → 像素路径（取栅格中心）

    Args:
        path: 栅格坐标列表 [(x, y), ...]
        origin: 栅格左上角的像素坐标
        cell_size: 单个栅格的像素尺寸

    Returns:
        像素坐标列表
    """
    half = cell_size // 2
    gx, gy = origin
    return [(float(gx + half + x * cell_size), float(gy + half + y * cell_size))
            for x, y in path]


class PathPlanner:
    """A*路径规划器

    实现全局路径规划功能：
    1. 由占据栅格生成代价场（可选墙体惩罚扩散）
    2. A*搜索（4邻域，曼哈顿启发）
    3. 栅格路径映射为像素路径

    open set 以 (f, (x, y)) 为键，f 相同时按坐标自然顺序出队，
    同一输入多次运行结果完全一致。

    Example:
        >>> planner = PathPlanner()
        >>> path = planner.plan_path(grid, (0, 0), (2, 2))
        >>> pixels = planner.plan_pixel_path(grid, (0, 0), (2, 2))
    """

    # 4邻域偏移（顺序影响平局时的入队顺序）
    NEIGHBORS_4 = [
        (-1,  0),  # 左
        ( 1,  0),  # 右
        ( 0, -1),  # 上
        ( 0,  1),  # 下
    ]

    def __init__(self, planner_config: PathPlannerConfig = None):
        """初始化路径规划器

        Args:
            planner_config: 路径规划配置，None则使用默认配置
        """
        self.config = planner_config if planner_config else PathPlannerConfig()

    def plan_path(self, grid: np.ndarray, start: Cell, goal: Cell) -> List[Cell]:
        """规划从起点到终点的栅格路径

        每次调用都会重新生成代价场。

        Args:
            grid: 占据栅格 (rows x cols)
            start: 起点栅格 (x, y)
            goal: 终点栅格 (x, y)

        Returns:
            栅格路径，首元素为起点，末元素为终点

        Raises:
            TerrainError: 占据栅格无效
            InvalidCellError: 起点/终点越界或为墙
            PathNotFoundError: 终点不可达
        """
        terrain = kernelize(grid, self.config.terrain)
        return self.search_path(terrain, start, goal)

    def plan_pixel_path(self, grid: np.ndarray, start: Cell, goal: Cell) -> List[Tuple[float, float]]:
        """规划路径并映射为像素坐标"""
        path = self.plan_path(grid, start, goal)
        return scale_path_pixels(path, self.config.origin, self.config.cell_size)

    def search_path(self, terrain: np.ndarray, start: Cell, goal: Cell) -> List[Cell]:
        """在代价场上执行A*搜索

        Args:
            terrain: 代价场（TERRAIN_WALL 为墙）
            start: 起点栅格 (x, y)
            goal: 终点栅格 (x, y)

        Returns:
            栅格路径
        """
        start = self._check_cell(terrain, start, '起点')
        goal = self._check_cell(terrain, goal, '终点')

        path = self._astar_search(terrain, start, goal)
        if path is None:
            logger.warning(f"未找到路径: {start} -> {goal}")
            raise PathNotFoundError(f"终点 {goal} 从 {start} 不可达")

        logger.info(f"找到路径: {start} -> {goal}, {len(path)} 个点")
        return path

    def _check_cell(self, terrain: np.ndarray, cell, name: str) -> Cell:
        try:
            x, y = int(cell[0]), int(cell[1])
        except (TypeError, ValueError, IndexError):
            raise InvalidCellError(f"{name}必须是 (x, y) 整数坐标: {cell!r}")

        if not in_bounds(terrain, x, y):
            rows, cols = terrain.shape
            raise InvalidCellError(f"{name} {(x, y)} 超出栅格范围 {cols}x{rows}")
        if is_wall(terrain, x, y):
            raise InvalidCellError(f"{name} {(x, y)} 位于墙上")
        return (x, y)

    def _step_cost(self, terrain: np.ndarray, cell: Cell) -> int:
        return self.config.base_step_cost + int(terrain[cell[1], cell[0]])

    def _astar_search(self,
                      terrain: np.ndarray,
                      start: Cell,
                      goal: Cell) -> Optional[List[Cell]]:
        """A*搜索算法

        Returns:
            路径点列表（栅格坐标），如果不存在则返回None
        """
        # 优先队列：(f_score, node)
        open_set = [(manhattan_dist(start, goal), start)]

        # 来源字典：node -> parent_node
        came_from = {}

        # g_score: 从起点到当前节点的实际代价
        g_score = {start: 0}

        # 已访问集合
        closed_set = set()

        while open_set:
            _, current = heapq.heappop(open_set)

            if current == goal:
                return self._reconstruct_path(came_from, current)

            if current in closed_set:
                continue
            closed_set.add(current)

            for dx, dy in self.NEIGHBORS_4:
                neighbor = (current[0] + dx, current[1] + dy)

                if not in_bounds(terrain, *neighbor):
                    continue
                if is_wall(terrain, *neighbor):
                    continue
                if neighbor in closed_set:
                    continue

                tentative_g_score = g_score[current] + self._step_cost(terrain, neighbor)

                if neighbor not in g_score or tentative_g_score < g_score[neighbor]:
                    came_from[neighbor] = current
                    g_score[neighbor] = tentative_g_score
                    f_score = tentative_g_score + manhattan_dist(neighbor, goal)
                    heapq.heappush(open_set, (f_score, neighbor))

        # open set 耗尽，终点不可达
        return None

    def _reconstruct_path(self, came_from: dict, current: Cell) -> List[Cell]:
        path = [current]
        while current in came_from:
            current = came_from[current]
            path.append(current)
        path.reverse()
        return path

    def get_path_cost(self, terrain: np.ndarray, path: List[Cell]) -> int:
        """计算路径的加权代价（不含起点）

        Args:
            terrain: 代价场
            path: 栅格路径

        Returns:
            各步进入栅格的代价之和
        """
        return sum(self._step_cost(terrain, cell) for cell in path[1:])
