"""
几何工具模块
方向、包围盒和点到线段的垂足计算（画面坐标系：x向右，y向下）
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

Point = Tuple[float, float]


class Direction(Enum):
    """运动方向（画面坐标系）"""
    RIGHT = (1, 0)
    LEFT = (-1, 0)
    DOWN = (0, 1)
    UP = (0, -1)

    @property
    def vector(self) -> Tuple[int, int]:
        return self.value

    @property
    def is_horizontal(self) -> bool:
        return self.value[1] == 0

    @property
    def sign(self) -> int:
        """沿所在轴的正负号"""
        return self.value[0] + self.value[1]

    def opposite(self) -> 'Direction':
        return _OPPOSITE[self]

    def axis_coord(self, point: Point) -> float:
        """点在该方向所在轴上的坐标"""
        return point[0] if self.is_horizontal else point[1]

    def lateral_coord(self, point: Point) -> float:
        """点在垂直轴上的坐标"""
        return point[1] if self.is_horizontal else point[0]

    def compose(self, axis: float, lateral: float) -> Point:
        """由（轴坐标, 横向坐标）还原为 (x, y)"""
        if self.is_horizontal:
            return (axis, lateral)
        return (lateral, axis)


_OPPOSITE = {
    Direction.RIGHT: Direction.LEFT,
    Direction.LEFT: Direction.RIGHT,
    Direction.DOWN: Direction.UP,
    Direction.UP: Direction.DOWN,
}


def side_of(direction: Direction) -> Direction:
    """沿 direction 推动物体时，机器人应位于物体的哪一侧"""
    return direction.opposite()


@dataclass(frozen=True)
class BoundingBox:
    """视觉子系统输出的包围盒（左上角 + 宽高，像素）"""
    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Point:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    @property
    def is_well_formed(self) -> bool:
        values = (self.x, self.y, self.width, self.height)
        return all(math.isfinite(v) for v in values) and self.width > 0 and self.height > 0

    def half_extent(self, horizontal: bool) -> float:
        """沿水平（或竖直）轴的半尺寸"""
        return self.width / 2.0 if horizontal else self.height / 2.0


def perp_intersect(point: Point, source: Point, target: Point) -> Point:
    """计算 point 到线段 source→target 的垂足

    投影参数截断到 [0, 1]，保证垂足落在线段上。
    线段退化为一点时返回 target。

    Args:
        point: 当前位置
        source: 线段起点
        target: 线段终点

    Returns:
        垂足坐标 (x, y)
    """
    dx = target[0] - source[0]
    dy = target[1] - source[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return target

    t = ((point[0] - source[0]) * dx + (point[1] - source[1]) * dy) / length_sq
    t = min(max(t, 0.0), 1.0)
    return (source[0] + t * dx, source[1] + t * dy)
