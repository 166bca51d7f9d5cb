"""
推物体子过程模块
ReadyMove：绕到物体的指定一侧并侧移对准物体中线
ObjectMove：沿给定方向推动物体，直到出现停止条件
"""

import logging
from enum import Enum
from typing import List, Optional

from minotaur_host import config
from minotaur_host.geometry import BoundingBox, Direction, Point
from minotaur_host.navigation.procedure import Procedure
from minotaur_host.runtime.context import ActuatorRef, RuntimeContext
from minotaur_host.runtime.scheduler import TickTask

logger = logging.getLogger(__name__)


class StopCondition(Enum):
    """推动子过程的停止条件"""
    OKAY = 0            # 仍在运行
    AT_TARGET = 1       # 物体到达目标
    WRONG_SIDE = 2      # 机器人不在物体后方（或已失去接触）
    EXCEEDED_NORM = 3   # 物体横向偏离超过允许值


def ready_move_path(side: Direction,
                    robot: BoundingBox,
                    obj: BoundingBox,
                    clearance: float = config.READY_MOVE_CLEARANCE) -> List[Point]:
    """计算到达物体 side 一侧站位点的路径

    站位点位于物体 side 一侧、与物体中线对齐，机器人与物体之间留 clearance 间隙。
    机器人已在该侧时：先沿轴向移动到站位线，再侧移对准；
    否则先横向让开物体，再绕到站位线，最后侧移对准。

    Args:
        side: 机器人要到达的物体一侧
        robot: 机器人包围盒
        obj: 物体包围盒
        clearance: 额外间隙（像素）

    Returns:
        像素路径点列表（已去除连续重复点）
    """
    horizontal = side.is_horizontal
    robot_c = robot.center
    obj_c = obj.center

    a_r, l_r = side.axis_coord(robot_c), side.lateral_coord(robot_c)
    a_o, l_o = side.axis_coord(obj_c), side.lateral_coord(obj_c)

    axis_gap = obj.half_extent(horizontal) + robot.half_extent(horizontal)
    lateral_gap = obj.half_extent(not horizontal) + robot.half_extent(not horizontal)

    a_s = a_o + side.sign * (axis_gap + clearance)

    if side.sign * (a_r - a_o) > axis_gap:
        waypoints = [(a_s, l_r), (a_s, l_o)]
    else:
        offset = l_r - l_o
        if abs(offset) >= lateral_gap + clearance:
            l_c = l_r
        else:
            l_c = l_o + (1 if offset >= 0 else -1) * (lateral_gap + clearance)
        waypoints = [(a_r, l_c), (a_s, l_c), (a_s, l_o)]

    path = []
    for axis, lateral in waypoints:
        point = side.compose(axis, lateral)
        if not path or path[-1] != point:
            path.append(point)
    return path


class ReadyMove:
    """就位子过程

    启动时根据当前观测生成站位路径，用内部的 Procedure 跟随。
    """

    def __init__(self,
                 context: RuntimeContext,
                 actuator: ActuatorRef,
                 side: Direction,
                 loc_accept: float = config.READY_MOVE_ACCEPT,
                 norm_dev: float = config.READY_MOVE_NORM_DEV,
                 clearance: float = config.READY_MOVE_CLEARANCE):
        self.context = context
        self.actuator = actuator
        self.side = side
        self.loc_accept = loc_accept
        self.norm_dev = norm_dev
        self.clearance = clearance
        self.procedure: Optional[Procedure] = None

    def start(self):
        vision = self.context.vision
        robot = vision.get_robot_box()
        obj = vision.get_object_box()
        if robot is None or obj is None:
            logger.warning(f"[ReadyMove] 缺少观测，跳过就位 (side={self.side.name})")
            path = []
        else:
            path = ready_move_path(self.side, robot, obj, self.clearance)

        logger.info(f"[ReadyMove] side={self.side.name}, path={path}")
        self.procedure = Procedure(
            self.context, self.actuator, path,
            loc_accept=self.loc_accept,
            norm_dev=self.norm_dev,
            name=f'ready-move-{self.side.name.lower()}'
        )
        self.procedure.start()

    def stop(self):
        if self.procedure:
            self.procedure.stop()

    def is_done(self) -> bool:
        return self.procedure is not None and self.procedure.is_done()

    def is_stopped(self) -> bool:
        return self.procedure is None or self.procedure.is_stopped()


class ObjectMove:
    """推动子过程

    每个新鲜tick依次检查：
    1. 物体沿推动方向到达 target → AT_TARGET
    2. 机器人不在物体后方，或横向已滑出物体 → WRONG_SIDE
    3. 物体横向坐标偏离 base 超过 norm_dev → EXCEEDED_NORM
    否则沿推动方向移动，步数为剩余距离（上限 max_power）。

    执行器释放后tick终止但不产生停止条件：is_done() 保持False，
    is_stopped() 变为True。
    """

    def __init__(self,
                 context: RuntimeContext,
                 actuator: ActuatorRef,
                 direction: Direction,
                 target: float,
                 base: float,
                 norm_dev: float,
                 tolerance: float = config.OBJECT_TARGET_TOLERANCE,
                 max_power: int = config.OBJECT_PUSH_MAX_POWER,
                 period_ms: int = config.OBJECT_MOVE_TICK_MS,
                 move_duration: float = config.MOVE_DURATION):
        self.context = context
        self.actuator = actuator
        self.direction = direction
        self.target = target
        self.base = base
        self.norm_dev = norm_dev
        self.tolerance = tolerance
        self.max_power = max_power
        self.period_ms = period_ms
        self.move_duration = move_duration

        self._stop = StopCondition.OKAY
        self._task: Optional[TickTask] = None

    def start(self):
        if self._task is not None and self._task.active:
            return
        self._task = self.context.scheduler.schedule_periodic(
            self.period_ms, self.movement_loop,
            name=f'object-move-{self.direction.name.lower()}'
        )
        logger.info(f"[ObjectMove] dir={self.direction.name}, target={self.target}, "
                    f"base={self.base}, dev={self.norm_dev}")

    def stop(self):
        if self._task is not None:
            self._task.cancel()

    def is_done(self) -> bool:
        return self._stop != StopCondition.OKAY

    def is_stopped(self) -> bool:
        """tick已停止（得到停止条件、被stop()取消或执行器已释放）"""
        return self._task is None or not self._task.active

    def get_stop(self) -> StopCondition:
        return self._stop

    def movement_loop(self):
        access = self.actuator.acquire()
        if not access.available:
            logger.info("[ObjectMove] 执行器不可用，停止")
            self.stop()
            return

        vision = self.context.vision
        if not vision.robot_ready() or not vision.object_ready():
            return

        robot = vision.get_robot_box(True)
        obj = vision.get_object_box(True)
        stop_cond = self.evaluate(robot, obj)
        if stop_cond != StopCondition.OKAY:
            self._stop = stop_cond
            self.stop()
            logger.info(f"[ObjectMove] 停止条件: {stop_cond.name}")
            return

        d = self.direction
        remaining = d.sign * (self.target - d.axis_coord(obj.center))
        power = max(1, min(int(remaining), self.max_power))
        vx, vy = d.vector
        access.actuator.move((vx * power, vy * power), self.move_duration)

    def evaluate(self, robot: BoundingBox, obj: BoundingBox) -> StopCondition:
        """根据当前观测判断停止条件"""
        d = self.direction
        robot_c = robot.center
        obj_c = obj.center

        if d.sign * (d.axis_coord(obj_c) - self.target) >= -self.tolerance:
            return StopCondition.AT_TARGET

        behind = d.sign * (d.axis_coord(obj_c) - d.axis_coord(robot_c))
        lateral_gap = abs(d.lateral_coord(robot_c) - d.lateral_coord(obj_c))
        if behind <= 0 or lateral_gap > obj.half_extent(not d.is_horizontal):
            return StopCondition.WRONG_SIDE

        if abs(d.lateral_coord(obj_c) - self.base) > self.norm_dev:
            return StopCondition.EXCEEDED_NORM

        return StopCondition.OKAY
