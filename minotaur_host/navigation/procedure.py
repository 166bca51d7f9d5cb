"""
路径跟随控制器模块
周期性地根据视觉反馈把机器人沿像素路径逐点推进
"""

import logging
import math
from typing import Callable, List, Optional, Sequence, Tuple

from minotaur_host import config
from minotaur_host.geometry import Direction, Point, perp_intersect
from minotaur_host.runtime.context import ActuatorRef, RuntimeContext
from minotaur_host.runtime.scheduler import TickTask

logger = logging.getLogger(__name__)


def err_text(x: float, y: float) -> str:
    return f"Error: ({x:6.1f} , {y:6.1f} )"


def index_text(index: int) -> str:
    return f"Index: {index}"


def perp_text(err_x: float, err_y: float, norm_sq: float) -> str:
    return f"PerpD: ({err_x:6.1f} , {err_y:6.1f} ) : {norm_sq:6.1f}"


class Procedure:
    """路径跟随控制器

    每个tick：
    1. 路径走完或执行器不可用 → 停止并发出 finished
    2. 机器人观测不新鲜/无效 → 跳过本tick
    3. 误差小于到达半径 → 前进到下一个路径点（本tick不发运动指令）
    4. 横向偏离超过阈值 → 以线段上的垂足为临时目标
    5. 沿误差较大的轴单轴移动，步数为该轴误差的绝对值

    Attributes:
        path: 像素路径点列表
        index: 当前目标路径点下标（只增不减）
        initial: 启动时机器人位置（第一段线段的起点）

    Example:
        >>> procedure = Procedure(context, ActuatorRef(actuator), pixel_path)
        >>> procedure.on_finished = lambda: print('done')
        >>> procedure.start()
        >>> context.scheduler.run(stop_when=procedure.is_done)
    """

    def __init__(self,
                 context: RuntimeContext,
                 actuator: ActuatorRef,
                 path: Sequence[Sequence[float]],
                 loc_accept: float = config.LOC_ACCEPT,
                 norm_dev: float = config.NORM_DEV,
                 period_ms: int = config.PROCEDURE_TICK_MS,
                 move_duration: float = config.MOVE_DURATION,
                 name: str = 'procedure'):
        """初始化控制器

        Args:
            context: 运行上下文（视觉、调度器、状态面板）
            actuator: 执行器的非持有引用
            path: 像素路径点列表 [(x, y), ...]
            loc_accept: 到达半径（像素）
            norm_dev: 允许的横向偏离（像素）
            period_ms: tick周期（毫秒）
            move_duration: 每次运动指令的时长（秒）
            name: 名称（日志用）
        """
        self.context = context
        self.actuator = actuator
        self.path: List[Point] = [(float(p[0]), float(p[1])) for p in path]
        self.loc_accept = loc_accept
        self.norm_dev = norm_dev
        self.period_ms = period_ms
        self.move_duration = move_duration
        self.name = name

        self.index = 0
        self.initial: Optional[Point] = None
        self._done = False
        self._task: Optional[TickTask] = None

        # 生命周期回调
        self.on_started: Optional[Callable[[], None]] = None
        self.on_stopped: Optional[Callable[[], None]] = None
        self.on_finished: Optional[Callable[[], None]] = None

        # 状态标签（运行期间存在）
        self._dir_label: Optional[int] = None
        self._err_label: Optional[int] = None
        self._index_label: Optional[int] = None
        self._perp_label: Optional[int] = None

    def is_done(self) -> bool:
        return self._done

    def is_stopped(self) -> bool:
        return self._task is None or not self._task.active

    def start(self):
        """启动定时循环并记录机器人初始位置"""
        if self._done or not self.is_stopped():
            return

        box = self.context.vision.get_robot_box()
        if box is not None:
            self.initial = box.center
        elif self.path:
            self.initial = self.path[0]

        self._add_labels()
        self._task = self.context.scheduler.schedule_periodic(
            self.period_ms, self.movement_loop, name=self.name
        )
        logger.info(f"[{self.name}] 开始跟随路径: {len(self.path)} 个点")
        if self.on_started:
            self.on_started()

    def stop(self):
        """停止定时循环（幂等）"""
        if self.is_stopped():
            return
        self._task.cancel()
        self._remove_labels()
        logger.info(f"[{self.name}] 已停止 @ index={self.index}")
        if self.on_stopped:
            self.on_stopped()

    def movement_loop(self):
        """单个tick，出错时先停止自身再把异常交给调度器"""
        try:
            self._tick()
        except Exception:
            self.stop()
            raise

    def _tick(self):
        access = self.actuator.acquire()
        # 路径走完或执行器已释放，结束
        if self.index >= len(self.path) or not access.available:
            self._finish()
            return

        # 观测没有更新（跟踪丢失），跳过本tick
        vision = self.context.vision
        if not vision.is_robot_box_fresh() or not vision.is_robot_box_valid():
            return

        center = vision.get_robot_box(True).center
        target = self.path[self.index]
        # 线段起点为上一个路径点，第一段为初始位置
        source = self.path[self.index - 1] if self.index > 0 else (self.initial or target)

        err_x = target[0] - center[0]
        err_y = target[1] - center[1]
        status = self.context.status
        status.set_text(self._err_label, err_text(err_x, err_y))

        # 到达当前路径点，切换到下一个
        if math.hypot(err_x, err_y) < self.loc_accept:
            self.index += 1
            status.set_text(self._index_label, index_text(self.index))
            logger.debug(f"[{self.name}] 到达路径点 {self.index - 1}: {target}")
            return
        status.set_text(self._index_label, index_text(self.index))

        # 横向偏离过大时先回到线段上
        intersect = perp_intersect(center, source, target)
        norm_x = intersect[0] - center[0]
        norm_y = intersect[1] - center[1]
        norm_sq = norm_x * norm_x + norm_y * norm_y
        status.set_text(self._perp_label, perp_text(norm_x, norm_y, norm_sq))
        if norm_sq > self.norm_dev * self.norm_dev:
            target = intersect
            err_x, err_y = norm_x, norm_y

        if abs(err_x) > abs(err_y):
            direction = Direction.RIGHT if target[0] > center[0] else Direction.LEFT
            power = abs(err_x)
        else:
            direction = Direction.DOWN if target[1] > center[1] else Direction.UP
            power = abs(err_y)
        self._move(access.actuator, direction, power)

    def _move(self, actuator, direction: Direction, estimated_power: float):
        status = self.context.status
        status.set_text(self._dir_label, direction.name)
        steps = int(estimated_power)
        vx, vy = direction.vector
        actuator.move((vx * steps, vy * steps), self.move_duration)

    def _finish(self):
        if self._task is not None:
            self._task.cancel()
        self._done = True
        self._remove_labels()
        logger.info(f"[{self.name}] 完成: index={self.index}/{len(self.path)}")
        if self.on_finished:
            self.on_finished()

    def _add_labels(self):
        status = self.context.status
        self._dir_label = status.add_label("IDLE")
        self._err_label = status.add_label(err_text(0, 0))
        self._index_label = status.add_label(index_text(self.index))
        self._perp_label = status.add_label(perp_text(0, 0, 0))

    def _remove_labels(self):
        status = self.context.status
        for label in (self._dir_label, self._err_label, self._index_label, self._perp_label):
            if label is not None:
                status.remove_label(label)
        self._dir_label = self._err_label = self._index_label = self._perp_label = None

    @property
    def current_target(self) -> Optional[Tuple[float, float]]:
        if self.index < len(self.path):
            return self.path[self.index]
        return None
