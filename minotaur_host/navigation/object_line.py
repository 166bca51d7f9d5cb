"""
物体直线推送模块
把物体沿主方向推到目标坐标，偏离中线时先横向纠正再继续

状态机（每个tick至多一次状态转移）：
    REQUIRE_READY_MOVE → DOING_READY_MOVE → REQUIRE_OBJECT_MOVE → DOING_OBJECT_MOVE
    DOING_OBJECT_MOVE:
        AT_TARGET     → 完成
        WRONG_SIDE    → REQUIRE_READY_MOVE
        EXCEEDED_NORM → REQUIRE_CORRECTION → REQUIRE_CORRECTION_READY_MOVE
                        → DOING_CORRECTION_READY_MOVE → REQUIRE_CORRECTION_OBJECT_MOVE
                        → DOING_CORRECTION_OBJECT_MOVE → REQUIRE_READY_MOVE
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from minotaur_host import config
from minotaur_host.errors import ControllerStateError
from minotaur_host.geometry import Direction, side_of
from minotaur_host.navigation.sub_procedures import ObjectMove, ReadyMove, StopCondition
from minotaur_host.runtime.context import ActuatorRef, RuntimeContext
from minotaur_host.runtime.scheduler import TickTask

logger = logging.getLogger(__name__)


class LineState(Enum):
    """物体推送状态"""
    REQUIRE_READY_MOVE = 0
    DOING_READY_MOVE = 1
    REQUIRE_OBJECT_MOVE = 2
    DOING_OBJECT_MOVE = 3
    REQUIRE_CORRECTION = 4
    REQUIRE_CORRECTION_READY_MOVE = 5
    DOING_CORRECTION_READY_MOVE = 6
    REQUIRE_CORRECTION_OBJECT_MOVE = 7
    DOING_CORRECTION_OBJECT_MOVE = 8


# ========== 子过程槽位 ==========

@dataclass(frozen=True)
class NoSubProcedure:
    """槽位为空"""


@dataclass(frozen=True)
class ActiveReadyMove:
    procedure: ReadyMove


@dataclass(frozen=True)
class ActiveObjectMove:
    procedure: ObjectMove


SubProcedureSlot = Union[NoSubProcedure, ActiveReadyMove, ActiveObjectMove]
NO_SUB_PROCEDURE = NoSubProcedure()


def correction_direction(direction: Direction, object_lateral: float, base: float) -> Direction:
    """物体横向偏离中线时，把它推回中线的方向"""
    if direction.is_horizontal:
        return Direction.DOWN if object_lateral < base else Direction.UP
    return Direction.RIGHT if object_lateral < base else Direction.LEFT


class ObjectLine:
    """物体直线推送控制器

    同一时刻最多只有一个子过程存活；观察到子过程结束后立即清空槽位，
    再进入下一个状态。

    Attributes:
        state: 当前状态
        direction: 主推动方向
        target: 物体沿主方向的目标坐标（像素）
        base: 物体横向中线坐标（像素）
        sub: 子过程槽位

    Example:
        >>> line = ObjectLine(context, ActuatorRef(actuator), Direction.RIGHT, target=300, base=110)
        >>> line.start()
        >>> context.scheduler.run(stop_when=line.is_done)
    """

    def __init__(self,
                 context: RuntimeContext,
                 actuator: ActuatorRef,
                 direction: Direction,
                 target: float,
                 base: float,
                 norm_dev: float = config.OBJECT_NORM_DEV,
                 correction_norm_dev: float = config.CORRECTION_NORM_DEV,
                 period_ms: int = config.OBJECT_LINE_TICK_MS,
                 ready_move_factory: Optional[Callable] = None,
                 object_move_factory: Optional[Callable] = None):
        """初始化控制器

        Args:
            context: 运行上下文
            actuator: 执行器的非持有引用
            direction: 主推动方向
            target: 目标坐标
            base: 横向中线坐标
            norm_dev: 推动时允许的横向偏离
            correction_norm_dev: 纠正推动时的横向偏离（足够大，相当于不检查）
            period_ms: tick周期（毫秒）
            ready_move_factory: (context, actuator, side) -> 就位子过程
            object_move_factory: (context, actuator, direction, target, base, norm_dev) -> 推动子过程
        """
        self.context = context
        self.actuator = actuator
        self.direction = direction
        self.target = target
        self.base = base
        self.norm_dev = norm_dev
        self.correction_norm_dev = correction_norm_dev
        self.period_ms = period_ms

        self.ready_move_factory = ready_move_factory or ReadyMove
        self.object_move_factory = object_move_factory or ObjectMove

        self.state = LineState.REQUIRE_READY_MOVE
        self.correction: Optional[Direction] = None
        self.sub: SubProcedureSlot = NO_SUB_PROCEDURE
        self._done = False
        self._task: Optional[TickTask] = None

        self.on_state_change: Optional[Callable[[LineState, LineState], None]] = None
        self.on_finished: Optional[Callable[[], None]] = None

    def is_done(self) -> bool:
        return self._done

    def is_stopped(self) -> bool:
        return self._task is None or not self._task.active

    def start(self):
        if self._done or not self.is_stopped():
            return
        self._task = self.context.scheduler.schedule_periodic(
            self.period_ms, self.movement_loop, name='object-line'
        )
        logger.info(f"[ObjectLine] 开始: dir={self.direction.name}, "
                    f"target={self.target}, base={self.base}")

    def stop(self):
        """停止tick并取消存活的子过程（幂等）"""
        if self._task is not None:
            self._task.cancel()
        if not isinstance(self.sub, NoSubProcedure):
            self.sub.procedure.stop()
            self.sub = NO_SUB_PROCEDURE
            logger.info(f"[ObjectLine] 已停止 @ {self.state.name}")

    # ========== tick ==========

    def movement_loop(self):
        access = self.actuator.acquire()
        if not access.available:
            logger.info("[ObjectLine] 执行器不可用，停止")
            self.stop()
            return

        vision = self.context.vision
        if not vision.robot_ready() or not vision.object_ready():
            return

        logger.debug(f"[ObjectLine] state={self.state.name}")
        handler = self._handlers[self.state]
        try:
            handler(self)
        except Exception:
            # 不留下失去父控制器的子过程
            self.stop()
            raise

    def _require_ready_move(self):
        self._spawn_ready_move(side_of(self.direction))
        self._set_state(LineState.DOING_READY_MOVE)

    def _doing_ready_move(self):
        if self._wait_ready_move():
            self._set_state(LineState.REQUIRE_OBJECT_MOVE)

    def _require_object_move(self):
        self._spawn_object_move(self.direction, self.target, self.base, self.norm_dev)
        self._set_state(LineState.DOING_OBJECT_MOVE)

    def _doing_object_move(self):
        stop = self._wait_object_move()
        if stop is None:
            return
        if stop == StopCondition.AT_TARGET:
            self._finish()
        elif stop == StopCondition.WRONG_SIDE:
            self._set_state(LineState.REQUIRE_READY_MOVE)
        elif stop == StopCondition.EXCEEDED_NORM:
            self._set_state(LineState.REQUIRE_CORRECTION)
        else:
            raise ControllerStateError(f"推动子过程返回了意外的停止条件: {stop}")

    def _require_correction(self):
        obj = self.context.vision.get_object_box(True)
        lateral = self.direction.lateral_coord(obj.center)
        self.correction = correction_direction(self.direction, lateral, self.base)
        logger.info(f"[ObjectLine] 横向偏离: {lateral:.1f} (中线 {self.base})，"
                    f"纠正方向 {self.correction.name}")
        self._set_state(LineState.REQUIRE_CORRECTION_READY_MOVE)

    def _require_correction_ready_move(self):
        self._spawn_ready_move(side_of(self.correction))
        self._set_state(LineState.DOING_CORRECTION_READY_MOVE)

    def _doing_correction_ready_move(self):
        if self._wait_ready_move():
            self._set_state(LineState.REQUIRE_CORRECTION_OBJECT_MOVE)

    def _require_correction_object_move(self):
        self._spawn_object_move(self.correction, self.base, 0, self.correction_norm_dev)
        self._set_state(LineState.DOING_CORRECTION_OBJECT_MOVE)

    def _doing_correction_object_move(self):
        stop = self._wait_object_move()
        if stop is None:
            return
        if stop in (StopCondition.OKAY, StopCondition.EXCEEDED_NORM):
            raise ControllerStateError(f"纠正推动不应出现停止条件: {stop.name}")
        self._set_state(LineState.REQUIRE_READY_MOVE)

    _handlers = {
        LineState.REQUIRE_READY_MOVE: _require_ready_move,
        LineState.DOING_READY_MOVE: _doing_ready_move,
        LineState.REQUIRE_OBJECT_MOVE: _require_object_move,
        LineState.DOING_OBJECT_MOVE: _doing_object_move,
        LineState.REQUIRE_CORRECTION: _require_correction,
        LineState.REQUIRE_CORRECTION_READY_MOVE: _require_correction_ready_move,
        LineState.DOING_CORRECTION_READY_MOVE: _doing_correction_ready_move,
        LineState.REQUIRE_CORRECTION_OBJECT_MOVE: _require_correction_object_move,
        LineState.DOING_CORRECTION_OBJECT_MOVE: _doing_correction_object_move,
    }

    # ========== 子过程槽位 ==========

    def _spawn_ready_move(self, side: Direction):
        self._ensure_empty_slot()
        procedure = self.ready_move_factory(self.context, self.actuator, side)
        self.sub = ActiveReadyMove(procedure)
        procedure.start()

    def _spawn_object_move(self, direction: Direction, target: float,
                           base: float, norm_dev: float):
        self._ensure_empty_slot()
        procedure = self.object_move_factory(
            self.context, self.actuator, direction, target, base, norm_dev
        )
        self.sub = ActiveObjectMove(procedure)
        procedure.start()

    def _wait_ready_move(self) -> bool:
        """就位子过程完成时清空槽位并返回True"""
        if not isinstance(self.sub, ActiveReadyMove):
            raise ControllerStateError(f"{self.state.name} 状态下没有就位子过程: {self.sub}")
        if not self.sub.procedure.is_done():
            self._check_alive(self.sub.procedure)
            return False
        self.sub.procedure.stop()
        self.sub = NO_SUB_PROCEDURE
        return True

    def _wait_object_move(self) -> Optional[StopCondition]:
        """推动子过程完成时清空槽位并返回停止条件，否则返回None"""
        if not isinstance(self.sub, ActiveObjectMove):
            raise ControllerStateError(f"{self.state.name} 状态下没有推动子过程: {self.sub}")
        procedure = self.sub.procedure
        if not procedure.is_done():
            self._check_alive(procedure)
            return None
        procedure.stop()
        self.sub = NO_SUB_PROCEDURE
        return procedure.get_stop()

    def _check_alive(self, procedure):
        """子过程未完成却已停止（例如其tick出错被取消），无法再等到结果"""
        if procedure.is_stopped():
            raise ControllerStateError(f"{self.state.name} 状态下子过程已终止: {self.sub}")

    def _ensure_empty_slot(self):
        if not isinstance(self.sub, NoSubProcedure):
            raise ControllerStateError(f"子过程仍在运行: {self.sub}")

    def _set_state(self, state: LineState):
        old = self.state
        self.state = state
        logger.info(f"[ObjectLine] {old.name} → {state.name}")
        if self.on_state_change:
            self.on_state_change(old, state)

    def _finish(self):
        if self._task is not None:
            self._task.cancel()
        self._done = True
        logger.info("[ObjectLine] 物体已到达目标")
        if self.on_finished:
            self.on_finished()
