"""
运行上下文模块
控制器共享的视觉状态、调度器、状态面板，以及执行器的非持有引用
"""

import weakref
from dataclasses import dataclass, field
from typing import Optional

from minotaur_host.runtime.scheduler import TickScheduler
from minotaur_host.runtime.status import StatusBoard
from minotaur_host.vision.state import VisionState


@dataclass
class RuntimeContext:
    """控制器运行所需的外部协作者"""
    vision: VisionState
    scheduler: TickScheduler = field(default_factory=TickScheduler)
    status: StatusBoard = field(default_factory=StatusBoard)


@dataclass(frozen=True)
class ActuatorAccess:
    """一次执行器访问的结果：可用（带执行器对象）或不可用"""
    actuator: Optional[object] = None

    @property
    def available(self) -> bool:
        return self.actuator is not None


UNAVAILABLE = ActuatorAccess()


class ActuatorRef:
    """执行器的非持有引用

    控制器不延长执行器的生命周期；每次使用前调用 acquire()，
    执行器已被释放时得到 UNAVAILABLE，控制器据此静默结束。

    Example:
        >>> ref = ActuatorRef(actuator)
        >>> access = ref.acquire()
        >>> if access.available:
        ...     access.actuator.move((10, 0))
    """

    def __init__(self, actuator):
        self._ref = weakref.ref(actuator)

    def acquire(self) -> ActuatorAccess:
        actuator = self._ref()
        if actuator is None:
            return UNAVAILABLE
        return ActuatorAccess(actuator)

    @property
    def expired(self) -> bool:
        return self._ref() is None
