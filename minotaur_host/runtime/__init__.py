"""
运行时模块
逻辑时钟调度、状态面板和控制器上下文
"""

from .scheduler import TickScheduler, TickTask
from .status import StatusBoard
from .context import RuntimeContext, ActuatorRef, ActuatorAccess, UNAVAILABLE

__all__ = [
    'TickScheduler',
    'TickTask',
    'StatusBoard',
    'RuntimeContext',
    'ActuatorRef',
    'ActuatorAccess',
    'UNAVAILABLE',
]
