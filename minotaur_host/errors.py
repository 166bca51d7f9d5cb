"""
自定义异常类：定义导航与执行器模块的专用异常
"""


class MinotaurError(Exception):
    """基础异常类"""
    pass


class TerrainError(MinotaurError, ValueError):
    """占据栅格无效（维度错误、出现负代价等）"""
    pass


class PathPlanningError(MinotaurError):
    """路径规划失败异常"""
    pass


class InvalidCellError(PathPlanningError, ValueError):
    """起点/终点越界或落在墙上（前置条件不满足）"""
    pass


class PathNotFoundError(PathPlanningError):
    """终点不可达"""
    pass


class ActuatorError(MinotaurError):
    """执行器基础异常"""
    pass


class ChannelError(ActuatorError):
    """串口无法打开或配置无效"""
    pass


class ChannelNotReadyError(ActuatorError):
    """需要发送指令时串口未打开"""
    pass


class ProtocolError(ActuatorError, ValueError):
    """指令编码参数越界"""
    pass


class ControllerStateError(MinotaurError):
    """控制器状态与子过程不一致"""
    pass
