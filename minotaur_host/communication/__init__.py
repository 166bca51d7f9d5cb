"""
通信模块
执行器串口驱动与二进制指令协议
"""

from .actuator import Actuator
from .protocol import (
    PortSettings, ZaberCmd,
    encode_data, decode_data, build_frame, parse_frame, renumber_frame
)


def create_actuator(port=None, connect=True, **kwargs):
    """
    工厂函数：创建执行器对象

    Args:
        port: 串口名或pyserial URL（如 'COM3'、'/dev/ttyUSB0'、'loop://'），None则使用config
        connect: 是否立即连接
        **kwargs: PortSettings 字段（baudrate, parity, ...）或 Actuator 参数
            （concurrent_axes, step_factor, radix）

    Returns:
        Actuator对象（connect=True且连接失败时仍返回对象，可稍后重试）

    Example:
        >>> actuator = create_actuator('/dev/ttyUSB0', baudrate=9600)
    """
    actuator_keys = ('concurrent_axes', 'step_factor', 'radix')
    actuator_kwargs = {k: kwargs.pop(k) for k in actuator_keys if k in kwargs}

    settings = PortSettings(**kwargs)
    if port is not None:
        settings.port = port

    actuator = Actuator(settings, **actuator_kwargs)
    if connect:
        actuator.connect()
    return actuator


__all__ = [
    'Actuator',
    'create_actuator',
    'PortSettings',
    'ZaberCmd',
    'encode_data',
    'decode_data',
    'build_frame',
    'parse_frame',
    'renumber_frame',
]
