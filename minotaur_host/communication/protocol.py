"""
执行器通信协议定义
定义主机端发送给两路单轴步进控制器的二进制指令帧

帧格式（6字节）：
    [device_id, command, d0, d1, d2, d3]

d0..d3 为数据的4位定长数字，d_i 的权重为 radix**i（低位在前）；
负数先加上 radix**4 折叠到无符号范围再分解。
"""

from dataclasses import dataclass
from typing import List, Sequence

import serial

from minotaur_host import config
from minotaur_host.errors import ChannelError, ProtocolError

CMD_SIZE = 2
DATA_SIZE = 4
FRAME_SIZE = CMD_SIZE + DATA_SIZE


class ZaberCmd:
    """指令编号定义"""
    RENUMBER = 2         # 设备重新编号（广播）
    MOVE_RELATIVE = 21   # 相对移动


# 设备号0为广播地址
BROADCAST_DEVICE = 0


def _check_radix(radix: int):
    if not 2 <= radix <= 256:
        raise ProtocolError(f"进制必须在 [2, 256] 范围内: {radix}")


def data_range(radix: int = config.BYTE_RANGE):
    """可编码的有符号范围 [low, high)"""
    full = radix ** DATA_SIZE
    return -(full // 2), full // 2


def encode_data(value: int, radix: int = config.BYTE_RANGE) -> List[int]:
    """将有符号整数编码为4位数字

    Args:
        value: 待编码的值，范围 [-radix**4/2, radix**4/2)
        radix: 进制（字节为256）

    Returns:
        长度为4的数字列表，下标 i 的权重为 radix**i

    Raises:
        ProtocolError: 进制或数值越界

    Example:
        >>> encode_data(-5, radix=36)
        [31, 35, 35, 35]
    """
    _check_radix(radix)
    if isinstance(value, bool) or int(value) != value:
        raise ProtocolError(f"数据必须是整数: {value!r}")
    value = int(value)

    low, high = data_range(radix)
    if not low <= value < high:
        raise ProtocolError(f"数据 {value} 超出可编码范围 [{low}, {high})")

    if value < 0:
        value = radix ** DATA_SIZE + value

    digits = [0] * DATA_SIZE
    for i in range(DATA_SIZE - 1, -1, -1):
        weight = radix ** i
        digits[i] = value // weight
        value -= weight * digits[i]
    return digits


def decode_data(digits: Sequence[int], radix: int = config.BYTE_RANGE) -> int:
    """encode_data 的逆运算"""
    _check_radix(radix)
    if len(digits) != DATA_SIZE:
        raise ProtocolError(f"数据长度必须为{DATA_SIZE}: {len(digits)}")
    if any(not 0 <= d < radix for d in digits):
        raise ProtocolError(f"数字超出进制范围: {list(digits)}")

    value = sum(d * radix ** i for i, d in enumerate(digits))
    full = radix ** DATA_SIZE
    if value >= full // 2:
        value -= full
    return value


def build_frame(device: int, command: int, data: int = 0,
                radix: int = config.BYTE_RANGE) -> bytes:
    """组装一帧指令

    Args:
        device: 设备号（0-255）
        command: 指令编号（0-255）
        data: 有符号数据
        radix: 数据进制

    Returns:
        6字节指令帧
    """
    if not 0 <= device <= 255:
        raise ProtocolError(f"设备号越界: {device}")
    if not 0 <= command <= 255:
        raise ProtocolError(f"指令编号越界: {command}")
    return bytes([device, command] + encode_data(data, radix))


def parse_frame(frame: bytes, radix: int = config.BYTE_RANGE):
    """解析一帧指令

    Returns:
        (device, command, data)
    """
    if len(frame) != FRAME_SIZE:
        raise ProtocolError(f"帧长度必须为{FRAME_SIZE}: {len(frame)}")
    return frame[0], frame[1], decode_data(list(frame[CMD_SIZE:]), radix)


def renumber_frame() -> bytes:
    """广播重新编号指令 [0, 2, 0, 0, 0, 0]"""
    return build_frame(BROADCAST_DEVICE, ZaberCmd.RENUMBER, 0)


# ============================================================================
# 串口参数
# ============================================================================

FLOW_CONTROLS = ('none', 'xonxoff', 'rtscts', 'dsrdtr')


@dataclass
class PortSettings:
    """串口参数（操作员可配置，打开串口时校验）"""
    port: str = config.SERIAL_PORT
    baudrate: int = config.BAUDRATE
    bytesize: int = config.BYTESIZE
    parity: str = config.PARITY
    stopbits: float = config.STOPBITS
    flow_control: str = config.FLOW_CONTROL
    timeout: float = config.TIMEOUT

    def validate(self):
        """校验参数

        Raises:
            ChannelError: 参数无效
        """
        errors = []
        if not self.port:
            errors.append("未指定串口")
        if self.baudrate not in serial.Serial.BAUDRATES:
            errors.append(f"不支持的波特率: {self.baudrate}")
        if self.bytesize not in serial.Serial.BYTESIZES:
            errors.append(f"不支持的数据位: {self.bytesize}")
        if self.parity not in serial.Serial.PARITIES:
            errors.append(f"不支持的校验位: {self.parity}")
        if self.stopbits not in serial.Serial.STOPBITS:
            errors.append(f"不支持的停止位: {self.stopbits}")
        if self.flow_control not in FLOW_CONTROLS:
            errors.append(f"不支持的流控: {self.flow_control}")
        if self.timeout is not None and self.timeout < 0:
            errors.append(f"超时不能为负: {self.timeout}")

        if errors:
            raise ChannelError("; ".join(errors))

    def serial_kwargs(self) -> dict:
        """转换为 pyserial 的关键字参数"""
        return {
            'baudrate': self.baudrate,
            'bytesize': self.bytesize,
            'parity': self.parity,
            'stopbits': self.stopbits,
            'xonxoff': self.flow_control == 'xonxoff',
            'rtscts': self.flow_control == 'rtscts',
            'dsrdtr': self.flow_control == 'dsrdtr',
            'timeout': self.timeout,
            'write_timeout': self.timeout,
        }
