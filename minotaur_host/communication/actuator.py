"""
执行器驱动模块
通过串口向X/Y两路单轴步进控制器发送相对移动指令
"""

import logging
import threading
import time
from typing import Callable, Optional, Sequence

import serial

from minotaur_host import config
from minotaur_host.errors import ActuatorError, ChannelError, ChannelNotReadyError
from minotaur_host.geometry import Direction
from minotaur_host.communication.protocol import (
    PortSettings, ZaberCmd, build_frame, renumber_frame
)


class Actuator:
    """双轴执行器

    - move() 把方向向量拆成X、Y两次单轴移动
    - 每个单位步发送一帧相对移动指令，帧间休眠 duration/|value| 秒
    - move() 在两轴全部步数发送完毕后才返回（并行模式下同样等待两轴结束）

    Example:
        >>> actuator = Actuator(PortSettings(port='/dev/ttyUSB0'))
        >>> if actuator.connect():
        ...     actuator.move((5, -3), duration=0.1)
        >>> actuator.disconnect()
    """

    def __init__(self,
                 settings: PortSettings = None,
                 concurrent_axes: bool = config.CONCURRENT_AXES,
                 step_factor: int = config.STEP_FACTOR,
                 radix: int = config.BYTE_RANGE,
                 sleep: Callable[[float], None] = time.sleep):
        """初始化执行器（不打开串口）

        Args:
            settings: 串口参数，None则使用config中的默认值
            concurrent_axes: 是否两轴并行发送
            step_factor: 每个单位步的微步数
            radix: 数据编码进制
            sleep: 休眠函数（测试时可替换）
        """
        self.settings = settings if settings else PortSettings()
        self.concurrent_axes = concurrent_axes
        self.step_factor = step_factor
        self.radix = radix
        self._sleep = sleep

        self.serial: Optional[serial.Serial] = None
        self.x_device = config.DEVICE_X
        self.y_device = config.DEVICE_Y

        self._write_lock = threading.Lock()
        self.frames_sent = 0

        # 操作员提示回调
        self.on_error: Optional[Callable[[str], None]] = None

        self.logger = logging.getLogger(__name__)

    # ========== 串口管理 ==========

    def connect(self) -> bool:
        """按当前参数打开串口，并广播设备重新编号

        Returns:
            连接成功返回True，失败返回False
        """
        # 重新连接时先释放旧句柄
        if self.is_connected():
            self.disconnect()

        try:
            self.settings.validate()
            self.serial = serial.serial_for_url(
                self.settings.port,
                **self.settings.serial_kwargs()
            )
        except (ChannelError, serial.SerialException, ValueError) as e:
            self.serial = None
            self._report(f"{self.settings.port} 无法打开: {e}")
            return False

        self.logger.info(f"{self.settings.port} 打开成功 @ {self.settings.baudrate}")
        try:
            self.serial.flush()
            self.set_device_number()
        except (ActuatorError, serial.SerialException) as e:
            self._report(f"{self.settings.port} 初始化失败: {e}")
            self.serial.close()
            self.serial = None
            return False
        return True

    def disconnect(self):
        """关闭串口"""
        if self.serial and self.serial.is_open:
            self.serial.flush()
            self.serial.close()
            self.logger.info(f"{self.settings.port} 已关闭")

    def is_connected(self) -> bool:
        return self.serial is not None and self.serial.is_open

    def set_device_number(self):
        """广播重新编号，并恢复默认的X/Y设备号"""
        self._write_frame(renumber_frame())
        self.x_device = config.DEVICE_X
        self.y_device = config.DEVICE_Y

    def set_port(self, port: str) -> bool:
        """切换串口

        若当前串口已打开，则关闭后在新串口上重新连接。

        Returns:
            成功返回True
        """
        if self.settings.port == port:
            return True

        was_open = self.is_connected()
        self.disconnect()
        self.settings.port = port
        if was_open:
            return self.connect()
        return True

    def change_settings(self, settings: PortSettings) -> bool:
        """修改串口参数（串口已打开时立即生效）

        Returns:
            成功返回True，参数无效时保留原参数并返回False
        """
        try:
            settings.validate()
            if self.is_connected():
                self.serial.apply_settings(settings.serial_kwargs())
        except (ChannelError, serial.SerialException, ValueError) as e:
            self._report(f"串口参数无效: {e}")
            return False

        self.settings = settings
        self.logger.info(f"串口参数已更新: {settings}")
        return True

    def invert_devices(self):
        """交换X/Y对应的物理设备（纠正接线方向）"""
        self.x_device, self.y_device = self.y_device, self.x_device
        self.logger.info(f"设备已交换: X={self.x_device}, Y={self.y_device}")

    # ========== 运动指令 ==========

    def move(self, direction: Sequence[int], duration: float = config.MOVE_DURATION) -> bool:
        """沿方向向量移动

        Args:
            direction: (dx, dy) 两轴步数，符号表示方向
            duration: 每个轴的总时长（秒）

        Returns:
            两轴全部完成返回True；失败时已记录日志并返回False
        """
        dx, dy = int(direction[0]), int(direction[1])
        try:
            if self.concurrent_axes:
                self._move_concurrent(dx, dy, duration)
            else:
                self.move_axis(self.x_device, dx, duration)
                self.move_axis(self.y_device, dy, duration)
        except ActuatorError as e:
            self._report(f"移动 {{ {dx}, {dy} }} 未能完成: {e}")
            return False

        self.logger.info(f"已移动 {{ {dx}, {dy} }}，用时 {duration * 1000:.0f} 毫秒")
        return True

    def move_direction(self, direction: Direction, steps: int = 1,
                       duration: float = config.MOVE_DURATION) -> bool:
        """沿给定方向移动 steps 步"""
        vx, vy = direction.vector
        return self.move((vx * steps, vy * steps), duration)

    def move_axis(self, device: int, value: int, duration: float):
        """单轴移动：发送 |value| 帧相对移动指令

        Args:
            device: 设备号
            value: 有符号步数
            duration: 总时长（秒）

        Raises:
            ChannelNotReadyError: 需要发送时串口未打开，剩余步数放弃
            ProtocolError: 数据无法编码
        """
        magnitude = abs(int(value))
        if magnitude == 0:
            return
        if duration < 0:
            raise ActuatorError(f"时长不能为负: {duration}")

        step = self.step_factor if value > 0 else -self.step_factor
        frame = build_frame(device, ZaberCmd.MOVE_RELATIVE, step, self.radix)
        sleep_step = duration / magnitude

        for _ in range(magnitude):
            self._write_frame(frame)
            self._sleep(sleep_step)

    def _move_concurrent(self, dx: int, dy: int, duration: float):
        """两轴并行发送，等待两轴都结束"""
        errors = []

        def run(device, value):
            try:
                self.move_axis(device, value, duration)
            except ActuatorError as e:
                errors.append(e)

        threads = [
            threading.Thread(target=run, args=(self.x_device, dx), name="Actuator-X"),
            threading.Thread(target=run, args=(self.y_device, dy), name="Actuator-Y"),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        if errors:
            raise errors[0]

    def _write_frame(self, frame: bytes):
        with self._write_lock:
            if not self.is_connected():
                raise ChannelNotReadyError(
                    f"串口 {self.settings.port} 未打开，无法写入"
                )
            try:
                self.serial.write(frame)
            except serial.SerialException as e:
                raise ChannelNotReadyError(f"串口 {self.settings.port} 写入失败: {e}") from e
            self.frames_sent += 1
        self.logger.debug(f"发送帧: {frame.hex(' ')}")

    def _report(self, message: str):
        self.logger.error(message)
        if self.on_error:
            self.on_error(message)
