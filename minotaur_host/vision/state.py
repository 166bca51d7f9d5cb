"""
视觉状态模块
保存视觉子系统最新输出的机器人/物体包围盒，以及新鲜度和有效性标志

控制器只读取这里的数据；写入只发生在视觉子系统的两次tick之间。
"""

import logging
import threading
from typing import Optional

from minotaur_host.geometry import BoundingBox

logger = logging.getLogger(__name__)


class _TrackedBox:
    """单个被跟踪目标的观测"""

    def __init__(self):
        self.box: Optional[BoundingBox] = None
        self.fresh = False
        self.valid = False

    def update(self, box: Optional[BoundingBox]):
        self.box = box
        self.fresh = True
        self.valid = box is not None and box.is_well_formed

    def invalidate(self):
        self.fresh = False
        self.valid = False

    def read(self, consume: bool) -> Optional[BoundingBox]:
        if consume:
            self.fresh = False
        return self.box


class VisionState:
    """视觉状态

    fresh: 自上次被消费以来是否有新的观测
    valid: 观测的几何形状是否合法（宽高为正、数值有限）

    读取时传入 consume=True 会清除 fresh 标志，
    保证控制器不会对同一帧观测重复动作。

    Example:
        >>> vision = VisionState()
        >>> vision.update_robot_box(BoundingBox(10, 10, 20, 20))
        >>> vision.is_robot_box_fresh()
        True
        >>> vision.get_robot_box(True).center
        (20.0, 20.0)
        >>> vision.is_robot_box_fresh()
        False
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._robot = _TrackedBox()
        self._object = _TrackedBox()

    # ========== 视觉子系统写入 ==========

    def update_robot_box(self, box: Optional[BoundingBox]):
        with self._lock:
            self._robot.update(box)
        if box is not None and not box.is_well_formed:
            logger.debug(f"机器人包围盒无效: {box}")

    def update_object_box(self, box: Optional[BoundingBox]):
        with self._lock:
            self._object.update(box)
        if box is not None and not box.is_well_formed:
            logger.debug(f"物体包围盒无效: {box}")

    def invalidate_robot_box(self):
        """跟踪丢失"""
        with self._lock:
            self._robot.invalidate()

    def invalidate_object_box(self):
        with self._lock:
            self._object.invalidate()

    # ========== 控制器读取 ==========

    def is_robot_box_fresh(self) -> bool:
        with self._lock:
            return self._robot.fresh

    def is_robot_box_valid(self) -> bool:
        with self._lock:
            return self._robot.valid

    def get_robot_box(self, consume: bool = False) -> Optional[BoundingBox]:
        with self._lock:
            return self._robot.read(consume)

    def is_object_box_fresh(self) -> bool:
        with self._lock:
            return self._object.fresh

    def is_object_box_valid(self) -> bool:
        with self._lock:
            return self._object.valid

    def get_object_box(self, consume: bool = False) -> Optional[BoundingBox]:
        with self._lock:
            return self._object.read(consume)

    def robot_ready(self) -> bool:
        """机器人观测本帧可用"""
        with self._lock:
            return self._robot.fresh and self._robot.valid

    def object_ready(self) -> bool:
        with self._lock:
            return self._object.fresh and self._object.valid
