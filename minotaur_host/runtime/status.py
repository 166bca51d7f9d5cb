"""
状态显示模块
控制器每个tick写入的操作员状态文本（仅用于显示，不参与控制）
"""

import itertools
import logging
from collections import OrderedDict
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class StatusBoard:
    """状态文本面板

    每个控制器申请若干标签，逐tick更新文本，结束时移除。
    GUI可以通过 on_change 回调同步显示。

    Example:
        >>> board = StatusBoard()
        >>> label = board.add_label('IDLE')
        >>> board.set_text(label, 'RIGHT')
        >>> board.text(label)
        'RIGHT'
    """

    def __init__(self):
        self._labels: Dict[int, str] = OrderedDict()
        self._ids = itertools.count(1)
        self.on_change: Optional[Callable[[int, Optional[str]], None]] = None

    def add_label(self, text: str = '') -> int:
        label = next(self._ids)
        self._labels[label] = text
        self._notify(label, text)
        return label

    def set_text(self, label: int, text: str):
        if label not in self._labels:
            return
        self._labels[label] = text
        self._notify(label, text)

    def remove_label(self, label: int):
        if self._labels.pop(label, None) is not None:
            self._notify(label, None)

    def text(self, label: int) -> Optional[str]:
        return self._labels.get(label)

    def lines(self):
        """当前所有标签文本（按添加顺序）"""
        return list(self._labels.values())

    def _notify(self, label: int, text: Optional[str]):
        logger.debug(f"状态[{label}] = {text}")
        if self.on_change:
            self.on_change(label, text)
