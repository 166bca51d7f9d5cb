"""
定时调度模块
单一逻辑时钟上的周期任务，替代各控制器各自的定时器
"""

import heapq
import itertools
import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TickTask:
    """周期任务句柄

    由 TickScheduler.schedule_periodic() 创建，cancel() 幂等。
    """

    def __init__(self, period_ms: int, callback: Callable[[], None], name: str, order: int):
        self.period_ms = period_ms
        self.callback = callback
        self.name = name
        self.order = order
        self.active = True
        self.tick_count = 0

    def cancel(self):
        self.active = False

    def __repr__(self):
        state = 'active' if self.active else 'cancelled'
        return f"TickTask({self.name}, {self.period_ms}ms, {state})"


class TickScheduler:
    """单线程逻辑时钟调度器

    - 时钟以整数毫秒计，只在 advance()/run() 中前进
    - 同一时刻到期的任务按注册顺序执行，每个tick执行完毕后才执行下一个
    - 任务首次到期时间为注册时刻 + 周期
    - 任务回调抛出异常时记录日志并取消该任务，不影响其它任务

    Example:
        >>> scheduler = TickScheduler()
        >>> task = scheduler.schedule_periodic(50, lambda: print('tick'))
        >>> scheduler.advance(100)
        tick
        tick
        >>> task.cancel()
    """

    def __init__(self):
        self._now = 0
        self._heap = []
        self._order = itertools.count()

    @property
    def now(self) -> int:
        """当前逻辑时间（毫秒）"""
        return self._now

    def schedule_periodic(self,
                          period_ms: int,
                          callback: Callable[[], None],
                          name: Optional[str] = None) -> TickTask:
        """注册周期任务

        Args:
            period_ms: 周期（毫秒，>0）
            callback: 无参回调
            name: 任务名（日志用）

        Returns:
            TickTask句柄
        """
        if period_ms <= 0:
            raise ValueError(f"周期必须大于0: {period_ms}")
        order = next(self._order)
        task = TickTask(int(period_ms), callback, name or f"task-{order}", order)
        heapq.heappush(self._heap, (self._now + task.period_ms, task.order, task))
        logger.debug(f"注册任务 {task.name} @ {self._now}ms")
        return task

    def has_active_tasks(self) -> bool:
        return any(task.active for _, _, task in self._heap)

    def next_due(self) -> Optional[int]:
        """下一个有效任务的到期时间"""
        self._drop_cancelled()
        return self._heap[0][0] if self._heap else None

    def advance(self, ms: int):
        """时钟前进 ms 毫秒，执行期间到期的所有tick"""
        if ms < 0:
            raise ValueError("时钟不能倒退")
        deadline = self._now + ms
        while True:
            self._drop_cancelled()
            if not self._heap or self._heap[0][0] > deadline:
                break
            due, order, task = heapq.heappop(self._heap)
            self._now = due
            self._run_task(task)
            if task.active:
                heapq.heappush(self._heap, (due + task.period_ms, order, task))
        self._now = deadline

    def step(self) -> bool:
        """前进到下一个到期时刻并执行

        Returns:
            没有待执行任务时返回False
        """
        due = self.next_due()
        if due is None:
            return False
        self.advance(due - self._now)
        return True

    def run(self,
            stop_when: Optional[Callable[[], bool]] = None,
            max_ms: Optional[int] = None,
            realtime: bool = True):
        """持续运行直到没有任务、stop_when()为真或超过max_ms

        Args:
            stop_when: 停止条件
            max_ms: 最长运行的逻辑时间
            realtime: 是否按真实时间休眠（测试时可关闭）
        """
        start = self._now
        while True:
            if stop_when is not None and stop_when():
                break
            due = self.next_due()
            if due is None:
                break
            if max_ms is not None and due - start > max_ms:
                self.advance(start + max_ms - self._now)
                break
            if realtime:
                time.sleep((due - self._now) / 1000.0)
            self.advance(due - self._now)

    def _drop_cancelled(self):
        while self._heap and not self._heap[0][2].active:
            heapq.heappop(self._heap)

    def _run_task(self, task: TickTask):
        task.tick_count += 1
        try:
            task.callback()
        except Exception:
            logger.exception(f"任务 {task.name} 执行失败，已取消")
            task.cancel()
