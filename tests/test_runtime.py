"""
运行时测试：逻辑时钟调度、状态面板、执行器引用和视觉状态
"""

import gc
import threading

import pytest

from minotaur_host.geometry import BoundingBox
from minotaur_host.runtime import ActuatorRef, StatusBoard, TickScheduler, UNAVAILABLE
from minotaur_host.vision import VisionState

from conftest import RecordingActuator


# ============================================================================
# TickScheduler
# ============================================================================

def test_first_tick_after_one_period():
    """测试任务首次在注册时刻+周期执行"""
    scheduler = TickScheduler()
    calls = []
    scheduler.schedule_periodic(50, lambda: calls.append(scheduler.now))

    scheduler.advance(49)
    assert calls == []
    scheduler.advance(1)
    assert calls == [50]
    scheduler.advance(100)
    assert calls == [50, 100, 150]
    assert scheduler.now == 150


def test_same_time_ticks_run_in_registration_order():
    """测试同一时刻到期的任务按注册顺序执行"""
    scheduler = TickScheduler()
    calls = []
    scheduler.schedule_periodic(50, lambda: calls.append('a'))
    scheduler.schedule_periodic(25, lambda: calls.append('b'))
    scheduler.schedule_periodic(50, lambda: calls.append('c'))

    scheduler.advance(50)

    assert calls == ['b', 'a', 'b', 'c']


def test_cancel_is_idempotent():
    scheduler = TickScheduler()
    calls = []
    task = scheduler.schedule_periodic(10, lambda: calls.append(1))

    scheduler.advance(20)
    task.cancel()
    task.cancel()
    scheduler.advance(50)

    assert len(calls) == 2
    assert task.tick_count == 2
    assert not scheduler.has_active_tasks()
    assert scheduler.next_due() is None


def test_task_cancelled_inside_callback():
    """测试任务在自己的回调中取消"""
    scheduler = TickScheduler()
    calls = []

    def callback():
        calls.append(1)
        task.cancel()

    task = scheduler.schedule_periodic(10, callback)
    scheduler.advance(100)

    assert calls == [1]


def test_failing_task_is_contained(caplog):
    """测试回调异常：记录日志并取消该任务，其它任务继续"""
    scheduler = TickScheduler()
    calls = []

    def broken():
        raise RuntimeError('boom')

    bad = scheduler.schedule_periodic(10, broken, name='broken')
    scheduler.schedule_periodic(10, lambda: calls.append(1))

    scheduler.advance(30)

    assert not bad.active
    assert bad.tick_count == 1
    assert calls == [1, 1, 1]
    assert 'broken' in caplog.text


def test_step_and_next_due():
    scheduler = TickScheduler()
    scheduler.schedule_periodic(30, lambda: None)
    scheduler.schedule_periodic(20, lambda: None)

    assert scheduler.next_due() == 20
    assert scheduler.step()
    assert scheduler.now == 20
    assert scheduler.next_due() == 30


def test_step_without_tasks():
    assert TickScheduler().step() is False


def test_run_until_condition():
    """测试run在条件满足时停止"""
    scheduler = TickScheduler()
    calls = []
    scheduler.schedule_periodic(50, lambda: calls.append(1))

    scheduler.run(stop_when=lambda: len(calls) >= 4, realtime=False)

    assert len(calls) == 4
    assert scheduler.now == 200


def test_run_max_ms():
    scheduler = TickScheduler()
    calls = []
    scheduler.schedule_periodic(50, lambda: calls.append(1))

    scheduler.run(max_ms=120, realtime=False)

    assert len(calls) == 2
    assert scheduler.now == 120


def test_run_returns_when_no_tasks():
    scheduler = TickScheduler()
    task = scheduler.schedule_periodic(10, lambda: task.cancel())
    scheduler.run(realtime=False)
    assert scheduler.now == 10


@pytest.mark.parametrize('period', [0, -5])
def test_invalid_period(period):
    with pytest.raises(ValueError):
        TickScheduler().schedule_periodic(period, lambda: None)


def test_advance_backwards():
    with pytest.raises(ValueError):
        TickScheduler().advance(-1)


# ============================================================================
# StatusBoard
# ============================================================================

def test_status_board_labels():
    """测试标签增删改"""
    board = StatusBoard()
    changes = []
    board.on_change = lambda label, text: changes.append((label, text))

    first = board.add_label('IDLE')
    second = board.add_label('Index: 0')
    board.set_text(first, 'RIGHT')

    assert board.text(first) == 'RIGHT'
    assert board.lines() == ['RIGHT', 'Index: 0']

    board.remove_label(first)
    board.remove_label(first)
    board.set_text(first, 'ignored')

    assert board.lines() == ['Index: 0']
    assert board.text(first) is None
    assert changes == [
        (first, 'IDLE'), (second, 'Index: 0'), (first, 'RIGHT'), (first, None)
    ]


# ============================================================================
# ActuatorRef
# ============================================================================

def test_actuator_ref_available():
    actuator = RecordingActuator()
    ref = ActuatorRef(actuator)

    access = ref.acquire()

    assert access.available
    assert access.actuator is actuator
    assert not ref.expired


def test_actuator_ref_does_not_keep_actuator_alive():
    """测试执行器释放后引用变为不可用"""
    actuator = RecordingActuator()
    ref = ActuatorRef(actuator)

    del actuator
    gc.collect()

    assert ref.expired
    assert ref.acquire() == UNAVAILABLE
    assert not ref.acquire().available


# ============================================================================
# VisionState
# ============================================================================

def test_vision_fresh_until_consumed():
    """测试读取时消费新鲜标志"""
    vision = VisionState()
    assert not vision.is_robot_box_fresh()
    assert vision.get_robot_box() is None

    vision.update_robot_box(BoundingBox(10, 10, 20, 20))
    assert vision.robot_ready()

    assert vision.get_robot_box().center == (20.0, 20.0)
    assert vision.is_robot_box_fresh()
    assert vision.get_robot_box(True).center == (20.0, 20.0)
    assert not vision.is_robot_box_fresh()
    assert vision.is_robot_box_valid()


def test_vision_invalid_box():
    """测试宽高非正的包围盒无效"""
    vision = VisionState()
    vision.update_object_box(BoundingBox(0, 0, 0, 10))

    assert vision.is_object_box_fresh()
    assert not vision.is_object_box_valid()
    assert not vision.object_ready()


def test_vision_invalidate():
    vision = VisionState()
    vision.update_robot_box(BoundingBox(0, 0, 4, 4))
    vision.update_object_box(BoundingBox(0, 0, 4, 4))

    vision.invalidate_robot_box()
    vision.invalidate_object_box()

    assert not vision.robot_ready()
    assert not vision.object_ready()


class CountingLock:
    """记录进入次数的锁"""

    def __init__(self):
        self.inner = threading.Lock()
        self.entered = 0

    def __enter__(self):
        self.entered += 1
        return self.inner.__enter__()

    def __exit__(self, *exc):
        return self.inner.__exit__(*exc)


def test_vision_readers_take_lock():
    """测试所有读取接口都在锁内读取标志"""
    vision = VisionState()
    vision.update_robot_box(BoundingBox(0, 0, 4, 4))
    lock = CountingLock()
    vision._lock = lock

    readers = [
        vision.is_robot_box_fresh, vision.is_robot_box_valid, vision.get_robot_box,
        vision.is_object_box_fresh, vision.is_object_box_valid, vision.get_object_box,
        vision.robot_ready, vision.object_ready,
    ]
    for reader in readers:
        reader()

    assert lock.entered == len(readers)
    assert not lock.inner.locked()
