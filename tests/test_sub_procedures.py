"""
推物体子过程测试
"""

import gc

import pytest

from minotaur_host.geometry import Direction
from minotaur_host.navigation.sub_procedures import (
    ObjectMove, ReadyMove, StopCondition, ready_move_path
)
from minotaur_host.runtime import ActuatorRef

from conftest import RecordingActuator, box_at


TICK = 50


def publish(context, robot, obj):
    context.vision.update_robot_box(box_at(*robot))
    context.vision.update_object_box(box_at(*obj))


# ============================================================================
# 就位路径
# ============================================================================

def test_ready_path_robot_already_behind():
    """测试机器人已在物体该侧：直接移到站位点"""
    path = ready_move_path(Direction.LEFT, box_at(60, 110), box_at(160, 110), clearance=10)
    assert path == [(130, 110)]


def test_ready_path_side_step_onto_centre_line():
    path = ready_move_path(Direction.LEFT, box_at(40, 90), box_at(160, 110), clearance=10)
    assert path == [(130, 90), (130, 110)]


def test_ready_path_goes_around_object():
    """测试机器人在物体另一侧：先横向让开再绕过去"""
    path = ready_move_path(Direction.LEFT, box_at(200, 110), box_at(160, 110), clearance=10)
    assert path == [(200, 140), (130, 140), (130, 110)]


def test_ready_path_keeps_lateral_when_clear():
    path = ready_move_path(Direction.LEFT, box_at(200, 200), box_at(160, 110), clearance=10)
    assert path == [(200, 200), (130, 200), (130, 110)]


def test_ready_path_vertical_side():
    """测试竖直方向：站在物体上方"""
    path = ready_move_path(Direction.UP, box_at(100, 20), box_at(100, 100), clearance=10)
    assert path == [(100, 70)]


def test_ready_path_below_object():
    path = ready_move_path(Direction.DOWN, box_at(60, 100), box_at(100, 100), clearance=5)
    assert path == [(60, 100), (60, 125), (100, 125)]


# ============================================================================
# ReadyMove
# ============================================================================

def test_ready_move_follows_path(context, actuator, actuator_ref):
    """测试就位子过程跟随站位路径直到完成"""
    publish(context, (60, 110), (160, 110))
    ready = ReadyMove(context, actuator_ref, Direction.LEFT, loc_accept=6, norm_dev=10, clearance=10)
    ready.start()

    assert ready.procedure.path == [(130.0, 110.0)]

    context.scheduler.advance(TICK)
    assert actuator.moves == [(70, 0)]
    assert not ready.is_done()

    publish(context, (130, 110), (160, 110))
    context.scheduler.advance(TICK)
    context.scheduler.advance(TICK)
    assert ready.is_done()


def test_ready_move_without_observation(context, actuator, actuator_ref):
    """测试缺少观测时跳过就位"""
    ready = ReadyMove(context, actuator_ref, Direction.LEFT)
    ready.start()

    context.scheduler.advance(TICK)

    assert ready.is_done()
    assert actuator.moves == []


def test_ready_move_stop_propagates(context, actuator_ref):
    publish(context, (60, 110), (160, 110))
    ready = ReadyMove(context, actuator_ref, Direction.LEFT)
    ready.start()

    ready.stop()

    assert ready.procedure.is_stopped()
    assert not context.scheduler.has_active_tasks()


def test_ready_move_not_done_before_start(context, actuator_ref):
    assert not ReadyMove(context, actuator_ref, Direction.UP).is_done()


def test_ready_move_stopped_without_result(context, actuator_ref):
    publish(context, (60, 110), (160, 110))
    ready = ReadyMove(context, actuator_ref, Direction.LEFT)
    ready.start()
    assert not ready.is_stopped()

    ready.stop()

    assert ready.is_stopped()
    assert not ready.is_done()


# ============================================================================
# ObjectMove 停止条件
# ============================================================================

@pytest.fixture
def push_right(context, actuator_ref):
    return ObjectMove(context, actuator_ref, Direction.RIGHT, target=300, base=110,
                      norm_dev=10, tolerance=2, max_power=20, period_ms=TICK)


@pytest.mark.parametrize('robot, obj, expected', [
    ((270, 110), (290, 110), StopCondition.OKAY),
    ((278, 110), (298.5, 110), StopCondition.AT_TARGET),
    ((300, 110), (310, 110), StopCondition.AT_TARGET),
    ((300, 110), (290, 110), StopCondition.WRONG_SIDE),
    ((290, 110), (290, 110), StopCondition.WRONG_SIDE),
    ((270, 130), (290, 110), StopCondition.WRONG_SIDE),
    ((270, 125), (290, 125), StopCondition.EXCEEDED_NORM),
    ((270, 118), (290, 118), StopCondition.OKAY),
])
def test_evaluate_push_right(push_right, robot, obj, expected):
    assert push_right.evaluate(box_at(*robot), box_at(*obj)) == expected


def test_evaluate_push_up(context, actuator_ref):
    """测试向上推：目标在y轴，横向为x"""
    move = ObjectMove(context, actuator_ref, Direction.UP, target=50, base=100,
                      norm_dev=10, tolerance=2)

    assert move.evaluate(box_at(100, 120), box_at(100, 100)) == StopCondition.OKAY
    assert move.evaluate(box_at(100, 71), box_at(100, 51)) == StopCondition.AT_TARGET
    assert move.evaluate(box_at(100, 80), box_at(100, 100)) == StopCondition.WRONG_SIDE
    assert move.evaluate(box_at(85, 120), box_at(85, 100)) == StopCondition.EXCEEDED_NORM


# ============================================================================
# ObjectMove tick
# ============================================================================

def test_push_power_clamped(context, actuator, push_right):
    """测试推动步数为剩余距离，上限max_power"""
    push_right.start()

    publish(context, (180, 110), (200, 110))
    context.scheduler.advance(TICK)
    publish(context, (275, 110), (295, 110))
    context.scheduler.advance(TICK)

    assert actuator.moves == [(20, 0), (5, 0)]
    assert push_right.get_stop() == StopCondition.OKAY
    assert not push_right.is_done()


def test_push_stops_on_condition(context, actuator, push_right):
    """测试出现停止条件后结束并不再移动"""
    push_right.start()

    publish(context, (280, 110), (300, 110))
    context.scheduler.advance(TICK)
    publish(context, (180, 110), (200, 110))
    context.scheduler.advance(TICK * 3)

    assert push_right.is_done()
    assert push_right.get_stop() == StopCondition.AT_TARGET
    assert actuator.moves == []
    assert not context.scheduler.has_active_tasks()


def test_push_skips_stale_ticks(context, actuator, push_right):
    push_right.start()

    context.vision.update_robot_box(box_at(180, 110))
    context.scheduler.advance(TICK)

    assert actuator.moves == []
    assert not push_right.is_done()


def test_push_expired_actuator(context):
    """测试执行器释放：tick终止，is_stopped为真但没有停止条件"""
    actuator = RecordingActuator()
    move = ObjectMove(context, ActuatorRef(actuator), Direction.RIGHT, target=300, base=110,
                      norm_dev=10, period_ms=TICK)
    move.start()

    del actuator
    gc.collect()
    publish(context, (180, 110), (200, 110))
    context.scheduler.advance(TICK)

    assert not context.scheduler.has_active_tasks()
    assert move.get_stop() == StopCondition.OKAY
    assert move.is_stopped()
    assert not move.is_done()


def test_push_stop_idempotent(context, push_right):
    push_right.start()
    push_right.stop()
    push_right.stop()
    assert not context.scheduler.has_active_tasks()
