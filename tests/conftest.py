"""
测试共用夹具
"""

import pytest

from minotaur_host.geometry import BoundingBox
from minotaur_host.runtime import ActuatorRef, RuntimeContext
from minotaur_host.vision import VisionState


def box_at(cx, cy, width=20, height=20):
    """以中心点构造包围盒"""
    return BoundingBox(cx - width / 2.0, cy - height / 2.0, width, height)


class RecordingActuator:
    """只记录运动指令的执行器"""

    def __init__(self):
        self.moves = []

    def move(self, direction, duration=0.1):
        self.moves.append((int(direction[0]), int(direction[1])))
        return True


@pytest.fixture
def context():
    return RuntimeContext(VisionState())


@pytest.fixture
def actuator():
    return RecordingActuator()


@pytest.fixture
def actuator_ref(actuator):
    return ActuatorRef(actuator)
