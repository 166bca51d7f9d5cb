"""
地形代价场测试
"""

import pytest
import numpy as np

from minotaur_host.errors import TerrainError
from minotaur_host.navigation.terrain import (
    TERRAIN_WALL, TerrainConfig, kernelize, penalty_kernel
)


FLAT = TerrainConfig(spread_wall_penalty=False)
SPREAD = TerrainConfig(wall_penalties=(8, 4, 2), spread_wall_penalty=True)


# ============================================================================
# 平坦代价场
# ============================================================================

def test_flat_copies_costs_and_marks_walls():
    """测试flat：墙→TERRAIN_WALL，其余原样"""
    grid = np.array([
        [0, 3, -1],
        [1, -1, 0],
    ])
    terrain = kernelize(grid, FLAT)

    expected = np.array([
        [0, 3, TERRAIN_WALL],
        [1, TERRAIN_WALL, 0],
    ])
    np.testing.assert_array_equal(terrain, expected)


def test_kernelize_does_not_mutate_input():
    """测试不修改输入栅格"""
    grid = np.zeros((7, 7), dtype=int)
    grid[3, 3] = -1
    before = grid.copy()

    terrain = kernelize(grid, SPREAD)

    np.testing.assert_array_equal(grid, before)
    assert terrain is not grid


def test_single_cell_grid():
    """测试1x1栅格"""
    np.testing.assert_array_equal(kernelize(np.array([[5]]), FLAT), [[5]])
    np.testing.assert_array_equal(kernelize(np.array([[-1]]), SPREAD), [[TERRAIN_WALL]])


def test_custom_wall_value():
    """测试自定义墙取值"""
    grid = np.array([[9, 0, 1]])
    cfg = TerrainConfig(wall_value=9, spread_wall_penalty=False)
    np.testing.assert_array_equal(kernelize(grid, cfg), [[TERRAIN_WALL, 0, 1]])


# ============================================================================
# 墙体惩罚扩散
# ============================================================================

def test_penalty_kernel_rings():
    """测试7x7环形核"""
    kernel = penalty_kernel((8, 4, 2))

    assert kernel.shape == (7, 7)
    assert kernel[3, 3] == 0
    assert kernel[2, 3] == 8 and kernel[4, 4] == 8
    assert kernel[1, 3] == 4 and kernel[5, 1] == 4
    assert kernel[0, 0] == 2 and kernel[6, 3] == 2


def test_spread_single_wall():
    """测试单个墙体的环形惩罚"""
    grid = np.zeros((9, 9), dtype=int)
    grid[4, 4] = -1

    terrain = kernelize(grid, SPREAD)

    assert terrain[4, 4] == TERRAIN_WALL
    assert terrain[4, 5] == 8
    assert terrain[3, 3] == 8
    assert terrain[4, 6] == 4
    assert terrain[1, 4] == 2
    assert terrain[0, 4] == 0
    assert terrain[8, 8] == 0


def test_spread_penalties_sum_over_walls():
    """测试多个墙体覆盖同一栅格时惩罚叠加"""
    grid = np.zeros((7, 7), dtype=int)
    grid[3, 0] = -1
    grid[3, 2] = -1

    terrain = kernelize(grid, SPREAD)

    assert terrain[3, 1] == 16          # 距两个墙都是1格
    assert terrain[3, 3] == 2 + 8
    assert terrain[3, 4] == 0 + 4
    assert terrain[3, 5] == 2
    assert terrain[3, 6] == 0
    assert terrain[0, 1] == 2 + 2


def test_spread_adds_to_cell_cost():
    """测试惩罚叠加在原有代价上"""
    grid = np.full((7, 7), 5)
    grid[3, 3] = -1

    terrain = kernelize(grid, SPREAD)

    assert terrain[3, 4] == 13
    assert terrain[0, 0] == 7


def test_flat_ignores_penalties():
    """测试flat模式不扩散惩罚"""
    grid = np.zeros((7, 7), dtype=int)
    grid[3, 3] = -1
    cfg = TerrainConfig(wall_penalties=(8, 4, 2), spread_wall_penalty=False)

    terrain = kernelize(grid, cfg)

    assert terrain[3, 4] == 0
    assert (terrain == TERRAIN_WALL).sum() == 1


# ============================================================================
# 输入校验
# ============================================================================

@pytest.mark.parametrize('grid', [
    np.zeros((0, 0)),
    np.zeros(4),
    np.zeros((2, 2, 2)),
])
def test_rejects_malformed_grid(grid):
    """测试非二维或空栅格"""
    with pytest.raises(TerrainError):
        kernelize(grid, FLAT)


def test_rejects_negative_cost():
    """测试非墙负代价"""
    grid = np.array([[0, -2], [0, 0]])
    with pytest.raises(TerrainError):
        kernelize(grid, FLAT)
    with pytest.raises(ValueError):
        kernelize(grid, FLAT)
