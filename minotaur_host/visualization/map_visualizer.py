"""
路径规划可视化模块
显示占据栅格、代价场和规划路径
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt

from minotaur_host import config
from minotaur_host.navigation.terrain import TERRAIN_WALL

logger = logging.getLogger(__name__)


class MapVisualizer:
    """规划结果可视化器

    功能：
    - 显示代价场（墙为黑色，代价越高颜色越深）
    - 显示规划路径、起点和终点
    - 保存为图片

    Example:
        >>> visualizer = MapVisualizer()
        >>> visualizer.update(cost_field, path)
        >>> visualizer.save_figure('plan.png')
    """

    def __init__(self, figsize: Optional[Tuple[int, int]] = None, ax=None):
        """初始化可视化器

        Args:
            figsize: 图形大小（宽, 高）单位英寸，None则使用config.VISUALIZE_WINDOW_SIZE
            ax: 已有的子图，None则新建图形
        """
        if ax is None:
            if figsize is None:
                figsize = config.VISUALIZE_WINDOW_SIZE
            self.fig, self.ax = plt.subplots(figsize=figsize)
        else:
            self.fig, self.ax = ax.figure, ax

        self.img_map = None
        self.path_line = None
        self.markers = []

    def update(self, cost_field: np.ndarray, path: Optional[Sequence[Tuple[int, int]]] = None):
        """刷新显示

        Args:
            cost_field: 代价场（墙为 TERRAIN_WALL）
            path: 栅格路径 [(x, y), ...]
        """
        self._update_map(cost_field)
        self._update_path(list(path) if path else [])

    def _update_map(self, cost_field: np.ndarray):
        walls = cost_field == TERRAIN_WALL
        costs = np.where(walls, 0, cost_field).astype(float)
        peak = costs.max() if costs.size else 0.0

        # 归一化到[0, 0.8]，墙固定为1（黑）
        shade = costs / peak * 0.8 if peak > 0 else costs
        shade[walls] = 1.0

        if self.img_map is not None:
            self.img_map.remove()
        self.img_map = self.ax.imshow(
            shade,
            cmap='gray_r',
            vmin=0.0,
            vmax=1.0,
            origin='upper',
            interpolation='nearest'
        )

        rows, cols = cost_field.shape
        self.ax.set_xlim(-0.5, cols - 0.5)
        self.ax.set_ylim(rows - 0.5, -0.5)
        self.ax.set_xlabel('X (cell)', fontsize=10)
        self.ax.set_ylabel('Y (cell)', fontsize=10)
        self.ax.set_title('Cost Field', fontsize=12, fontweight='bold')

    def _update_path(self, path: List[Tuple[int, int]]):
        if self.path_line is not None:
            self.path_line.remove()
            self.path_line = None
        for marker in self.markers:
            marker.remove()
        self.markers = []
        if not path:
            return

        xs = [p[0] for p in path]
        ys = [p[1] for p in path]

        self.path_line, = self.ax.plot(
            xs, ys,
            '-',
            color=config.COLOR_PATH,
            linewidth=2,
            marker='o',
            markersize=4,
            alpha=0.8,
            zorder=7,
            label='Planned Path'
        )
        self.markers = [
            self.ax.scatter([xs[0]], [ys[0]], c=config.COLOR_START, s=80, zorder=8, label='Start'),
            self.ax.scatter([xs[-1]], [ys[-1]], c=config.COLOR_GOAL, s=80, marker='*', zorder=8, label='Goal'),
        ]
        self.ax.legend(loc='upper right')

    def show(self):
        """显示窗口（阻塞模式）"""
        plt.show()

    def close(self):
        """关闭窗口"""
        plt.close(self.fig)

    def save_figure(self, filename: str):
        """保存当前图形

        Args:
            filename: 文件路径
        """
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)

        self.fig.savefig(filename, dpi=150, bbox_inches='tight')
        logger.info(f"[可视化] 图形已保存: {filename}")


def save_plan_figure(cost_field: np.ndarray,
                     path: Optional[Sequence[Tuple[int, int]]],
                     filename: str):
    """把规划结果保存为图片（无需显示窗口）"""
    visualizer = MapVisualizer()
    try:
        visualizer.update(cost_field, path)
        visualizer.save_figure(filename)
    finally:
        visualizer.close()
