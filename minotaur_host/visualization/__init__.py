"""
可视化模块
提供路径规划结果的显示与保存
"""

from .map_visualizer import MapVisualizer, save_plan_figure

__all__ = ['MapVisualizer', 'save_plan_figure']
