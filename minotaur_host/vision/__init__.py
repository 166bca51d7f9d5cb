"""
视觉接口模块
控制器消费的包围盒与新鲜度/有效性标志
"""

from .state import VisionState

__all__ = ['VisionState']
