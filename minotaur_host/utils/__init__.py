"""
工具模块
日志配置
"""

from .logger import setup_logger, setup_all_loggers

__all__ = ['setup_logger', 'setup_all_loggers']
