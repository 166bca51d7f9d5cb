"""
日志系统模块
统一的日志配置和管理

各模块通过 logging.getLogger(__name__) 取得 'minotaur_host.*' 下的logger，
这里只负责在子包的父logger上挂载文件/控制台handler。
"""

import logging
import sys
from pathlib import Path
from datetime import datetime
from logging.handlers import RotatingFileHandler

from minotaur_host import config

# 由本模块挂载的handler带有此标记，重复配置时只替换它们
_HANDLER_TAG = '_minotaur_handler'

# 子包logger名 → 日志文件前缀
PACKAGE_LOGGERS = {
    'main': 'main',
    'communication': 'comm',
    'navigation': 'nav',
    'runtime': 'runtime',
}


def _formatter() -> logging.Formatter:
    return logging.Formatter(fmt=config.LOG_FORMAT, datefmt=config.LOG_DATE_FORMAT)


def _tag(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(_formatter())
    setattr(handler, _HANDLER_TAG, True)
    return handler


def setup_logger(
    name: str,
    log_file: str = None,
    level: int = logging.INFO,
    console: bool = True,
    max_bytes: int = 10*1024*1024,  # 10MB
    backup_count: int = 5
) -> logging.Logger:
    """配置日志记录器

    重复调用时先移除上一次挂载的handler，因此可以用来调整级别或输出目标。

    Args:
        name: 日志记录器名称
        log_file: 日志文件路径（None则不写文件）
        level: 日志级别
        console: 是否输出到控制台
        max_bytes: 单个日志文件最大字节数
        backup_count: 保留的备份文件数量

    Returns:
        配置好的Logger对象

    Example:
        >>> nav_logger = setup_logger('minotaur_host.navigation', 'data/logs/nav.log')
        >>> nav_logger.info('开始跟随路径')
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    for handler in [h for h in logger.handlers if getattr(h, _HANDLER_TAG, False)]:
        logger.removeHandler(handler)
        handler.close()

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_tag(RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        ), level))

    if console:
        logger.addHandler(_tag(logging.StreamHandler(sys.stdout), level))

    return logger


def setup_all_loggers(base_dir: str = None, level=None):
    """配置所有子包的日志记录器

    Args:
        base_dir: 日志基础目录，None则使用config.LOG_DIR
        level: 日志级别，None则使用config.LOG_LEVEL

    Returns:
        dict: 子包名 → Logger
    """
    if base_dir is None:
        base_dir = config.LOG_DIR
    if level is None:
        level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    timestamp = datetime.now().strftime('%Y%m%d')

    loggers = {}
    for package, prefix in PACKAGE_LOGGERS.items():
        log_file = None
        if config.ENABLE_FILE_LOG:
            log_file = Path(base_dir) / f'{prefix}_{timestamp}.log'
        loggers[package] = setup_logger(
            f'minotaur_host.{package}', log_file, level, config.ENABLE_CONSOLE_LOG
        )

    return loggers
