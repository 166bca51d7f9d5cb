"""
日志配置测试
"""

import logging

import pytest

from minotaur_host import config
from minotaur_host.utils import setup_all_loggers, setup_logger


@pytest.fixture
def logger_name():
    name = 'minotaur_host.test_logger'
    yield name
    # 清理挂载的handler
    setup_logger(name, None, logging.INFO, console=False)


def test_file_handler_writes(tmp_path, logger_name):
    """测试文件handler写入格式化日志"""
    log_file = tmp_path / 'logs' / 'nav.log'
    logger = setup_logger(logger_name, str(log_file), logging.DEBUG, console=False)

    logger.debug('开始跟随路径')
    for handler in logger.handlers:
        handler.flush()

    text = log_file.read_text(encoding='utf-8')
    assert 'minotaur_host.test_logger - DEBUG - 开始跟随路径' in text


def test_reconfigure_replaces_handlers(tmp_path, logger_name):
    """测试重复配置不叠加handler，级别随之更新"""
    setup_logger(logger_name, str(tmp_path / 'a.log'), logging.INFO, console=True)
    logger = setup_logger(logger_name, None, logging.WARNING, console=True)

    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING
    assert logger.handlers[0].level == logging.WARNING


def test_setup_all_without_outputs(monkeypatch, tmp_path):
    monkeypatch.setattr(config, 'ENABLE_FILE_LOG', False)
    monkeypatch.setattr(config, 'ENABLE_CONSOLE_LOG', False)

    loggers = setup_all_loggers(str(tmp_path), level=logging.DEBUG)

    assert set(loggers) == {'main', 'communication', 'navigation', 'runtime'}
    assert loggers['navigation'].name == 'minotaur_host.navigation'
    assert all(not lg.handlers for lg in loggers.values())
    assert not any(tmp_path.iterdir())
