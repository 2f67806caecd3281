#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
LottieStudio 日志记录器模块
提供日志记录和管理功能
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union
from enum import Enum


class LogLevel(Enum):
    """日志级别枚举"""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @classmethod
    def from_name(cls, name: str) -> 'LogLevel':
        """从级别名称解析（大小写不敏感）"""
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Invalid log level: {name}")


class LogFormat(Enum):
    """日志格式枚举"""
    SIMPLE = "simple"
    DETAILED = "detailed"
    STRUCTURED = "structured"


_FORMATS = {
    LogFormat.SIMPLE: '%(levelname)s - %(message)s',
    LogFormat.DETAILED: '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    LogFormat.STRUCTURED: '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
}


class Logger:
    """简化日志记录器"""

    def __init__(self, name: str, level: Optional[int] = None):
        self.logger = logging.getLogger(name)
        if level is not None:
            self.logger.setLevel(level)

    @classmethod
    def get_logger(cls, name: str) -> 'Logger':
        """获取日志记录器实例"""
        return cls(name)

    @property
    def name(self) -> str:
        return self.logger.name

    def debug(self, message: str) -> None:
        """调试日志"""
        self.logger.debug(message)

    def info(self, message: str) -> None:
        """信息日志"""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """警告日志"""
        self.logger.warning(message)

    def error(self, message: str, exc_info: Optional[BaseException] = None) -> None:
        """错误日志"""
        self.logger.error(message, exc_info=exc_info)

    def critical(self, message: str) -> None:
        """严重错误日志"""
        self.logger.critical(message)


def setup_logging(
    level: Union[LogLevel, str] = LogLevel.INFO,
    format_type: LogFormat = LogFormat.DETAILED,
    enable_console: bool = True,
    log_file: Optional[Union[str, Path]] = None
) -> None:
    """设置包级日志配置

    只配置 ``lottie_studio`` 命名空间下的记录器，不改动宿主应用的根记录器。
    """
    if isinstance(level, str):
        level = LogLevel.from_name(level)

    package_logger = logging.getLogger("lottie_studio")
    package_logger.setLevel(level.value)

    # 清除现有处理器
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    formatter = logging.Formatter(_FORMATS[format_type])

    # 控制台处理器
    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        package_logger.addHandler(console_handler)

    # 文件处理器
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)


def get_logger(name: str) -> Logger:
    """获取日志记录器实例"""
    return Logger(name)
