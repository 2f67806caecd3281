#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
LottieStudio 错误处理和异常模块
提供自定义异常和错误处理功能
"""

from typing import Optional, Dict, Any, List
from enum import Enum


class ErrorCode(Enum):
    """错误代码枚举"""

    # 文档相关错误
    DOCUMENT_INVALID = "DOC001"
    DOCUMENT_PARSE_ERROR = "DOC002"
    DOCUMENT_UNSUPPORTED = "DOC003"

    # 配置相关错误
    CONFIG_MISSING = "CFG001"
    CONFIG_INVALID = "CFG002"

    # 文件操作错误
    FILE_NOT_FOUND = "FILE001"
    FILE_READ_ERROR = "FILE002"
    FILE_WRITE_ERROR = "FILE003"

    # 未知错误
    UNKNOWN_ERROR = "UNK001"


class LottieStudioError(Exception):
    """LottieStudio 基础异常类"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        hint: Optional[str] = None
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        self.hint = hint

        super().__init__(f"[{code.value}] {message}")

    def __str__(self) -> str:
        result = f"[{self.code.value}] {self.message}"

        if self.hint:
            result += f"\nHint: {self.hint}"

        if self.details:
            result += f"\nDetails: {self.details}"

        return result


class LottieParseError(LottieStudioError):
    """Lottie 文档解析/校验错误"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = list(errors or [])
        code = ErrorCode.DOCUMENT_INVALID if self.errors else ErrorCode.DOCUMENT_PARSE_ERROR

        super().__init__(
            code=code,
            message=message,
            details={"errors": self.errors} if self.errors else None,
            hint="Check that the file is a Bodymovin/Lottie JSON export" if not self.errors else None
        )


class ConfigError(LottieStudioError):
    """配置错误"""

    def __init__(self, message: str, key: Optional[str] = None):
        code = ErrorCode.CONFIG_MISSING if "missing" in message.lower() else ErrorCode.CONFIG_INVALID
        hint = f"Check the '{key}' setting" if key else None

        super().__init__(
            code=code,
            message=message,
            details={"key": key} if key else None,
            hint=hint
        )


class FileError(LottieStudioError):
    """文件操作错误"""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        operation: Optional[str] = None
    ):
        code = ErrorCode.FILE_NOT_FOUND

        if operation == "read" or "read" in message.lower():
            code = ErrorCode.FILE_READ_ERROR
        elif operation == "write" or "write" in message.lower():
            code = ErrorCode.FILE_WRITE_ERROR

        super().__init__(
            code=code,
            message=message,
            details={"path": path, "operation": operation} if (path or operation) else None,
            hint=f"Check the file path: {path}" if path else None
        )


def format_error_message(error: Exception) -> str:
    """格式化错误消息，用于向调用方展示"""

    if isinstance(error, LottieStudioError):
        return str(error)

    error_name = type(error).__name__
    error_message = str(error)

    result = error_name
    if error_message:
        result += f": {error_message}"

    return result
