#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Lottie 文件解析与结构校验
读取 JSON、检查必需字段与图层结构、提取元数据
"""

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .exceptions import LottieParseError
from .logger import get_logger

logger = get_logger(__name__)

TRANSFORM_PROPERTIES = ("p", "a", "s", "r", "o")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class ValidationResult:
    """校验结果"""
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class LottieMetadata:
    """动画元数据"""
    version: Optional[str]
    width: float
    height: float
    frame_rate: float
    in_point: float
    out_point: float
    total_frames: float
    duration: float
    name: Optional[str] = None
    background_color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "width": self.width,
            "height": self.height,
            "frame_rate": self.frame_rate,
            "in_point": self.in_point,
            "out_point": self.out_point,
            "total_frames": self.total_frames,
            "duration": self.duration,
            "name": self.name,
            "background_color": self.background_color,
        }


def parse_lottie_json(text: Union[str, bytes]) -> Dict[str, Any]:
    """解析 JSON 文本，根节点必须是对象"""
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise LottieParseError(f"Invalid JSON format: {e}")

    if not isinstance(data, dict):
        raise LottieParseError(f"Lottie data must be an object, got {type(data).__name__}")
    return data


def read_lottie_file(file_path: Union[str, Path]) -> Dict[str, Any]:
    """读取 Lottie 文件"""
    path = Path(file_path)
    if not path.exists():
        raise LottieParseError(f"File not found: {path}")
    if not path.is_file():
        raise LottieParseError(f"Path is not a file: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise LottieParseError(f"Failed to read Lottie file: {e}")

    data = parse_lottie_json(content)
    logger.info(f"读取 Lottie 文件: {path} ({len(data.get('layers') or [])} 个图层)")
    return data


def validate_lottie(document: Any) -> ValidationResult:
    """校验文档结构，不修改输入"""
    errors: List[str] = []
    warnings: List[str] = []

    if not isinstance(document, dict):
        errors.append("Lottie data must be an object")
        return ValidationResult(valid=False, errors=errors, warnings=warnings)

    if not document.get("v"):
        errors.append("Missing required field: v (version)")

    fr = document.get("fr")
    if not _is_number(fr) or fr <= 0:
        errors.append("Invalid or missing frame rate (fr): must be a positive number")

    ip, op = document.get("ip"), document.get("op")
    if not _is_number(ip):
        errors.append("Missing required field: ip (in point)")
    if not _is_number(op):
        errors.append("Missing required field: op (out point)")
    if _is_number(ip) and _is_number(op) and op <= ip:
        errors.append("Out point (op) must be greater than in point (ip)")

    for key, label in (("w", "width"), ("h", "height")):
        value = document.get(key)
        if not _is_number(value) or value <= 0:
            errors.append(f"Invalid or missing {label} ({key}): must be a positive number")

    layers = document.get("layers")
    if not isinstance(layers, list):
        errors.append("Missing or invalid layers array")
    else:
        if not layers:
            warnings.append("Animation has no layers")
        for index, layer in enumerate(layers):
            _validate_layer(layer, index, errors, warnings)

    if "assets" in document and not isinstance(document["assets"], list):
        errors.append("Assets must be an array")

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def _validate_layer(layer: Any, index: int, errors: List[str], warnings: List[str]) -> None:
    prefix = f"Layer {index}"
    if not isinstance(layer, dict):
        errors.append(f"{prefix}: Layer must be an object")
        return

    if not _is_number(layer.get("ty")):
        errors.append(f"{prefix}: Missing or invalid type (ty)")
    if not layer.get("nm"):
        warnings.append(f"{prefix}: Missing name (nm)")

    for key, label in (("ind", "index"), ("ip", "in point"), ("op", "out point"), ("st", "start time")):
        if not _is_number(layer.get(key)):
            errors.append(f"{prefix}: Missing or invalid {label} ({key})")

    transform = layer.get("ks")
    if not isinstance(transform, dict) or not transform:
        errors.append(f"{prefix}: Missing or invalid transform (ks)")
    else:
        for prop in TRANSFORM_PROPERTIES:
            if not transform.get(prop):
                errors.append(f"{prefix} transform: Missing {prop} property")
            elif prop == "p" and isinstance(transform[prop], dict) and transform[prop].get("s") is True:
                # 分量位置 {s: true, x, y}
                for axis in ("x", "y"):
                    _validate_animated_property(transform[prop].get(axis), f"{prefix} transform.p.{axis}", errors)
            else:
                _validate_animated_property(transform[prop], f"{prefix} transform.{prop}", errors)

    if layer.get("ty") == 4:
        shapes = layer.get("shapes")
        if not isinstance(shapes, list):
            errors.append(f"{prefix}: Shape layer missing shapes array")
        elif not shapes:
            warnings.append(f"{prefix}: Shape layer has no shapes")


def _validate_animated_property(prop: Any, path: str, errors: List[str]) -> None:
    if not isinstance(prop, dict):
        errors.append(f"{path}: Invalid animated property")
        return

    flag = prop.get("a")
    if not _is_number(flag) or flag not in (0, 1):
        errors.append(f"{path}: Missing or invalid 'a' flag (must be 0 or 1)")

    if "k" not in prop:
        errors.append(f"{path}: Missing 'k' (value or keyframes)")
        return

    if flag == 1:
        if not isinstance(prop["k"], list):
            errors.append(f"{path}: Animated property 'k' must be an array of keyframes")
            return
        for i, keyframe in enumerate(prop["k"]):
            if not isinstance(keyframe, dict):
                errors.append(f"{path} keyframe {i}: Keyframe must be an object")
                continue
            if not _is_number(keyframe.get("t")):
                errors.append(f"{path} keyframe {i}: Missing or invalid time (t)")
            if keyframe.get("s") is None:
                errors.append(f"{path} keyframe {i}: Missing start value (s)")


def check_for_invalid_numbers(obj: Any, path: str = "root") -> List[str]:
    """递归查找 NaN / Infinity，返回问题路径列表"""
    issues: List[str] = []
    if isinstance(obj, float):
        if math.isnan(obj):
            issues.append(f"{path}: NaN value detected")
        elif math.isinf(obj):
            issues.append(f"{path}: Infinity value detected")
    elif isinstance(obj, list):
        for index, item in enumerate(obj):
            issues.extend(check_for_invalid_numbers(item, f"{path}[{index}]"))
    elif isinstance(obj, dict):
        for key, value in obj.items():
            issues.extend(check_for_invalid_numbers(value, f"{path}.{key}"))
    return issues


def validate_with_message(document: Any) -> ValidationResult:
    """结构校验加数值检查，非有限数值记为错误"""
    result = validate_lottie(document)
    result.errors.extend(check_for_invalid_numbers(document))
    result.valid = not result.errors
    if not result.valid:
        logger.warning(f"Lottie 校验失败: {len(result.errors)} 个错误")
    return result


def extract_metadata(document: Dict[str, Any]) -> LottieMetadata:
    """提取元数据；帧率非正时时长为 0"""
    in_point = document.get("ip") or 0
    out_point = document.get("op") or 0
    frame_rate = document.get("fr") or 0
    total_frames = out_point - in_point
    duration = total_frames / frame_rate if _is_number(frame_rate) and frame_rate > 0 else 0.0

    return LottieMetadata(
        version=document.get("v"),
        width=document.get("w") or 0,
        height=document.get("h") or 0,
        frame_rate=frame_rate,
        in_point=in_point,
        out_point=out_point,
        total_frames=total_frames,
        duration=duration,
        name=document.get("nm"),
        background_color=document.get("bg"),
    )
