#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Lottie (Bodymovin) 文档格式常量
图层类型、形状类型与动画属性包装器的封闭枚举
"""

from enum import Enum, IntEnum
from typing import Any, Dict, Optional

from .animation import EasingType


# 文档顶层必需字段
REQUIRED_FIELDS = ("v", "fr", "ip", "op", "w", "h", "layers")

DEFAULT_LOTTIE_VERSION = "5.5.7"


class LayerType(IntEnum):
    """图层类型 (ty)"""
    PRECOMP = 0
    SOLID = 1
    IMAGE = 2
    NULL = 3
    SHAPE = 4
    TEXT = 5
    AUDIO = 6
    VIDEO_PLACEHOLDER = 7
    IMAGE_SEQUENCE = 8
    VIDEO = 9
    IMAGE_PLACEHOLDER = 10
    GUIDE = 11
    ADJUSTMENT = 12
    CAMERA = 13
    LIGHT = 14
    DATA = 15

    @classmethod
    def parse(cls, value: Any) -> Optional['LayerType']:
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


_LAYER_TYPE_NAMES = {
    LayerType.PRECOMP: "Precomp",
    LayerType.SOLID: "Solid",
    LayerType.IMAGE: "Image",
    LayerType.NULL: "Null",
    LayerType.SHAPE: "Shape",
    LayerType.TEXT: "Text",
    LayerType.AUDIO: "Audio",
    LayerType.VIDEO_PLACEHOLDER: "Video Placeholder",
    LayerType.IMAGE_SEQUENCE: "Image Sequence",
    LayerType.VIDEO: "Video",
    LayerType.IMAGE_PLACEHOLDER: "Image Placeholder",
    LayerType.GUIDE: "Guide",
    LayerType.ADJUSTMENT: "Adjustment",
    LayerType.CAMERA: "Camera",
    LayerType.LIGHT: "Light",
    LayerType.DATA: "Data",
}


def layer_type_name(value: Any) -> str:
    """图层类型的可读名称"""
    layer_type = LayerType.parse(value)
    if layer_type is None:
        return f"Type {value}"
    return _LAYER_TYPE_NAMES[layer_type]


class ShapeType(Enum):
    """形状条目类型 (ty)，只列出本模块会消费或生成的类型"""
    RECT = "rc"
    ELLIPSE = "el"
    PATH = "sh"
    FILL = "fl"
    STROKE = "st"
    TRANSFORM = "tr"
    GROUP = "gr"

    @classmethod
    def parse(cls, value: Any) -> Optional['ShapeType']:
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def is_supported(self) -> bool:
        return self is not ShapeType.PATH


_SHAPE_TYPE_NAMES = {
    "rc": "Rectangle",
    "el": "Ellipse",
    "sh": "Path",
    "sr": "Polystar",
    "fl": "Fill",
    "st": "Stroke",
    "gf": "Gradient Fill",
    "gs": "Gradient Stroke",
    "tr": "Transform",
    "gr": "Group",
    "tm": "Trim Paths",
    "rd": "Rounded Corners",
    "rp": "Repeater",
    "mm": "Merge Paths",
    "op": "Offset Path",
    "pb": "Pucker/Bloat",
    "tw": "Twist",
    "zz": "Zig Zag",
}


def shape_type_name(value: Any) -> str:
    """形状类型的可读名称"""
    return _SHAPE_TYPE_NAMES.get(value, f"Shape '{value}'")


# Lottie 预设缓动切线 (o = 出切线, i = 入切线)
EASING_PRESETS: Dict[EasingType, Dict[str, Dict[str, float]]] = {
    EasingType.LINEAR: {"o": {"x": 0.0, "y": 0.0}, "i": {"x": 1.0, "y": 1.0}},
    EasingType.EASE_IN: {"o": {"x": 0.42, "y": 0.0}, "i": {"x": 1.0, "y": 1.0}},
    EasingType.EASE_OUT: {"o": {"x": 0.0, "y": 0.0}, "i": {"x": 0.58, "y": 1.0}},
    EasingType.EASE_IN_OUT: {"o": {"x": 0.333, "y": 0.0}, "i": {"x": 0.667, "y": 1.0}},
}


def is_animated(prop: Any) -> bool:
    """动画属性包装器是否为动画 (a == 1 且 k 为关键帧列表)"""
    return (
        isinstance(prop, dict)
        and prop.get("a") == 1
        and isinstance(prop.get("k"), list)
        and len(prop["k"]) > 0
        and isinstance(prop["k"][0], dict)
    )


def static_value(prop: Any, default: Any) -> Any:
    """取包装器的静态值；动画属性取第一个关键帧的起始值"""
    if not isinstance(prop, dict) or "k" not in prop:
        return default
    if is_animated(prop):
        return prop["k"][0].get("s", default)
    return prop["k"]


def static_wrapper(value: Any) -> Dict[str, Any]:
    """非动画包装器"""
    return {"a": 0, "k": value}
