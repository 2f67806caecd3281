#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
LottieStudio 项目核心类
图层、形状元素与项目设置
"""

import copy
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from .animation import Animation


class ElementType(Enum):
    """元素类型枚举（仅支持矩形与椭圆）"""
    RECT = "rect"
    ELLIPSE = "ellipse"


@dataclass
class Transform:
    """变换：位置、缩放倍数、旋转角度（度）与锚点"""
    x: float = 0.0
    y: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    rotation: float = 0.0
    anchor_x: float = 0.0
    anchor_y: float = 0.0


@dataclass
class Style:
    """外观样式；fill/stroke 为十六进制颜色，None 表示无"""
    fill: Optional[str] = None
    stroke: Optional[str] = None
    stroke_width: float = 0.0
    opacity: float = 1.0


@dataclass
class RectElement:
    """矩形元素，(x, y) 为左上角"""
    x: float
    y: float
    width: float
    height: float
    roundness: float = 0.0
    name: str = "Rectangle"
    transform: Transform = field(default_factory=Transform)
    style: Style = field(default_factory=Style)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    type = ElementType.RECT

    @property
    def center(self):
        return self.x + self.width / 2, self.y + self.height / 2

    @property
    def size(self):
        return self.width, self.height


@dataclass
class EllipseElement:
    """椭圆元素"""
    cx: float
    cy: float
    rx: float
    ry: float
    name: str = "Ellipse"
    transform: Transform = field(default_factory=Transform)
    style: Style = field(default_factory=Style)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    type = ElementType.ELLIPSE

    @property
    def center(self):
        return self.cx, self.cy

    @property
    def size(self):
        return self.rx * 2, self.ry * 2


Element = Union[RectElement, EllipseElement]


@dataclass
class Layer:
    """图层"""
    name: str
    element: Element
    visible: bool = True
    # 图层在文档中的入点/出点/起始帧，None 表示沿用项目范围
    in_point: Optional[float] = None
    out_point: Optional[float] = None
    start_time: Optional[float] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass
class ProjectSettings:
    """项目设置"""
    name: str = "Untitled"
    width: float = 512
    height: float = 512
    fps: float = 30.0
    duration: float = 0.0
    in_point: float = 0.0
    background_color: Optional[str] = None

    @property
    def out_point(self) -> float:
        return self.in_point + self.duration * self.fps


@dataclass
class Project:
    """完整的内部项目表示"""
    settings: ProjectSettings = field(default_factory=ProjectSettings)
    layers: List[Layer] = field(default_factory=list)
    animation: Animation = field(default_factory=Animation)

    def __post_init__(self):
        self.animation.fps = self.settings.fps
        self.animation.duration = self.settings.duration

    def get_layer(self, layer_id: str) -> Optional[Layer]:
        for layer in self.layers:
            if layer.id == layer_id:
                return layer
        return None

    def add_layer(self, layer: Layer) -> Layer:
        if self.get_layer(layer.id) is not None:
            raise ValueError(f"Layer already exists: {layer.id}")
        self.layers.append(layer)
        return layer

    def remove_layer(self, layer_id: str) -> bool:
        """移除图层及其全部轨道"""
        layer = self.get_layer(layer_id)
        if layer is None:
            return False
        self.layers.remove(layer)
        self.animation.remove_layer_tracks(layer_id)
        return True

    def copy(self) -> 'Project':
        return copy.deepcopy(self)
