#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
LottieStudio 关键帧动画数据模型
关键帧、属性轨道与动画容器，以及轨道编辑操作
"""

import copy
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union


KeyframeValue = Union[float, str]


class AnimatableProperty(Enum):
    """可动画属性枚举"""
    X = "x"
    Y = "y"
    SCALE_X = "scaleX"
    SCALE_Y = "scaleY"
    ROTATION = "rotation"
    OPACITY = "opacity"
    FILL = "fill"
    STROKE = "stroke"
    STROKE_WIDTH = "strokeWidth"

    @property
    def is_color(self) -> bool:
        return self in (AnimatableProperty.FILL, AnimatableProperty.STROKE)


class EasingType(Enum):
    """缓动类型枚举"""
    LINEAR = "linear"
    EASE_IN = "ease-in"
    EASE_OUT = "ease-out"
    EASE_IN_OUT = "ease-in-out"
    HOLD = "hold"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: Union['EasingType', str, None]) -> Optional['EasingType']:
        """解析缓动名称，同时接受连字符与驼峰写法；未知名称返回 None"""
        if isinstance(value, EasingType):
            return value
        if not isinstance(value, str):
            return None
        return _EASING_ALIASES.get(value.strip().lower().replace("-", "").replace("_", ""))


_EASING_ALIASES = {
    "linear": EasingType.LINEAR,
    "easein": EasingType.EASE_IN,
    "easeout": EasingType.EASE_OUT,
    "easeinout": EasingType.EASE_IN_OUT,
    "hold": EasingType.HOLD,
    "custom": EasingType.CUSTOM,
}


def _as_float_list(value: Any, default: float) -> List[float]:
    if isinstance(value, (list, tuple)):
        return [float(v) for v in value] or [default]
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return [float(value)]
    return [default]


@dataclass
class TangentHandle:
    """贝塞尔切线控制点（每个维度一个分量）"""
    x: List[float]
    y: List[float]

    def component(self, dimension: int, default_x: float, default_y: float) -> Tuple[float, float]:
        """取某一维度的控制点，缺失维度回退到第一个分量"""
        x = self.x[dimension] if dimension < len(self.x) else (self.x[0] if self.x else default_x)
        y = self.y[dimension] if dimension < len(self.y) else (self.y[0] if self.y else default_y)
        return x, y

    def to_dict(self) -> Dict[str, List[float]]:
        return {"x": list(self.x), "y": list(self.y)}


@dataclass
class BezierTangents:
    """
    自定义缓动的贝塞尔切线

    o 为出切线（离开当前关键帧），i 为入切线（进入下一关键帧）。
    x 轴为段内时间比例 (0..1)，y 轴为插值因子，可超出 [0, 1]。
    """
    o: TangentHandle
    i: TangentHandle

    @classmethod
    def linear(cls, dimensions: int = 1) -> 'BezierTangents':
        return cls(
            o=TangentHandle(x=[0.0] * dimensions, y=[0.0] * dimensions),
            i=TangentHandle(x=[1.0] * dimensions, y=[1.0] * dimensions),
        )

    @classmethod
    def from_lottie(cls, out_tangent: Dict[str, Any], in_tangent: Dict[str, Any]) -> 'BezierTangents':
        """从 Lottie 的 {"x": [...], "y": [...]} 结构创建（标量分量会被包装为列表）"""
        return cls(
            o=TangentHandle(
                x=_as_float_list(out_tangent.get("x"), 0.0),
                y=_as_float_list(out_tangent.get("y"), 0.0),
            ),
            i=TangentHandle(
                x=_as_float_list(in_tangent.get("x"), 1.0),
                y=_as_float_list(in_tangent.get("y"), 1.0),
            ),
        )

    def dimension(self, index: int) -> 'BezierTangents':
        """提取单个维度的切线对"""
        ox, oy = self.o.component(index, 0.0, 0.0)
        ix, iy = self.i.component(index, 1.0, 1.0)
        return BezierTangents(o=TangentHandle(x=[ox], y=[oy]), i=TangentHandle(x=[ix], y=[iy]))

    @property
    def dimensions(self) -> int:
        return max(len(self.o.x), len(self.o.y), len(self.i.x), len(self.i.y), 1)

    def is_linear(self, tolerance: float = 1e-6) -> bool:
        """判断所有维度是否都等同于线性切线 o=(0,0), i=(1,1)"""
        for d in range(self.dimensions):
            ox, oy = self.o.component(d, 0.0, 0.0)
            ix, iy = self.i.component(d, 1.0, 1.0)
            if (abs(ox) > tolerance or abs(oy) > tolerance
                    or abs(ix - 1.0) > tolerance or abs(iy - 1.0) > tolerance):
                return False
        return True

    def to_lottie(self) -> Dict[str, Dict[str, List[float]]]:
        return {"o": self.o.to_dict(), "i": self.i.to_dict()}


@dataclass
class Keyframe:
    """关键帧"""
    time: float
    property: AnimatableProperty
    value: KeyframeValue
    easing: EasingType = EasingType.LINEAR
    easing_bezier: Optional[BezierTangents] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        if isinstance(self.property, str):
            self.property = AnimatableProperty(self.property)
        parsed = EasingType.parse(self.easing)
        if parsed is None:
            raise ValueError(f"Unknown easing: {self.easing!r}")
        self.easing = parsed
        if self.time < 0:
            raise ValueError(f"Keyframe time must be >= 0, got {self.time}")
        if self.easing is EasingType.CUSTOM and self.easing_bezier is None:
            raise ValueError("Custom easing requires bezier tangents")
        if self.easing is not EasingType.CUSTOM:
            self.easing_bezier = None

    @property
    def numeric_value(self) -> float:
        """数值形式的值；颜色等非数值视为 0"""
        if isinstance(self.value, (int, float)) and not isinstance(self.value, bool):
            return float(self.value)
        return 0.0


@dataclass
class KeyframeBounds:
    """时间点前后相邻的关键帧对"""
    before: Keyframe
    after: Keyframe


@dataclass
class PropertyTrack:
    """属性轨道：某个图层某个属性的有序关键帧"""
    layer_id: str
    property: AnimatableProperty
    keyframes: List[Keyframe] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.property, str):
            self.property = AnimatableProperty(self.property)
        self.keyframes.sort(key=lambda k: k.time)
        self._check_times()

    def _check_times(self) -> None:
        for previous, current in zip(self.keyframes, self.keyframes[1:]):
            if current.time <= previous.time:
                raise ValueError(
                    f"Duplicate keyframe time {current.time} on {self.layer_id}/{self.property.value}"
                )

    @property
    def key(self) -> Tuple[str, AnimatableProperty]:
        return self.layer_id, self.property

    @property
    def is_animated(self) -> bool:
        return len(self.keyframes) >= 2

    @property
    def start_time(self) -> float:
        return self.keyframes[0].time if self.keyframes else 0.0

    @property
    def end_time(self) -> float:
        return self.keyframes[-1].time if self.keyframes else 0.0

    def find(self, keyframe_id: str) -> Optional[Keyframe]:
        for keyframe in self.keyframes:
            if keyframe.id == keyframe_id:
                return keyframe
        return None

    def at_time(self, time: float) -> Optional[Keyframe]:
        for keyframe in self.keyframes:
            if keyframe.time == time:
                return keyframe
        return None

    def upsert(self, keyframe: Keyframe) -> Keyframe:
        """插入关键帧；同一时间已有关键帧时原位替换并保留其 id"""
        if keyframe.property is not self.property:
            raise ValueError(
                f"Keyframe property {keyframe.property.value} does not match track {self.property.value}"
            )
        existing = self.at_time(keyframe.time)
        if existing is not None:
            keyframe.id = existing.id
            self.keyframes[self.keyframes.index(existing)] = keyframe
        else:
            self.keyframes.append(keyframe)
            self.keyframes.sort(key=lambda k: k.time)
        return keyframe


@dataclass
class Animation:
    """动画：按 (layer_id, property) 唯一的轨道集合"""
    tracks: List[PropertyTrack] = field(default_factory=list)
    duration: float = 0.0
    fps: float = 30.0
    loop: bool = False

    def __post_init__(self):
        seen = set()
        for track in self.tracks:
            if track.key in seen:
                raise ValueError(f"Duplicate track for {track.layer_id}/{track.property.value}")
            seen.add(track.key)

    def __iter__(self) -> Iterator[PropertyTrack]:
        return iter(self.tracks)

    def get_track(self, layer_id: str, prop: Union[AnimatableProperty, str]) -> Optional[PropertyTrack]:
        """获取轨道"""
        prop = AnimatableProperty(prop)
        for track in self.tracks:
            if track.layer_id == layer_id and track.property is prop:
                return track
        return None

    def get_keyframes(self, layer_id: str, prop: Union[AnimatableProperty, str]) -> List[Keyframe]:
        track = self.get_track(layer_id, prop)
        return list(track.keyframes) if track else []

    def tracks_for_layer(self, layer_id: str) -> List[PropertyTrack]:
        return [track for track in self.tracks if track.layer_id == layer_id]

    def add_track(self, track: PropertyTrack) -> PropertyTrack:
        if self.get_track(track.layer_id, track.property) is not None:
            raise ValueError(f"Track already exists for {track.layer_id}/{track.property.value}")
        self.tracks.append(track)
        return track

    def add_keyframe(self, layer_id: str, prop: Union[AnimatableProperty, str], time: float,
                     value: KeyframeValue, easing: Union[EasingType, str] = EasingType.LINEAR,
                     easing_bezier: Optional[BezierTangents] = None) -> Keyframe:
        """添加关键帧（按需创建轨道）"""
        prop = AnimatableProperty(prop)
        keyframe = Keyframe(time=time, property=prop, value=value, easing=easing,
                            easing_bezier=easing_bezier)
        track = self.get_track(layer_id, prop)
        if track is None:
            track = self.add_track(PropertyTrack(layer_id=layer_id, property=prop))
        return track.upsert(keyframe)

    def _locate(self, keyframe_id: str) -> Optional[Tuple[PropertyTrack, Keyframe]]:
        for track in self.tracks:
            keyframe = track.find(keyframe_id)
            if keyframe is not None:
                return track, keyframe
        return None

    def remove_keyframe(self, keyframe_id: str) -> bool:
        """移除关键帧；轨道被清空时一并移除"""
        located = self._locate(keyframe_id)
        if located is None:
            return False
        track, keyframe = located
        track.keyframes.remove(keyframe)
        if not track.keyframes:
            self.tracks.remove(track)
        return True

    def update_keyframe(self, keyframe_id: str, **changes: Any) -> bool:
        """修改关键帧（time/value/easing/easing_bezier）"""
        located = self._locate(keyframe_id)
        if located is None:
            return False
        track, keyframe = located

        unknown = set(changes) - {"time", "value", "easing", "easing_bezier"}
        if unknown:
            raise ValueError(f"Cannot update keyframe fields: {sorted(unknown)}")

        new_time = changes.get("time", keyframe.time)
        if new_time != keyframe.time:
            clash = track.at_time(new_time)
            if clash is not None and clash is not keyframe:
                raise ValueError(f"Track already has a keyframe at {new_time}")

        updated = Keyframe(
            time=new_time,
            property=keyframe.property,
            value=changes.get("value", keyframe.value),
            easing=changes.get("easing", keyframe.easing),
            easing_bezier=changes.get("easing_bezier", keyframe.easing_bezier),
            id=keyframe.id,
        )
        track.keyframes[track.keyframes.index(keyframe)] = updated
        track.keyframes.sort(key=lambda k: k.time)
        return True

    def remove_layer_tracks(self, layer_id: str) -> int:
        """移除图层的全部轨道，返回移除数量"""
        before = len(self.tracks)
        self.tracks = [track for track in self.tracks if track.layer_id != layer_id]
        return before - len(self.tracks)

    def keyframe_count(self) -> int:
        return sum(len(track.keyframes) for track in self.tracks)

    def copy(self) -> 'Animation':
        return copy.deepcopy(self)
