#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
LottieStudio 插值引擎
关键帧求值：线性/缓动/保持/自定义贝塞尔、颜色混合与最短路径角度插值

所有函数均为纯函数且不会抛出异常，非法输入回退到确定的默认值
（数值 0、颜色 #000000、时间被钳制），播放循环可以放心高频调用。
"""

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .animation import (
    AnimatableProperty, Animation, EasingType, Keyframe, KeyframeBounds,
)
from .bezier_solver import ease_from_tangents
from .project import Layer


DEFAULT_COLOR = "#000000"

_HEX_DIGITS = set("0123456789abcdefABCDEF")


def _clamp01(t: float) -> float:
    if t != t:  # NaN
        return 0.0
    return max(0.0, min(1.0, t))


def interpolate_linear(start: float, end: float, t: float) -> float:
    """线性插值，t 钳制到 [0, 1]"""
    return start + (end - start) * _clamp01(t)


def ease_in(t: float) -> float:
    t = _clamp01(t)
    return t * t


def ease_out(t: float) -> float:
    t = _clamp01(t)
    return t * (2 - t)


def ease_in_out(t: float) -> float:
    t = _clamp01(t)
    if t < 0.5:
        return 4 * t * t * t
    return 1 - ((-2 * t + 2) ** 3) / 2


def apply_easing(t: float, easing: Union[EasingType, str, None]) -> float:
    """
    按缓动名称变换插值因子

    同时接受 "ease-in" 与 "easeIn" 两种写法；未知名称、linear 以及缺少
    切线数据的 custom 都按线性处理。hold 为阶跃：t 到达 1 之前保持 0。
    """
    kind = EasingType.parse(easing)
    if kind is EasingType.EASE_IN:
        return ease_in(t)
    if kind is EasingType.EASE_OUT:
        return ease_out(t)
    if kind is EasingType.EASE_IN_OUT:
        return ease_in_out(t)
    if kind is EasingType.HOLD:
        return 1.0 if _clamp01(t) >= 1 else 0.0
    return _clamp01(t)


def apply_keyframe_easing(t: float, keyframe: Keyframe) -> float:
    """使用关键帧自身的缓动（含自定义贝塞尔）变换插值因子，结果可能超出 [0, 1]"""
    if keyframe.easing is EasingType.CUSTOM and keyframe.easing_bezier is not None:
        return ease_from_tangents(_clamp01(t), keyframe.easing_bezier, 0)
    return apply_easing(t, keyframe.easing)


def _segment_factor(before: Keyframe, after: Keyframe, time: float) -> float:
    span = after.time - before.time
    if span <= 0:
        return 0.0
    return _clamp01((time - before.time) / span)


def _sorted(keyframes: Sequence[Keyframe]) -> List[Keyframe]:
    return sorted(keyframes, key=lambda k: k.time)


def find_keyframe_bounds(keyframes: Sequence[Keyframe], time: float) -> Optional[KeyframeBounds]:
    """
    查找包含 time 的相邻关键帧对

    before 为时间不超过 time 的最后一个关键帧，after 为其下一个；
    time 恰好等于最后一个关键帧时返回最后一段。关键帧少于两个或
    time 严格位于轨道范围之外时返回 None。
    """
    if len(keyframes) < 2:
        return None
    if time < keyframes[0].time or time > keyframes[-1].time:
        return None

    for index in range(len(keyframes) - 1, 0, -1):
        if keyframes[index - 1].time <= time:
            return KeyframeBounds(before=keyframes[index - 1], after=keyframes[index])
    return None


def interpolate_keyframes(k1: Keyframe, k2: Keyframe, time: float) -> float:
    """在两个关键帧之间求值；hold 直接返回 k1 的值"""
    if k1.easing is EasingType.HOLD:
        return k1.numeric_value

    eased = apply_keyframe_easing(_segment_factor(k1, k2, time), k1)
    return interpolate_linear(k1.numeric_value, k2.numeric_value, eased)


def get_value_at_time(keyframes: Sequence[Keyframe], time: float) -> float:
    """轨道在任意时间的数值；轨道范围外钳制到首尾关键帧"""
    if not keyframes:
        return 0.0
    if len(keyframes) == 1:
        return keyframes[0].numeric_value

    ordered = _sorted(keyframes)
    if time <= ordered[0].time:
        return ordered[0].numeric_value
    if time >= ordered[-1].time:
        return ordered[-1].numeric_value

    bounds = find_keyframe_bounds(ordered, time)
    if bounds is None:
        return 0.0
    return interpolate_keyframes(bounds.before, bounds.after, time)


# ---------------------------------------------------------------------------
# 颜色
# ---------------------------------------------------------------------------

def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    """十六进制颜色 -> (r, g, b)；支持 3/6 位、可省略 #，非法输入返回黑色"""
    if not isinstance(color, str):
        return 0, 0, 0
    digits = color.strip()
    if digits.startswith("#"):
        digits = digits[1:]
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    if len(digits) != 6 or not set(digits) <= _HEX_DIGITS:
        return 0, 0, 0
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def _channel(value: float) -> int:
    if not math.isfinite(value):
        return 255 if value > 0 else 0
    # 四舍五入（0.5 向上）
    return max(0, min(255, int(math.floor(value + 0.5))))


def rgb_to_hex(r: float, g: float, b: float) -> str:
    """(r, g, b) -> 小写六位十六进制，通道先取整再钳制到 [0, 255]"""
    return "#{:02x}{:02x}{:02x}".format(_channel(r), _channel(g), _channel(b))


def interpolate_color(color1: str, color2: str, t: float) -> str:
    r1, g1, b1 = hex_to_rgb(color1)
    r2, g2, b2 = hex_to_rgb(color2)
    return rgb_to_hex(
        interpolate_linear(r1, r2, t),
        interpolate_linear(g1, g2, t),
        interpolate_linear(b1, b2, t),
    )


def _color_of(keyframe: Keyframe) -> str:
    return keyframe.value if isinstance(keyframe.value, str) else DEFAULT_COLOR


def get_color_at_time(keyframes: Sequence[Keyframe], time: float) -> str:
    """颜色轨道在任意时间的值；空轨道或非字符串值为 #000000"""
    if not keyframes:
        return DEFAULT_COLOR
    if len(keyframes) == 1:
        return _color_of(keyframes[0])

    ordered = _sorted(keyframes)
    if time <= ordered[0].time:
        return _color_of(ordered[0])
    if time >= ordered[-1].time:
        return _color_of(ordered[-1])

    bounds = find_keyframe_bounds(ordered, time)
    if bounds is None:
        return DEFAULT_COLOR
    eased = apply_keyframe_easing(_segment_factor(bounds.before, bounds.after, time), bounds.before)
    return interpolate_color(_color_of(bounds.before), _color_of(bounds.after), eased)


# ---------------------------------------------------------------------------
# 角度
# ---------------------------------------------------------------------------

def normalize_angle(angle: float) -> float:
    """归一化到 [0, 360)，非有限值视为 0"""
    if not math.isfinite(angle):
        return 0.0
    normalized = math.fmod(angle, 360.0)
    if normalized < 0:
        normalized += 360.0
    # fmod 对极小负数可能得到 360.0
    return 0.0 if normalized >= 360.0 else normalized


def interpolate_angle(start: float, end: float, t: float) -> float:
    """
    最短路径角度插值

    差值恰好为 ±180 时保持原符号，即半圈的方向由归一化后两角的差值决定。
    """
    start_norm = normalize_angle(start)
    end_norm = normalize_angle(end)

    diff = end_norm - start_norm
    if diff > 180:
        diff -= 360
    elif diff < -180:
        diff += 360

    return normalize_angle(start_norm + diff * _clamp01(t))


# ---------------------------------------------------------------------------
# 批量采样（播放/导出预览使用）
# ---------------------------------------------------------------------------

def frame_times(fps: float, duration: float) -> np.ndarray:
    """0 到 duration（含）之间每一帧的时间（秒）"""
    if not (fps > 0) or not (duration >= 0) or not math.isfinite(fps * duration):
        return np.zeros(0, dtype=float)
    count = int(math.floor(duration * fps + 1e-9)) + 1
    return np.arange(count, dtype=float) / fps


def _as_times(times: Iterable[float]) -> np.ndarray:
    if isinstance(times, np.ndarray):
        return times.astype(float, copy=False)
    return np.asarray(list(times), dtype=float)


def _segment_factors(keyframes: List[Keyframe], times: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    对已排序关键帧求每个采样时间所在的段索引和缓动后的插值因子

    落在轨道范围外的时间给出端点段，调用方负责钳制。
    """
    key_times = np.array([k.time for k in keyframes], dtype=float)
    index = np.searchsorted(key_times, times, side="right") - 1
    index = np.clip(index, 0, len(keyframes) - 2)

    spans = key_times[index + 1] - key_times[index]
    with np.errstate(divide="ignore", invalid="ignore"):
        raw = np.where(spans > 0, (times - key_times[index]) / spans, 0.0)
    raw = np.clip(np.nan_to_num(raw, nan=0.0), 0.0, 1.0)

    eased = np.empty_like(raw)
    for segment in np.unique(index):
        mask = index == segment
        keyframe = keyframes[segment]
        t = raw[mask]
        if keyframe.easing is EasingType.HOLD:
            eased[mask] = 0.0
        elif keyframe.easing is EasingType.CUSTOM and keyframe.easing_bezier is not None:
            eased[mask] = [ease_from_tangents(float(x), keyframe.easing_bezier, 0) for x in t]
        elif keyframe.easing is EasingType.EASE_IN:
            eased[mask] = t * t
        elif keyframe.easing is EasingType.EASE_OUT:
            eased[mask] = t * (2 - t)
        elif keyframe.easing is EasingType.EASE_IN_OUT:
            eased[mask] = np.where(t < 0.5, 4 * t ** 3, 1 - ((-2 * t + 2) ** 3) / 2)
        else:
            eased[mask] = t
    # 自定义曲线的超调在混合前钳制到 [0, 1]
    return index, np.clip(eased, 0.0, 1.0)


def sample_track(keyframes: Sequence[Keyframe], times: Iterable[float]) -> np.ndarray:
    """在多个时间点上对数值轨道求值，结果与逐点调用 get_value_at_time 一致"""
    times = _as_times(times)
    if not keyframes:
        return np.zeros_like(times)
    if len(keyframes) == 1:
        return np.full_like(times, keyframes[0].numeric_value)

    ordered = _sorted(keyframes)
    values = np.array([k.numeric_value for k in ordered], dtype=float)
    index, eased = _segment_factors(ordered, times)

    result = values[index] + (values[index + 1] - values[index]) * eased
    result = np.where(times <= ordered[0].time, values[0], result)
    result = np.where(times >= ordered[-1].time, values[-1], result)
    return result


def sample_color_track(keyframes: Sequence[Keyframe], times: Iterable[float]) -> List[str]:
    """在多个时间点上对颜色轨道求值"""
    times = _as_times(times)
    if not keyframes:
        return [DEFAULT_COLOR] * len(times)
    if len(keyframes) == 1:
        return [_color_of(keyframes[0])] * len(times)

    ordered = _sorted(keyframes)
    rgb = np.array([hex_to_rgb(_color_of(k)) for k in ordered], dtype=float)
    index, eased = _segment_factors(ordered, times)
    eased = eased[:, None]

    blended = rgb[index] + (rgb[index + 1] - rgb[index]) * eased
    blended = np.where((times <= ordered[0].time)[:, None], rgb[0], blended)
    blended = np.where((times >= ordered[-1].time)[:, None], rgb[-1], blended)
    channels = np.clip(np.floor(blended + 0.5), 0, 255).astype(int)

    first, last = _color_of(ordered[0]), _color_of(ordered[-1])
    colors = []
    for time, (r, g, b) in zip(times, channels):
        # 端点直接返回原始字符串
        if time <= ordered[0].time:
            colors.append(first)
        elif time >= ordered[-1].time:
            colors.append(last)
        else:
            colors.append(rgb_to_hex(r, g, b))
    return colors


# ---------------------------------------------------------------------------
# 图层状态
# ---------------------------------------------------------------------------

@dataclass
class LayerState:
    """某一时刻图层的实时变换与样式"""
    x: float
    y: float
    scale_x: float
    scale_y: float
    rotation: float
    opacity: float
    fill: Optional[str]
    stroke: Optional[str]
    stroke_width: float


def resolve_layer_state(layer: Layer, animation: Animation, time: float) -> LayerState:
    """轨道优先，无关键帧的属性取元素上的静态值"""
    transform = layer.element.transform
    style = layer.element.style

    def number(prop: AnimatableProperty, static: float) -> float:
        keyframes = animation.get_keyframes(layer.id, prop)
        return get_value_at_time(keyframes, time) if keyframes else static

    def color(prop: AnimatableProperty, static: Optional[str]) -> Optional[str]:
        keyframes = animation.get_keyframes(layer.id, prop)
        return get_color_at_time(keyframes, time) if keyframes else static

    return LayerState(
        x=number(AnimatableProperty.X, transform.x),
        y=number(AnimatableProperty.Y, transform.y),
        scale_x=number(AnimatableProperty.SCALE_X, transform.scale_x),
        scale_y=number(AnimatableProperty.SCALE_Y, transform.scale_y),
        rotation=number(AnimatableProperty.ROTATION, transform.rotation),
        opacity=number(AnimatableProperty.OPACITY, style.opacity),
        fill=color(AnimatableProperty.FILL, style.fill),
        stroke=color(AnimatableProperty.STROKE, style.stroke),
        stroke_width=number(AnimatableProperty.STROKE_WIDTH, style.stroke_width),
    )
