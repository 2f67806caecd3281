#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Lottie 导入器
将 Lottie (Bodymovin) JSON 文档转换为内部项目表示

帧序号转换为秒，缩放百分比与不透明度 0-100 归一化为倍数与 0-1，
向量属性按维度拆分为独立轨道。不支持的图层与形状不会中断导入，
而是记录警告并排除对应图层。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ..config.settings import ImportSettings, get_settings
from .animation import (
    AnimatableProperty, Animation, BezierTangents, EasingType, Keyframe, PropertyTrack,
)
from .exceptions import LottieParseError, format_error_message
from .logger import get_logger
from .lottie_format import (
    REQUIRED_FIELDS, LayerType, ShapeType, is_animated, layer_type_name,
    shape_type_name, static_value,
)
from .lottie_parser import read_lottie_file
from .project import (
    EllipseElement, Element, Layer, Project, ProjectSettings, RectElement, Style, Transform,
)

logger = get_logger(__name__)


@dataclass
class ImportResult:
    """导入结果"""
    success: bool
    project: Optional[Project] = None
    error: Optional[str] = None
    warnings: List[str] = None

    def __post_init__(self):
        if self.warnings is None:
            self.warnings = []


@dataclass
class _LayerConversion:
    """单个图层的转换结果"""
    layer: Optional[Layer] = None
    tracks: List[PropertyTrack] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class _ShapeScan:
    """形状列表（递归展开分组后）的扫描结果"""
    primitives: List[Dict[str, Any]] = field(default_factory=list)
    fills: List[Dict[str, Any]] = field(default_factory=list)
    strokes: List[Dict[str, Any]] = field(default_factory=list)
    unsupported: List[str] = field(default_factory=list)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _scalar(value: Any, default: float = 0.0) -> float:
    if isinstance(value, (list, tuple)):
        value = value[0] if value else default
    if not _is_number(value):
        raise ValueError(f"expected a number, got {value!r}")
    return float(value)


def _vector(value: Any, size: int, default: float) -> List[float]:
    if _is_number(value):
        return [float(value)] * size
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"expected a vector, got {value!r}")
    result = []
    for index in range(size):
        component = value[index] if index < len(value) else (value[0] if value else default)
        if not _is_number(component):
            raise ValueError(f"expected a number, got {component!r}")
        result.append(float(component))
    return result


def _channel(value: float) -> int:
    return max(0, min(255, int(value * 255 + 0.5)))


def lottie_color_to_hex(color: Any) -> str:
    """Lottie 归一化 RGB(A) -> 十六进制"""
    if not isinstance(color, (list, tuple)) or len(color) < 3:
        raise ValueError(f"expected an RGB color, got {color!r}")
    r, g, b = (_scalar(c) for c in color[:3])
    return "#{:02x}{:02x}{:02x}".format(_channel(r), _channel(g), _channel(b))


# 每个维度的值提取函数：文档关键帧 s -> 内部值列表
ValueExtractor = Callable[[Any], List[Union[float, str]]]

_POSITION: ValueExtractor = lambda s: _vector(s, 2, 0.0)
_SCALE: ValueExtractor = lambda s: [v / 100.0 for v in _vector(s, 2, 100.0)]
_NUMBER: ValueExtractor = lambda s: [_scalar(s)]
_PERCENT: ValueExtractor = lambda s: [_scalar(s) / 100.0]
_COLOR: ValueExtractor = lambda s: [lottie_color_to_hex(s)]


class LottieImporter:
    """Lottie 文档导入器"""

    def __init__(self, settings: Optional[ImportSettings] = None):
        self.settings = settings or get_settings().importer

    def import_document(self, document: Any) -> ImportResult:
        """导入文档，任何错误都转换为失败结果而不是异常"""
        try:
            error = self._check_document(document)
            if error:
                logger.warning(f"Lottie 导入失败: {error}")
                return ImportResult(success=False, error=error)
            return self._convert(document)
        except Exception as e:
            error_msg = f"Lottie import failed: {format_error_message(e)}"
            logger.error(error_msg)
            return ImportResult(success=False, error=error_msg)

    def import_file(self, file_path: Union[str, Path]) -> ImportResult:
        """读取并导入文件"""
        try:
            document = read_lottie_file(file_path)
        except LottieParseError as e:
            logger.error(f"读取 Lottie 文件失败: {e.message}")
            return ImportResult(success=False, error=e.message)
        return self.import_document(document)

    @staticmethod
    def _check_document(document: Any) -> Optional[str]:
        if not isinstance(document, dict):
            return "Invalid Lottie: a JSON object with the required fields is expected"

        missing = [key for key in REQUIRED_FIELDS if key not in document or document[key] is None]
        if missing:
            return f"Invalid Lottie: missing required field(s): {', '.join(missing)}"

        for key in ("fr", "ip", "op", "w", "h"):
            if not _is_number(document[key]):
                return f"Invalid Lottie: required field '{key}' must be a number"
        if not isinstance(document["layers"], list):
            return "Invalid Lottie: required field 'layers' must be an array"
        if document["fr"] <= 0:
            return "Invalid Lottie: required field 'fr' must be greater than 0"
        return None

    def _convert(self, document: Dict[str, Any]) -> ImportResult:
        fps = float(document["fr"])
        in_point = float(document["ip"])
        duration = (float(document["op"]) - in_point) / fps

        settings = ProjectSettings(
            name=document.get("nm") or self.settings.default_name,
            width=document["w"],
            height=document["h"],
            fps=fps,
            duration=duration,
            in_point=in_point,
            background_color=document.get("bg") if isinstance(document.get("bg"), str) else None,
        )

        # 逐图层折叠：(已转换图层, 轨道, 警告)
        layers: List[Layer] = []
        tracks: List[PropertyTrack] = []
        warnings: List[str] = []
        for index, lottie_layer in enumerate(document["layers"]):
            try:
                conversion = self._convert_layer(lottie_layer, index, fps)
            except (TypeError, ValueError) as e:
                conversion = _LayerConversion(warnings=[f"Skipped malformed layer {index}: {e}"])
            warnings.extend(conversion.warnings)
            if conversion.layer is not None:
                layers.append(conversion.layer)
                tracks.extend(conversion.tracks)

        project = Project(
            settings=settings,
            layers=layers,
            animation=Animation(tracks=tracks, duration=duration, fps=fps),
        )

        logger.info(
            f"导入 Lottie 项目: {settings.name} ({len(layers)}/{len(document['layers'])} 个图层, "
            f"{project.animation.keyframe_count()} 个关键帧, {len(warnings)} 条警告)"
        )
        for warning in warnings:
            logger.debug(f"导入警告: {warning}")

        return ImportResult(success=True, project=project, warnings=warnings)

    # ------------------------------------------------------------------
    # 图层
    # ------------------------------------------------------------------

    def _convert_layer(self, lottie_layer: Any, index: int, fps: float) -> _LayerConversion:
        result = _LayerConversion()
        if not isinstance(lottie_layer, dict):
            result.warnings.append(f"Skipped layer {index}: layer is not an object")
            return result

        name = lottie_layer.get("nm") or f"Layer {index + 1}"
        layer_type = LayerType.parse(lottie_layer.get("ty"))
        if layer_type is not LayerType.SHAPE:
            result.warnings.append(
                f"Skipped unsupported layer type: {layer_type_name(lottie_layer.get('ty'))} ({name})"
            )
            return result

        ks = lottie_layer.get("ks")
        if not isinstance(ks, dict):
            result.warnings.append(f"Skipped layer with missing transform: {name}")
            return result

        shapes = lottie_layer.get("shapes")
        scan = _scan_shapes(shapes if isinstance(shapes, list) else [])
        if scan.unsupported:
            result.warnings.append(
                f"Skipped layer with unsupported shapes ({', '.join(scan.unsupported)}): {name}"
            )
            return result
        if not scan.primitives:
            result.warnings.append(f"Skipped layer without a rectangle or ellipse: {name}")
            return result
        if len(scan.primitives) > 1:
            result.warnings.append(
                f"Layer {name} has {len(scan.primitives)} shapes; only the first one was imported"
            )

        layer = Layer(
            name=name,
            element=self._element(scan, ks, name, result.warnings),
            in_point=_optional_number(lottie_layer.get("ip")),
            out_point=_optional_number(lottie_layer.get("op")),
            start_time=_optional_number(lottie_layer.get("st")),
        )
        if lottie_layer.get("hd") is True:
            layer.visible = False

        result.tracks = self._layer_tracks(layer.id, ks, scan, fps, name, result.warnings)
        result.layer = layer
        return result

    def _element(self, scan: _ShapeScan, ks: Dict[str, Any], name: str, warnings: List[str]) -> Element:
        primitive = scan.primitives[0]
        shape_type = ShapeType.parse(primitive.get("ty"))

        for key in ("p", "s", "r"):
            if is_animated(primitive.get(key)):
                warnings.append(
                    f"Animated {shape_type_name(primitive.get('ty')).lower()} property '{key}' "
                    f"is not supported in layer {name}; first keyframe used"
                )

        center = _vector(static_value(primitive.get("p"), [0, 0]), 2, 0.0)
        size = _vector(static_value(primitive.get("s"), [100, 100]), 2, 100.0)
        transform = self._transform(ks, name, warnings)
        style = self._style(scan, ks)

        if shape_type is ShapeType.RECT:
            return RectElement(
                x=center[0] - size[0] / 2,
                y=center[1] - size[1] / 2,
                width=size[0],
                height=size[1],
                roundness=_scalar(static_value(primitive.get("r"), 0)),
                name=primitive.get("nm") or "Rectangle",
                transform=transform,
                style=style,
            )
        return EllipseElement(
            cx=center[0],
            cy=center[1],
            rx=size[0] / 2,
            ry=size[1] / 2,
            name=primitive.get("nm") or "Ellipse",
            transform=transform,
            style=style,
        )

    @staticmethod
    def _transform(ks: Dict[str, Any], name: str, warnings: List[str]) -> Transform:
        if is_animated(ks.get("a")):
            warnings.append(f"Animated anchor point is not supported in layer {name}; first keyframe used")

        position = _position_static(ks.get("p"))
        anchor = _vector(static_value(ks.get("a"), [0, 0]), 2, 0.0)
        scale = _vector(static_value(ks.get("s"), [100, 100]), 2, 100.0)
        return Transform(
            x=position[0],
            y=position[1],
            scale_x=scale[0] / 100.0,
            scale_y=scale[1] / 100.0,
            rotation=_scalar(static_value(ks.get("r"), 0)),
            anchor_x=anchor[0],
            anchor_y=anchor[1],
        )

    @staticmethod
    def _style(scan: _ShapeScan, ks: Dict[str, Any]) -> Style:
        style = Style(opacity=_scalar(static_value(ks.get("o"), 100)) / 100.0)
        if scan.fills:
            style.fill = lottie_color_to_hex(static_value(scan.fills[0].get("c"), [0, 0, 0]))
        if scan.strokes:
            stroke = scan.strokes[0]
            style.stroke = lottie_color_to_hex(static_value(stroke.get("c"), [0, 0, 0]))
            style.stroke_width = _scalar(static_value(stroke.get("w"), 1))
        return style

    # ------------------------------------------------------------------
    # 轨道
    # ------------------------------------------------------------------

    def _layer_tracks(self, layer_id: str, ks: Dict[str, Any], scan: _ShapeScan,
                      fps: float, name: str, warnings: List[str]) -> List[PropertyTrack]:
        sources = []
        position = ks.get("p")
        if isinstance(position, dict) and position.get("s") is True:
            # 分离维度的位置：x、y 各自独立关键帧
            sources.append((position.get("x"), [AnimatableProperty.X], _NUMBER))
            sources.append((position.get("y"), [AnimatableProperty.Y], _NUMBER))
        else:
            sources.append((position, [AnimatableProperty.X, AnimatableProperty.Y], _POSITION))
        sources.extend([
            (ks.get("s"), [AnimatableProperty.SCALE_X, AnimatableProperty.SCALE_Y], _SCALE),
            (ks.get("r"), [AnimatableProperty.ROTATION], _NUMBER),
            (ks.get("o"), [AnimatableProperty.OPACITY], _PERCENT),
        ])
        if scan.fills:
            sources.append((scan.fills[0].get("c"), [AnimatableProperty.FILL], _COLOR))
        if scan.strokes:
            sources.append((scan.strokes[0].get("c"), [AnimatableProperty.STROKE], _COLOR))
            sources.append((scan.strokes[0].get("w"), [AnimatableProperty.STROKE_WIDTH], _NUMBER))

        tracks: List[PropertyTrack] = []
        for prop, properties, extract in sources:
            if not is_animated(prop):
                continue
            per_dimension = self._unzip_keyframes(prop["k"], properties, extract, fps, name, warnings)
            for animatable, keyframes in per_dimension.items():
                if keyframes:
                    tracks.append(PropertyTrack(layer_id=layer_id, property=animatable, keyframes=keyframes))
        return tracks

    def _unzip_keyframes(self, lottie_keyframes: List[Any], properties: Sequence[AnimatableProperty],
                         extract: ValueExtractor, fps: float, name: str,
                         warnings: List[str]) -> Dict[AnimatableProperty, List[Keyframe]]:
        """把组合向量关键帧按维度拆分为每个属性一组关键帧（以时间为键）"""
        label = "/".join(p.value for p in properties)
        result: Dict[AnimatableProperty, List[Keyframe]] = {p: [] for p in properties}
        previous_end = None
        seen_times = set()

        for position, lottie_keyframe in enumerate(lottie_keyframes):
            if not isinstance(lottie_keyframe, dict) or not _is_number(lottie_keyframe.get("t")):
                warnings.append(f"Skipped keyframe {position} of {label} in layer {name}: missing time")
                continue

            time = lottie_keyframe["t"] / fps
            start = lottie_keyframe.get("s")
            if start is None:
                # 旧版导出的最后一个关键帧只有时间，值取上一帧的 e
                start = previous_end
            previous_end = lottie_keyframe.get("e")

            reason = None
            if time < 0:
                reason = "negative time"
            elif time in seen_times:
                reason = "duplicate time"
            elif start is None:
                reason = "no value"
            if reason:
                warnings.append(f"Skipped keyframe {position} of {label} in layer {name}: {reason}")
                continue

            try:
                values = extract(start)
            except (TypeError, ValueError) as e:
                warnings.append(f"Skipped keyframe {position} of {label} in layer {name}: {e}")
                continue
            seen_times.add(time)

            tangents = None
            if isinstance(lottie_keyframe.get("o"), dict) and isinstance(lottie_keyframe.get("i"), dict):
                tangents = BezierTangents.from_lottie(lottie_keyframe["o"], lottie_keyframe["i"])

            for dimension, animatable in enumerate(properties):
                easing, bezier = self._detect_easing(lottie_keyframe, tangents, dimension)
                result[animatable].append(Keyframe(
                    time=time,
                    property=animatable,
                    value=values[dimension],
                    easing=easing,
                    easing_bezier=bezier,
                ))
        return result

    def _detect_easing(self, lottie_keyframe: Dict[str, Any], tangents: Optional[BezierTangents],
                       dimension: int):
        if lottie_keyframe.get("h") == 1:
            return EasingType.HOLD, None
        if tangents is None:
            return EasingType.LINEAR, None
        own = tangents.dimension(dimension)
        if own.is_linear(self.settings.tangent_tolerance):
            return EasingType.LINEAR, None
        return EasingType.CUSTOM, own


def _optional_number(value: Any) -> Optional[float]:
    return float(value) if _is_number(value) else None


def _position_static(position: Any) -> List[float]:
    if isinstance(position, dict) and position.get("s") is True:
        return [
            _scalar(static_value(position.get("x"), 0)),
            _scalar(static_value(position.get("y"), 0)),
        ]
    return _vector(static_value(position, [0, 0]), 2, 0.0)


def _scan_shapes(items: List[Any], scan: Optional[_ShapeScan] = None) -> _ShapeScan:
    """递归展开分组，按类型归类形状条目"""
    scan = scan or _ShapeScan()
    for item in items:
        if not isinstance(item, dict):
            continue
        shape_type = ShapeType.parse(item.get("ty"))
        if shape_type is ShapeType.GROUP:
            _scan_shapes(item.get("it") or [], scan)
        elif shape_type is ShapeType.FILL:
            scan.fills.append(item)
        elif shape_type is ShapeType.STROKE:
            scan.strokes.append(item)
        elif shape_type is ShapeType.TRANSFORM:
            continue
        elif shape_type is not None and shape_type.is_supported:
            scan.primitives.append(item)
        else:
            scan.unsupported.append(shape_type_name(item.get("ty")))
    return scan


def import_from_lottie(document: Any, settings: Optional[ImportSettings] = None) -> ImportResult:
    """导入 Lottie 文档（从不抛出异常）"""
    return LottieImporter(settings).import_document(document)


def import_lottie_file(file_path: Union[str, Path], settings: Optional[ImportSettings] = None) -> ImportResult:
    """读取并导入 Lottie 文件"""
    return LottieImporter(settings).import_file(file_path)
