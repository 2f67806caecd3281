"""
Lottie 导出器 (Lottie Exporter)

将 LottieStudio 项目导出为 Lottie (Bodymovin) JSON 文档，是导入器的逆变换。

单位换算:
    时间（秒）  -> 帧号    time * fps
    缩放倍数    -> 百分比  scale * 100
    不透明度    -> 0-100   opacity * 100
    十六进制颜色 -> 归一化 RGBA

使用示例:
    from lottie_studio.services.export import LottieExporter

    exporter = LottieExporter()
    document = exporter.export(project)
    exporter.save(project, "animation.json")
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ...config.settings import ExportSettings, get_settings
from ...core.animation import AnimatableProperty, Animation, EasingType, Keyframe
from ...core.exceptions import ErrorCode, FileError, LottieStudioError
from ...core.interpolation import get_color_at_time, get_value_at_time, hex_to_rgb
from ...core.logger import get_logger
from ...core.lottie_format import EASING_PRESETS, LayerType, ShapeType, static_wrapper
from ...core.project import ElementType, Layer, Project

logger = get_logger(__name__)


def _number(value: float) -> Union[int, float]:
    """整数值输出为 int，保持 JSON 简洁"""
    value = float(value)
    if value.is_integer():
        return int(value)
    return value


def _color(value: Any) -> List[Union[int, float]]:
    r, g, b = hex_to_rgb(value)
    return [_number(r / 255.0), _number(g / 255.0), _number(b / 255.0), 1]


@dataclass
class Channel:
    """
    组合向量属性中的一个维度

    Attributes:
        keyframes: 该维度的轨道关键帧（可为空）
        static: 无关键帧时的静态值
        is_color: 颜色维度使用颜色插值
    """
    keyframes: Sequence[Keyframe]
    static: Union[float, str, None]
    is_color: bool = False

    @property
    def is_animated(self) -> bool:
        return len(self.keyframes) >= 2

    def value_at(self, time: float) -> Union[float, str, None]:
        """某一时刻的值：同一时间的关键帧优先，其次按轨道插值，最后取静态值"""
        for keyframe in self.keyframes:
            if keyframe.time == time:
                return keyframe.value
        if not self.keyframes:
            return self.static
        if self.is_color:
            return get_color_at_time(self.keyframes, time)
        return get_value_at_time(self.keyframes, time)

    def keyframe_at(self, time: float) -> Optional[Keyframe]:
        for keyframe in self.keyframes:
            if keyframe.time == time:
                return keyframe
        return None


@dataclass
class ZippedKeyframe:
    """按时间重新组合后的文档关键帧"""
    time: float
    values: List[Union[float, str, None]]
    keyframes: List[Optional[Keyframe]]


def zip_by_time(channels: Sequence[Channel]) -> List[ZippedKeyframe]:
    """
    以时间为键把各维度轨道重新组合为向量关键帧

    时间取所有动画维度关键帧时间的并集；某维度在该时间没有关键帧时
    取其轨道插值（或静态值）。少于两个关键帧的维度视为常量，不贡献时间。
    """
    times = sorted({k.time for channel in channels if channel.is_animated for k in channel.keyframes})
    return [
        ZippedKeyframe(
            time=time,
            values=[channel.value_at(time) for channel in channels],
            keyframes=[channel.keyframe_at(time) if channel.is_animated else None for channel in channels],
        )
        for time in times
    ]


def zip_is_lossy(channels: Sequence[Channel]) -> bool:
    """
    组合后能否还原各维度轨道

    动画维度的关键帧时间不同（会插入额外关键帧并拆开自定义曲线），
    或同一位置上保持/非保持不一致（共享的 h 标记无法表达）时返回 True。
    """
    animated = [channel for channel in channels if channel.is_animated]
    for other in animated[1:]:
        first = animated[0].keyframes
        if [k.time for k in first] != [k.time for k in other.keyframes]:
            return True
        if any((a.easing is EasingType.HOLD) != (b.easing is EasingType.HOLD)
               for a, b in zip(first, other.keyframes)):
            return True
    return False


class LottieExporter:
    """Lottie 导出器"""

    def __init__(self, settings: Optional[ExportSettings] = None):
        self.settings = settings or get_settings().exporter

    def export(self, project: Project) -> Dict[str, Any]:
        """导出为 Lottie 文档字典（与项目不共享任何可变对象）"""
        project_settings = project.settings
        fps = project_settings.fps
        in_point = self._frame(project_settings.in_point * 1.0)
        out_point = self._frame(project_settings.in_point + project_settings.duration * fps)

        document: Dict[str, Any] = {
            "v": self.settings.lottie_version,
            "fr": _number(fps),
            "ip": in_point,
            "op": out_point,
            "w": _number(project_settings.width),
            "h": _number(project_settings.height),
            "nm": project_settings.name,
            "ddd": 0,
            "assets": [],
        }
        if project_settings.background_color:
            document["bg"] = project_settings.background_color

        document["layers"] = [
            self._layer(layer, index, project.animation, fps, in_point, out_point)
            for index, layer in enumerate(project.layers)
        ]

        logger.info(
            f"导出 Lottie 项目: {project_settings.name} ({len(project.layers)} 个图层, "
            f"{project.animation.keyframe_count()} 个关键帧)"
        )
        return document

    def export_to_json(self, project: Project, pretty: Optional[bool] = None) -> str:
        """导出为 JSON 文本"""
        document = self.export(project)
        if pretty is None:
            pretty = self.settings.pretty_json
        try:
            if pretty:
                return json.dumps(document, indent=self.settings.json_indent, ensure_ascii=False, allow_nan=False)
            return json.dumps(document, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        except ValueError as e:
            raise LottieStudioError(
                code=ErrorCode.DOCUMENT_INVALID,
                message=f"Project contains values that cannot be written as JSON: {e}",
                hint="Check keyframe values for NaN or Infinity",
            )

    def save(self, project: Project, output_path: Union[str, Path], pretty: Optional[bool] = None) -> Path:
        """导出并写入文件"""
        path = Path(output_path)
        text = self.export_to_json(project, pretty)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise FileError(f"Failed to write Lottie file: {e}", path=str(path), operation="write")

        logger.info(f"Lottie 文件已保存: {path}")
        return path

    # ------------------------------------------------------------------
    # 图层
    # ------------------------------------------------------------------

    def _frame(self, frame: float) -> Union[int, float]:
        """帧号；与整数相差在容差内时吸附为整数"""
        nearest = round(frame)
        if abs(frame - nearest) <= self.settings.frame_snap_tolerance:
            return int(nearest)
        return frame

    def _layer(self, layer: Layer, index: int, animation: Animation, fps: float,
               in_point: Union[int, float], out_point: Union[int, float]) -> Dict[str, Any]:
        lottie_layer: Dict[str, Any] = {
            "ddd": 0,
            "ind": index + 1,
            "ty": int(LayerType.SHAPE),
            "nm": layer.name,
            "sr": 1,
            "ks": self._transform(layer, animation, fps),
            "ao": 0,
            "shapes": [self._group(layer, animation, fps)],
            "ip": self._frame(layer.in_point) if layer.in_point is not None else in_point,
            "op": self._frame(layer.out_point) if layer.out_point is not None else out_point,
            "st": self._frame(layer.start_time) if layer.start_time is not None else 0,
            "bm": 0,
        }
        if not layer.visible:
            lottie_layer["hd"] = True
        return lottie_layer

    def _transform(self, layer: Layer, animation: Animation, fps: float) -> Dict[str, Any]:
        transform = layer.element.transform
        style = layer.element.style

        def track(prop: AnimatableProperty) -> List[Keyframe]:
            return animation.get_keyframes(layer.id, prop)

        percent = lambda v: _number(v * 100)

        position = [
            Channel(track(AnimatableProperty.X), transform.x),
            Channel(track(AnimatableProperty.Y), transform.y),
        ]
        if zip_is_lossy(position):
            # 分量位置：x、y 各自保留自己的关键帧
            position_property = {
                "s": True,
                "x": self._property(position[:1], fps, _number, vector=False),
                "y": self._property(position[1:], fps, _number, vector=False),
            }
        else:
            position_property = self._property(position, fps, _number)

        scale = [
            Channel(track(AnimatableProperty.SCALE_X), transform.scale_x),
            Channel(track(AnimatableProperty.SCALE_Y), transform.scale_y),
        ]
        if zip_is_lossy(scale):
            # 缩放没有分量形式，只能按时间合并
            logger.warning(f"图层 {layer.name} 的 scaleX/scaleY 关键帧时间或保持方式不一致，导出时按时间合并")

        return {
            "o": self._property(
                [Channel(track(AnimatableProperty.OPACITY), style.opacity)], fps, percent, vector=False),
            "r": self._property(
                [Channel(track(AnimatableProperty.ROTATION), transform.rotation)], fps, _number, vector=False),
            "p": position_property,
            "a": static_wrapper([_number(transform.anchor_x), _number(transform.anchor_y)]),
            "s": self._property(scale, fps, percent),
        }

    def _group(self, layer: Layer, animation: Animation, fps: float) -> Dict[str, Any]:
        element = layer.element
        style = element.style
        center_x, center_y = element.center
        width, height = element.size

        if element.type is ElementType.RECT:
            primitive = {
                "ty": ShapeType.RECT.value,
                "nm": element.name,
                "d": 1,
                "p": static_wrapper([_number(center_x), _number(center_y)]),
                "s": static_wrapper([_number(width), _number(height)]),
                "r": static_wrapper(_number(element.roundness)),
            }
        else:
            primitive = {
                "ty": ShapeType.ELLIPSE.value,
                "nm": element.name,
                "d": 1,
                "p": static_wrapper([_number(center_x), _number(center_y)]),
                "s": static_wrapper([_number(width), _number(height)]),
            }

        items: List[Dict[str, Any]] = [primitive]
        fill_track = animation.get_keyframes(layer.id, AnimatableProperty.FILL)
        if style.fill is not None or fill_track:
            items.append({
                "ty": ShapeType.FILL.value,
                "nm": "Fill",
                "c": self._property([Channel(fill_track, style.fill, is_color=True)], fps, _color, vector=False),
                "o": static_wrapper(100),
                "r": 1,
            })

        stroke_track = animation.get_keyframes(layer.id, AnimatableProperty.STROKE)
        width_track = animation.get_keyframes(layer.id, AnimatableProperty.STROKE_WIDTH)
        if style.stroke is not None or stroke_track or width_track:
            items.append({
                "ty": ShapeType.STROKE.value,
                "nm": "Stroke",
                "c": self._property([Channel(stroke_track, style.stroke, is_color=True)], fps, _color, vector=False),
                "o": static_wrapper(100),
                "w": self._property([Channel(width_track, style.stroke_width)], fps, _number, vector=False),
                "lc": 2,
                "lj": 2,
            })

        items.append({
            "ty": ShapeType.TRANSFORM.value,
            "nm": "Transform",
            "p": static_wrapper([0, 0]),
            "a": static_wrapper([0, 0]),
            "s": static_wrapper([100, 100]),
            "r": static_wrapper(0),
            "o": static_wrapper(100),
            "sk": static_wrapper(0),
            "sa": static_wrapper(0),
        })

        return {
            "ty": ShapeType.GROUP.value,
            "nm": element.name,
            "np": len(items) - 1,
            "it": items,
        }

    # ------------------------------------------------------------------
    # 动画属性
    # ------------------------------------------------------------------

    def _property(self, channels: List[Channel], fps: float,
                  convert: Callable[[Any], Any], vector: bool = True) -> Dict[str, Any]:
        """
        生成动画属性包装器

        任一维度有两个及以上关键帧时输出关键帧数组 (a: 1)，否则输出静态值。
        颜色等单维度属性的值本身可能是数组，vector=False 时不再包一层。
        """
        def emit(values: List[Any]) -> Any:
            converted = [convert(v) for v in values]
            return converted if vector else converted[0]

        if not any(channel.is_animated for channel in channels):
            return static_wrapper(emit([channel.value_at(0.0) for channel in channels]))

        zipped = zip_by_time(channels)
        lottie_keyframes = []
        for position, entry in enumerate(zipped):
            start = emit(entry.values)
            lottie_keyframe: Dict[str, Any] = {
                "t": self._frame(entry.time * fps),
                "s": start if isinstance(start, list) else [start],
            }
            present = [k for k in entry.keyframes if k is not None]
            if present and all(k.easing is EasingType.HOLD for k in present):
                lottie_keyframe["h"] = 1
            else:
                lottie_keyframe.update(self._tangents(entry.keyframes))
                if position < len(zipped) - 1:
                    end = emit(zipped[position + 1].values)
                    lottie_keyframe["e"] = end if isinstance(end, list) else [end]
            lottie_keyframes.append(lottie_keyframe)

        return {"a": 1, "k": lottie_keyframes}

    @staticmethod
    def _tangents(keyframes: List[Optional[Keyframe]]) -> Dict[str, Dict[str, List[float]]]:
        """逐维度的出/入切线：自定义缓动用保存的切线，命名缓动用预设"""
        out_x, out_y, in_x, in_y = [], [], [], []
        for keyframe in keyframes:
            if keyframe is not None and keyframe.easing is EasingType.CUSTOM:
                ox, oy = keyframe.easing_bezier.o.component(0, 0.0, 0.0)
                ix, iy = keyframe.easing_bezier.i.component(0, 1.0, 1.0)
            else:
                easing = keyframe.easing if keyframe is not None else EasingType.LINEAR
                preset = EASING_PRESETS.get(easing, EASING_PRESETS[EasingType.LINEAR])
                ox, oy = preset["o"]["x"], preset["o"]["y"]
                ix, iy = preset["i"]["x"], preset["i"]["y"]
            out_x.append(ox)
            out_y.append(oy)
            in_x.append(ix)
            in_y.append(iy)
        return {
            "o": {"x": out_x, "y": out_y},
            "i": {"x": in_x, "y": in_y},
        }


def export_to_lottie(project: Project, settings: Optional[ExportSettings] = None) -> Dict[str, Any]:
    """导出为 Lottie 文档字典"""
    return LottieExporter(settings).export(project)


def export_to_json(project: Project, pretty: Optional[bool] = None,
                   settings: Optional[ExportSettings] = None) -> str:
    """导出为 Lottie JSON 文本"""
    return LottieExporter(settings).export_to_json(project, pretty)
