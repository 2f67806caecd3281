#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
测试 Lottie 导出器
"""

import json

import pytest

from lottie_studio.config.settings import ExportSettings
from lottie_studio.core.animation import Animation, BezierTangents, EasingType, Keyframe, TangentHandle
from lottie_studio.core.exceptions import ErrorCode, FileError, LottieStudioError
from lottie_studio.core.interpolation import get_value_at_time
from lottie_studio.core.lottie_importer import import_from_lottie
from lottie_studio.core.lottie_parser import validate_lottie
from lottie_studio.core.project import Layer, Project, ProjectSettings, RectElement
from lottie_studio.services.export import (
    Channel, LottieExporter, export_to_json, export_to_lottie, zip_by_time, zip_is_lossy,
)


def _rect_layer(name="Rect"):
    return Layer(name=name, element=RectElement(x=0, y=0, width=10, height=10))


def _track_summary(project):
    """按 (图层名, 属性) 汇总轨道，便于比较往返结果"""
    summary = {}
    for layer in project.layers:
        for track in project.animation.tracks_for_layer(layer.id):
            summary[(layer.name, track.property.value)] = [
                (k.time, k.value, k.easing, k.easing_bezier)
                for k in track.keyframes
            ]
    return summary


class TestZipByTime:
    """按时间组合维度"""

    def test_union_of_times(self):
        x = Channel([Keyframe(time=0, property="x", value=0), Keyframe(time=2, property="x", value=20)], 0)
        y = Channel([Keyframe(time=1, property="y", value=5), Keyframe(time=2, property="y", value=15)], 0)
        zipped = zip_by_time([x, y])
        assert [entry.time for entry in zipped] == [0, 1, 2]
        # y 在 t=0 之前只有第一帧的值，x 在 t=1 取插值
        assert zipped[0].values == [0, 5]
        assert zipped[1].values == [pytest.approx(10), 5]
        assert zipped[1].keyframes[0] is None

    def test_constant_channels_do_not_contribute(self):
        x = Channel([Keyframe(time=0, property="x", value=0), Keyframe(time=1, property="x", value=1)], 0)
        y = Channel([Keyframe(time=0.5, property="y", value=7)], 3)
        z = Channel([], 9)
        zipped = zip_by_time([x, y, z])
        assert [entry.time for entry in zipped] == [0, 1]
        assert zipped[0].values[1:] == [7, 9]
        assert zipped[0].keyframes[1] is None


class TestZipIsLossy:
    """组合是否丢失信息"""

    def test_aligned_tracks(self):
        x = Channel([Keyframe(time=0, property="x", value=0, easing="hold"), Keyframe(time=1, property="x", value=1)], 0)
        y = Channel([Keyframe(time=0, property="y", value=0, easing="hold"), Keyframe(time=1, property="y", value=1)], 0)
        assert not zip_is_lossy([x, y])

    def test_different_times(self):
        x = Channel([Keyframe(time=0, property="x", value=0), Keyframe(time=1, property="x", value=1)], 0)
        y = Channel([Keyframe(time=0, property="y", value=0), Keyframe(time=0.5, property="y", value=1)], 0)
        assert zip_is_lossy([x, y])

    def test_mixed_hold(self):
        x = Channel([Keyframe(time=0, property="x", value=0, easing="hold"), Keyframe(time=1, property="x", value=1)], 0)
        y = Channel([Keyframe(time=0, property="y", value=0), Keyframe(time=1, property="y", value=1)], 0)
        assert zip_is_lossy([x, y])

    def test_constant_channel_ignored(self):
        x = Channel([Keyframe(time=0, property="x", value=0), Keyframe(time=1, property="x", value=1)], 0)
        y = Channel([Keyframe(time=0.5, property="y", value=7, easing="hold")], 3)
        assert not zip_is_lossy([x, y])


class TestExportStructure:
    """文档结构"""

    @pytest.fixture
    def document(self, sample_project):
        return export_to_lottie(sample_project)

    def test_top_level(self, document):
        assert document["v"] == ExportSettings().lottie_version
        assert document["fr"] == 24
        assert document["ip"] == 0
        assert document["op"] == 36
        assert document["w"] == 400
        assert document["h"] == 300
        assert document["nm"] == "Built"
        assert "bg" not in document
        assert len(document["layers"]) == 2

    def test_document_passes_validation(self, document):
        result = validate_lottie(document)
        assert result.valid, result.errors

    def test_layer_fields(self, document):
        rect, ellipse = document["layers"]
        assert rect["ty"] == 4
        assert rect["ind"] == 1 and ellipse["ind"] == 2
        assert (rect["ip"], rect["op"], rect["st"]) == (0, 36, 0)
        assert "hd" not in rect
        assert ellipse["hd"] is True

    def test_static_transform(self, document):
        ks = document["layers"][0]["ks"]
        assert ks["a"] == {"a": 0, "k": [5, 6]}
        assert ks["s"] == {"a": 0, "k": [150, 50]}
        assert ks["o"]["a"] == 0
        assert ks["o"]["k"] == pytest.approx(80)

    def test_rotation_preset_tangents(self, document):
        rotation = document["layers"][0]["ks"]["r"]
        assert rotation["a"] == 1
        first, last = rotation["k"]
        assert first["t"] == 0
        assert first["s"] == [45]
        assert first["e"] == [405]
        assert first["o"] == {"x": [0.333], "y": [0.0]}
        assert first["i"] == {"x": [0.667], "y": [1.0]}
        assert last["t"] == 36
        assert "e" not in last
        assert last["o"] == {"x": [0.0], "y": [0.0]}

    def test_position_split_on_mixed_hold(self, document):
        position = document["layers"][0]["ks"]["p"]
        assert position["s"] is True

        # x 在 t=1 保持、y 线性：各自输出关键帧
        x_keyframes = position["x"]["k"]
        assert position["x"]["a"] == 1
        assert [k["t"] for k in x_keyframes] == [0, 24, 36]
        assert x_keyframes[0]["s"] == [100]
        assert x_keyframes[0]["e"] == [300]
        assert x_keyframes[0]["o"] == {"x": [0.42], "y": [0.0]}
        assert x_keyframes[1] == {"t": 24, "s": [300], "h": 1}

        y_keyframes = position["y"]["k"]
        assert [k["s"] for k in y_keyframes] == [[80], [180], [200]]
        assert y_keyframes[0]["o"] == {"x": [0.1], "y": [0.5]}
        assert y_keyframes[0]["i"] == {"x": [0.6], "y": [1.2]}
        assert "h" not in y_keyframes[1]

    def test_position_zipped_when_aligned(self):
        layer = _rect_layer()
        animation = Animation()
        animation.add_keyframe(layer.id, "x", 0, 0, easing="ease-in")
        animation.add_keyframe(layer.id, "x", 1, 100)
        animation.add_keyframe(layer.id, "y", 0, 10)
        animation.add_keyframe(layer.id, "y", 1, 20)
        project = Project(settings=ProjectSettings(fps=30, duration=1), layers=[layer], animation=animation)

        position = export_to_lottie(project)["layers"][0]["ks"]["p"]
        assert position["a"] == 1
        assert [k["s"] for k in position["k"]] == [[0, 10], [100, 20]]
        assert position["k"][0]["e"] == [100, 20]
        assert position["k"][0]["o"] == {"x": [0.42, 0.0], "y": [0.0, 0.0]}

    def test_scale_zipped_with_warning(self, caplog):
        layer = _rect_layer()
        animation = Animation()
        animation.add_keyframe(layer.id, "scaleX", 0, 1)
        animation.add_keyframe(layer.id, "scaleX", 1, 2)
        animation.add_keyframe(layer.id, "scaleY", 0, 1)
        animation.add_keyframe(layer.id, "scaleY", 0.5, 3)
        project = Project(settings=ProjectSettings(fps=30, duration=1), layers=[layer], animation=animation)

        with caplog.at_level("WARNING", logger="lottie_studio"):
            scale = export_to_lottie(project)["layers"][0]["ks"]["s"]
        assert [k["t"] for k in scale["k"]] == [0, 15, 30]
        assert any("scaleX/scaleY" in record.getMessage() for record in caplog.records)

    def test_group_structure(self, document):
        group = document["layers"][0]["shapes"][0]
        assert group["ty"] == "gr"
        types = [item["ty"] for item in group["it"]]
        assert types == ["rc", "fl", "st", "tr"]
        assert group["np"] == 3

        rect = group["it"][0]
        assert rect["p"] == {"a": 0, "k": [0, 0]}
        assert rect["s"] == {"a": 0, "k": [50, 20]}
        assert rect["r"] == {"a": 0, "k": 2}

    def test_fill_and_stroke(self, document):
        fill, stroke = document["layers"][0]["shapes"][0]["it"][1:3]
        assert fill["c"]["a"] == 1
        assert fill["c"]["k"][0]["s"] == [0.2, 0.4, 0.6, 1]
        assert fill["c"]["k"][0]["e"] == [1, 0, 0, 1]

        assert stroke["c"] == {"a": 0, "k": [0, 0, 0, 1]}
        widths = stroke["w"]["k"]
        assert [k["t"] for k in widths] == [12, 24, 36]
        assert [k["s"] for k in widths] == [[2], [6], [4]]
        assert widths[1]["i"] == {"x": [0.58], "y": [1.0]}

    def test_ellipse_without_stroke(self, document):
        group = document["layers"][1]["shapes"][0]
        assert [item["ty"] for item in group["it"]] == ["el", "fl", "tr"]
        assert group["it"][0]["s"] == {"a": 0, "k": [60, 30]}
        assert group["it"][1]["c"] == {"a": 0, "k": [1, 0.8, 0, 1]}

    def test_hold_keyframes(self):
        layer = _rect_layer()
        animation = Animation()
        animation.add_keyframe(layer.id, "opacity", 0, 1.0, easing="hold")
        animation.add_keyframe(layer.id, "opacity", 1, 0.0)
        project = Project(settings=ProjectSettings(fps=30, duration=1), layers=[layer], animation=animation)

        opacity = export_to_lottie(project)["layers"][0]["ks"]["o"]
        assert opacity["k"][0] == {"t": 0, "s": [100], "h": 1}
        assert opacity["k"][1]["s"] == [0]

    def test_single_keyframe_is_static(self):
        layer = _rect_layer()
        animation = Animation()
        animation.add_keyframe(layer.id, "rotation", 0.5, 30)
        project = Project(layers=[layer], animation=animation)
        assert export_to_lottie(project)["layers"][0]["ks"]["r"] == {"a": 0, "k": 30}

    def test_frame_snapping(self):
        layer = _rect_layer()
        animation = Animation()
        animation.add_keyframe(layer.id, "x", 0.1, 0)
        animation.add_keyframe(layer.id, "x", 0.05, 10)
        project = Project(settings=ProjectSettings(fps=30, duration=1), layers=[layer], animation=animation)

        frames = [k["t"] for k in export_to_lottie(project)["layers"][0]["ks"]["p"]["k"]]
        assert frames[0] == pytest.approx(1.5)
        assert frames[1] == 3
        assert isinstance(frames[1], int)

    def test_background_and_layer_range(self):
        layer = _rect_layer()
        layer.in_point, layer.out_point, layer.start_time = 5, 20, 2
        project = Project(settings=ProjectSettings(background_color="#102030", fps=10, duration=3),
                          layers=[layer])
        document = export_to_lottie(project)
        assert document["bg"] == "#102030"
        assert (document["layers"][0]["ip"], document["layers"][0]["op"], document["layers"][0]["st"]) == (5, 20, 2)

    def test_no_shared_state(self, sample_project):
        document = export_to_lottie(sample_project)
        document["layers"][0]["ks"]["a"]["k"][0] = 999
        assert sample_project.layers[0].element.transform.anchor_x == 5


class TestJsonOutput:
    """JSON 文本与文件输出"""

    def test_pretty_and_compact(self, sample_project):
        pretty = export_to_json(sample_project, pretty=True)
        compact = export_to_json(sample_project, pretty=False)
        assert "\n" in pretty
        assert "\n" not in compact
        assert ", " not in compact
        assert json.loads(pretty) == json.loads(compact)

    def test_default_follows_settings(self, sample_project):
        text = LottieExporter(ExportSettings(pretty_json=True, json_indent=4)).export_to_json(sample_project)
        assert text.startswith('{\n    "v"')
        compact = LottieExporter(ExportSettings(pretty_json=False)).export_to_json(sample_project)
        assert compact.startswith('{"v":')

    def test_non_finite_values_rejected(self, sample_project):
        sample_project.layers[1].element.transform.x = float("nan")
        with pytest.raises(LottieStudioError) as exc_info:
            export_to_json(sample_project)
        assert exc_info.value.code is ErrorCode.DOCUMENT_INVALID

    def test_save(self, tmp_path, sample_project):
        exporter = LottieExporter()
        path = exporter.save(sample_project, tmp_path / "out" / "anim.json")
        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8")) == exporter.export(sample_project)

    def test_save_failure(self, tmp_path, sample_project):
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")
        with pytest.raises(FileError) as exc_info:
            LottieExporter().save(sample_project, blocker / "anim.json")
        assert exc_info.value.code is ErrorCode.FILE_WRITE_ERROR


class TestRoundTrip:
    """导入 -> 导出 -> 导入"""

    def test_document_round_trip(self, sample_document):
        first = import_from_lottie(sample_document)
        second = import_from_lottie(export_to_lottie(first.project))
        assert second.success
        assert second.warnings == []
        assert [layer.name for layer in second.project.layers] == ["Box", "Dot"]
        assert _track_summary(second.project) == _track_summary(first.project)

        for before, after in zip(first.project.layers, second.project.layers):
            assert after.element.transform == before.element.transform
            assert after.element.style == before.element.style

    def test_project_round_trip(self, sample_project):
        result = import_from_lottie(export_to_lottie(sample_project))
        assert result.success
        project = result.project
        assert project.settings.fps == 24
        assert project.settings.duration == pytest.approx(1.5)

        rect, ellipse = project.layers
        assert rect.element.transform.anchor_x == 5
        assert rect.element.style.opacity == pytest.approx(0.8)
        assert not ellipse.visible
        assert ellipse.element.style.fill == "#ffcc00"
        assert (ellipse.element.rx, ellipse.element.ry) == (30, 15)

        def values(prop):
            return [(k.time, k.value) for k in project.animation.get_keyframes(rect.id, prop)]

        assert values("x") == [(0, 100), (1, 300), (1.5, 350)]
        assert values("y") == [(0, 80), (1, 180), (1.5, 200)]
        assert values("fill") == [(0, "#336699"), (1.5, "#ff0000")]
        assert values("strokeWidth") == [(0.5, 2), (1, 6), (1.5, 4)]

        y_first = project.animation.get_keyframes(rect.id, "y")[0]
        assert y_first.easing is EasingType.CUSTOM
        assert (y_first.easing_bezier.o.x, y_first.easing_bezier.o.y) == ([0.1], [0.5])
        assert (y_first.easing_bezier.i.x, y_first.easing_bezier.i.y) == ([0.6], [1.2])

        # x 在 t=1 的保持经分量位置保留下来
        assert project.animation.get_keyframes(rect.id, "x")[1].easing is EasingType.HOLD
        assert project.animation.get_keyframes(rect.id, "y")[1].easing is EasingType.LINEAR

    def test_mixed_hold_position_round_trip(self):
        layer = _rect_layer()
        animation = Animation()
        animation.add_keyframe(layer.id, "x", 0, 0, easing="hold")
        animation.add_keyframe(layer.id, "x", 1, 100)
        animation.add_keyframe(layer.id, "y", 0, 0)
        animation.add_keyframe(layer.id, "y", 1, 50)
        project = Project(settings=ProjectSettings(fps=30, duration=1), layers=[layer], animation=animation)

        result = import_from_lottie(export_to_lottie(project))
        assert result.success
        restored = result.project.animation
        restored_id = result.project.layers[0].id
        assert get_value_at_time(restored.get_keyframes(restored_id, "x"), 0.5) == 0
        assert get_value_at_time(restored.get_keyframes(restored_id, "y"), 0.5) == pytest.approx(25)

    def test_independent_times_position_round_trip(self):
        tangents = BezierTangents(o=TangentHandle(x=[0.3], y=[0.1]), i=TangentHandle(x=[0.7], y=[0.9]))
        layer = _rect_layer()
        animation = Animation()
        animation.add_keyframe(layer.id, "x", 0, 0, easing="custom", easing_bezier=tangents)
        animation.add_keyframe(layer.id, "x", 1, 100)
        for time, value in ((0, 0), (0.5, 40), (1, 50)):
            animation.add_keyframe(layer.id, "y", time, value)
        project = Project(settings=ProjectSettings(fps=30, duration=1), layers=[layer], animation=animation)
        expected = get_value_at_time(animation.get_keyframes(layer.id, "x"), 0.25)

        result = import_from_lottie(export_to_lottie(project))
        assert result.success
        restored = result.project.animation
        restored_id = result.project.layers[0].id
        x_keyframes = restored.get_keyframes(restored_id, "x")
        # y 的中间关键帧不会在 x 上插入额外关键帧
        assert [(k.time, k.value) for k in x_keyframes] == [(0, 0), (1, 100)]
        assert x_keyframes[0].easing is EasingType.CUSTOM
        assert get_value_at_time(x_keyframes, 0.25) == pytest.approx(expected)
        assert [k.time for k in restored.get_keyframes(restored_id, "y")] == [0, 0.5, 1]
