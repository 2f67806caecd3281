#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
pytest 配置文件
定义测试夹具和示例 Lottie 文档
"""

import pytest
from pathlib import Path
from typing import Any, Dict, List

from lottie_studio.config.settings import (
    ExportSettings, ImportSettings, Settings, get_settings, reset_settings,
)
from lottie_studio.core.animation import Animation, EasingType, BezierTangents, TangentHandle
from lottie_studio.core.project import (
    EllipseElement, Layer, Project, ProjectSettings, RectElement, Style, Transform,
)


def static(value: Any) -> Dict[str, Any]:
    return {"a": 0, "k": value}


def identity_group_transform() -> Dict[str, Any]:
    return {
        "ty": "tr",
        "p": static([0, 0]),
        "a": static([0, 0]),
        "s": static([100, 100]),
        "r": static(0),
        "o": static(100),
    }


def shape_layer(name: str, ind: int, items: List[Dict[str, Any]], ks: Dict[str, Any]) -> Dict[str, Any]:
    group = {"ty": "gr", "nm": "Group", "np": len(items), "it": items + [identity_group_transform()]}
    return {
        "ddd": 0,
        "ind": ind,
        "ty": 4,
        "nm": name,
        "sr": 1,
        "ks": ks,
        "ao": 0,
        "shapes": [group],
        "ip": 0,
        "op": 60,
        "st": 0,
        "bm": 0,
    }


def default_ks(**overrides: Any) -> Dict[str, Any]:
    ks = {
        "o": static(100),
        "r": static(0),
        "p": static([0, 0]),
        "a": static([0, 0]),
        "s": static([100, 100]),
    }
    ks.update(overrides)
    return ks


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch):
    """每个测试使用独立的配置文件，并屏蔽宿主环境变量"""
    for env_var in Settings.ENV_MAPPING:
        monkeypatch.delenv(env_var, raising=False)
    reset_settings()
    settings = get_settings(tmp_path / "config.yaml")
    yield settings
    reset_settings()


@pytest.fixture
def import_settings() -> ImportSettings:
    return ImportSettings()


@pytest.fixture
def export_settings() -> ExportSettings:
    return ExportSettings()


@pytest.fixture
def box_layer() -> Dict[str, Any]:
    """矩形图层：自定义缓动 + 保持的位置动画，线性旋转，静态缩放与不透明度"""
    ks = default_ks(
        p={"a": 1, "k": [
            {
                "t": 0, "s": [100, 100], "e": [200, 150],
                "o": {"x": [0.2, 0.3], "y": [0, 0]},
                "i": {"x": [0.8, 0.7], "y": [1, 1]},
            },
            {"t": 30, "s": [200, 150], "h": 1},
            {"t": 60, "s": [300, 150]},
        ]},
        s=static([200, 150]),
        r={"a": 1, "k": [
            {"t": 0, "s": [0], "e": [90], "o": {"x": [0], "y": [0]}, "i": {"x": [1], "y": [1]}},
            {"t": 60, "s": [90]},
        ]},
        o=static(50),
    )
    items = [
        {"ty": "rc", "nm": "Box Shape", "d": 1, "p": static([0, 0]), "s": static([100, 50]), "r": static(4)},
        {"ty": "fl", "nm": "Fill", "c": static([1, 0, 0, 1]), "o": static(100), "r": 1},
        {"ty": "st", "nm": "Stroke", "c": static([0, 0, 1, 1]), "o": static(100), "w": static(3), "lc": 2, "lj": 2},
    ]
    return shape_layer("Box", 1, items, ks)


@pytest.fixture
def dot_layer() -> Dict[str, Any]:
    """椭圆图层：保持的缩放、线性不透明度、填充颜色动画"""
    ks = default_ks(
        p=static([256, 128]),
        s={"a": 1, "k": [
            {"t": 0, "s": [100, 100], "h": 1},
            {"t": 15, "s": [50, 50]},
        ]},
        o={"a": 1, "k": [
            {"t": 0, "s": [100], "e": [0], "o": {"x": [0], "y": [0]}, "i": {"x": [1], "y": [1]}},
            {"t": 30, "s": [0]},
        ]},
    )
    items = [
        {"ty": "el", "nm": "Dot Shape", "d": 1, "p": static([10, 20]), "s": static([40, 40])},
        {"ty": "fl", "nm": "Fill", "o": static(100), "r": 1, "c": {"a": 1, "k": [
            {"t": 0, "s": [1, 0, 0, 1], "e": [0, 0, 1, 1], "o": {"x": [0], "y": [0]}, "i": {"x": [1], "y": [1]}},
            {"t": 30, "s": [0, 0, 1, 1]},
        ]}},
    ]
    return shape_layer("Dot", 2, items, ks)


@pytest.fixture
def sample_document(box_layer, dot_layer) -> Dict[str, Any]:
    """包含两个可转换图层和两个不支持图层的文档"""
    return {
        "v": "5.7.4",
        "fr": 30,
        "ip": 0,
        "op": 60,
        "w": 512,
        "h": 256,
        "nm": "Sample",
        "ddd": 0,
        "assets": [],
        "layers": [
            box_layer,
            {"ddd": 0, "ind": 3, "ty": 3, "nm": "Controller", "ks": default_ks(), "ip": 0, "op": 60, "st": 0},
            dot_layer,
            {"ddd": 0, "ind": 4, "ty": 5, "nm": "Title", "ks": default_ks(), "ip": 0, "op": 60, "st": 0},
        ],
    }


@pytest.fixture
def minimal_document() -> Dict[str, Any]:
    return {"v": "5.5.7", "fr": 30, "ip": 0, "op": 30, "w": 100, "h": 100, "layers": []}


@pytest.fixture
def sample_project() -> Project:
    """直接构造的项目：矩形带位置/颜色/描边宽度动画，椭圆仅静态值"""
    rect = RectElement(
        x=-25, y=-10, width=50, height=20, roundness=2,
        transform=Transform(x=100, y=80, scale_x=1.5, scale_y=0.5, rotation=45, anchor_x=5, anchor_y=6),
        style=Style(fill="#336699", stroke="#000000", stroke_width=2, opacity=0.8),
    )
    ellipse = EllipseElement(
        cx=0, cy=0, rx=30, ry=15,
        style=Style(fill="#ffcc00", opacity=1.0),
    )
    rect_layer = Layer(name="Rect", element=rect)
    ellipse_layer = Layer(name="Ellipse", element=ellipse, visible=False)

    animation = Animation()
    animation.add_keyframe(rect_layer.id, "x", 0.0, 100, easing="ease-in")
    animation.add_keyframe(rect_layer.id, "x", 1.0, 300, easing="hold")
    animation.add_keyframe(rect_layer.id, "x", 1.5, 350)
    animation.add_keyframe(rect_layer.id, "y", 0.0, 80, easing="custom",
                           easing_bezier=BezierTangents(o=TangentHandle(x=[0.1], y=[0.5]),
                                                        i=TangentHandle(x=[0.6], y=[1.2])))
    animation.add_keyframe(rect_layer.id, "y", 1.0, 180)
    animation.add_keyframe(rect_layer.id, "y", 1.5, 200)
    animation.add_keyframe(rect_layer.id, "rotation", 0.0, 45, easing=EasingType.EASE_IN_OUT)
    animation.add_keyframe(rect_layer.id, "rotation", 1.5, 405)
    animation.add_keyframe(rect_layer.id, "fill", 0.0, "#336699")
    animation.add_keyframe(rect_layer.id, "fill", 1.5, "#ff0000")
    animation.add_keyframe(rect_layer.id, "strokeWidth", 0.5, 2)
    animation.add_keyframe(rect_layer.id, "strokeWidth", 1.0, 6, easing="ease-out")
    animation.add_keyframe(rect_layer.id, "strokeWidth", 1.5, 4)

    return Project(
        settings=ProjectSettings(name="Built", width=400, height=300, fps=24, duration=1.5),
        layers=[rect_layer, ellipse_layer],
        animation=animation,
    )
