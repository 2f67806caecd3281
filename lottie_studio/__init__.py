"""
LottieStudio

Lottie (Bodymovin) 动画的导入、导出与关键帧插值求值。
"""

__version__ = "1.0.0"

from .core.animation import (
    AnimatableProperty, Animation, BezierTangents, EasingType, Keyframe, PropertyTrack,
)
from .core.project import (
    EllipseElement, Layer, Project, ProjectSettings, RectElement, Style, Transform,
)
from .core.lottie_importer import ImportResult, LottieImporter, import_from_lottie
from .core.lottie_parser import (
    ValidationResult, extract_metadata, parse_lottie_json, read_lottie_file, validate_lottie,
)
from .services.export import LottieExporter, export_to_json, export_to_lottie

__all__ = [
    "__version__",
    "AnimatableProperty",
    "Animation",
    "BezierTangents",
    "EasingType",
    "Keyframe",
    "PropertyTrack",
    "EllipseElement",
    "Layer",
    "Project",
    "ProjectSettings",
    "RectElement",
    "Style",
    "Transform",
    "ImportResult",
    "LottieImporter",
    "import_from_lottie",
    "ValidationResult",
    "extract_metadata",
    "parse_lottie_json",
    "read_lottie_file",
    "validate_lottie",
    "LottieExporter",
    "export_to_json",
    "export_to_lottie",
]
