"""
LottieStudio 导出服务模块

提供项目的导出能力:
- LottieExporter: Lottie (Bodymovin) JSON 导出
"""

from .lottie_exporter import (
    LottieExporter, Channel, ZippedKeyframe,
    zip_by_time, zip_is_lossy, export_to_lottie, export_to_json,
)


__all__ = [
    # Lottie 导出
    'LottieExporter',
    'Channel',
    'ZippedKeyframe',
    'zip_by_time',
    'zip_is_lossy',
    'export_to_lottie',
    'export_to_json',
]
