"""
LottieStudio 核心模块

动画数据模型、插值引擎以及 Lottie 导入/解析。
"""
