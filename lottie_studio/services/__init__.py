"""
LottieStudio 服务层
"""
