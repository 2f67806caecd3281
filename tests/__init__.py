#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
LottieStudio 测试套件
"""

import sys
from pathlib import Path

# 添加项目根目录到 Python 路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
