#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
三次贝塞尔曲线求值与求解
用于实现与 Lottie 兼容的自定义缓动曲线
"""

import math
from typing import Tuple

from .animation import BezierTangents


class BezierSolver:
    """三次贝塞尔求解器"""

    NEWTON_ITERATIONS = 8
    NEWTON_MIN_SLOPE = 0.001
    SUBDIVISION_PRECISION = 1e-7
    SUBDIVISION_MAX_ITERATIONS = 10

    @staticmethod
    def evaluate(t: float, p0: float, p1: float, p2: float, p3: float) -> float:
        """
        在参数 t 处求曲线值

        B(t) = (1-t)³p0 + 3(1-t)²t·p1 + 3(1-t)t²·p2 + t³p3
        """
        if not math.isfinite(t):
            return p3 if t > 0 else p0

        mt = 1.0 - t
        mt2 = mt * mt
        t2 = t * t
        return mt2 * mt * p0 + 3 * mt2 * t * p1 + 3 * mt * t2 * p2 + t2 * t * p3

    @staticmethod
    def derivative(t: float, p0: float, p1: float, p2: float, p3: float) -> float:
        mt = 1.0 - t
        return 3 * mt * mt * (p1 - p0) + 6 * mt * t * (p2 - p1) + 3 * t * t * (p3 - p2)

    @classmethod
    def solve_x(cls, target_x: float, x0: float, x1: float, x2: float, x3: float) -> float:
        """求使 bezier_x(t) == target_x 的参数 t（牛顿迭代，失败时二分）"""
        if not math.isfinite(target_x):
            return 1.0 if target_x > 0 else 0.0

        # 所有控制点重合，任意 t 都满足
        if x0 == x1 == x2 == x3:
            return 0.5

        if target_x <= x0:
            return 0.0
        if target_x >= x3:
            return 1.0

        t = (target_x - x0) / (x3 - x0)
        for _ in range(cls.NEWTON_ITERATIONS):
            current_x = cls.evaluate(t, x0, x1, x2, x3)
            if abs(current_x - target_x) < cls.SUBDIVISION_PRECISION:
                return t

            slope = cls.derivative(t, x0, x1, x2, x3)
            if abs(slope) < cls.NEWTON_MIN_SLOPE:
                break

            t -= (current_x - target_x) / slope
            t = max(0.0, min(1.0, t))

        return cls._bisect(target_x, x0, x1, x2, x3)

    @classmethod
    def _bisect(cls, target_x: float, x0: float, x1: float, x2: float, x3: float) -> float:
        t_min, t_max = 0.0, 1.0
        t = 0.5
        for _ in range(cls.SUBDIVISION_MAX_ITERATIONS):
            diff = cls.evaluate(t, x0, x1, x2, x3) - target_x
            if abs(diff) < cls.SUBDIVISION_PRECISION:
                return t
            if diff > 0:
                t_max = t
            else:
                t_min = t
            t = (t_min + t_max) / 2
        return t

    @classmethod
    def ease(cls, x: float,
             x0: float, x1: float, x2: float, x3: float,
             y0: float, y1: float, y2: float, y3: float) -> float:
        """给定时间进度 x，先求 t 再求 y（值进度）"""
        if not math.isfinite(x):
            return y3 if x > 0 else y0

        if x <= x0:
            return y0
        if x >= x3:
            return y3

        t = cls.solve_x(x, x0, x1, x2, x3)
        return cls.evaluate(t, y0, y1, y2, y3)


def tangents_to_control_points(
    tangents: BezierTangents, dimension: int = 0
) -> Tuple[Tuple[float, float, float, float], Tuple[float, float, float, float]]:
    """Lottie 切线 -> (x 轴控制点, y 轴控制点)，端点固定为 0 和 1"""
    ox, oy = tangents.o.component(dimension, 0.0, 0.0)
    ix, iy = tangents.i.component(dimension, 1.0, 1.0)
    return (0.0, ox, ix, 1.0), (0.0, oy, iy, 1.0)


def evaluate_cubic_bezier(t: float, p0: float, p1: float, p2: float, p3: float) -> float:
    return BezierSolver.evaluate(t, p0, p1, p2, p3)


def solve_cubic_bezier_x(target_x: float, x0: float, x1: float, x2: float, x3: float) -> float:
    return BezierSolver.solve_x(target_x, x0, x1, x2, x3)


def ease_bezier(x: float,
                x0: float, x1: float, x2: float, x3: float,
                y0: float, y1: float, y2: float, y3: float) -> float:
    return BezierSolver.ease(x, x0, x1, x2, x3, y0, y1, y2, y3)


def ease_from_tangents(x: float, tangents: BezierTangents, dimension: int = 0) -> float:
    """用 Lottie 切线对重映射时间进度"""
    xs, ys = tangents_to_control_points(tangents, dimension)
    return BezierSolver.ease(x, *xs, *ys)
