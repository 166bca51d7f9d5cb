#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
minotaur_host 主程序入口
路径规划、执行器点动和串口列表的命令行工具

用法:
    minotaur-host plan grid.npy --start 0,0 --goal 5,3 [--penalty] [--plot plan.png]
    minotaur-host jog --port /dev/ttyUSB0 --dx 5 --dy -3
    minotaur-host ports
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import Tuple

import numpy as np
import serial.tools.list_ports

from minotaur_host import config
from minotaur_host.errors import MinotaurError
from minotaur_host.navigation.path_planner import (
    PathPlanner, PathPlannerConfig, scale_path_pixels
)
from minotaur_host.navigation.terrain import TerrainConfig, kernelize
from minotaur_host.communication import create_actuator
from minotaur_host.utils.logger import setup_all_loggers

logger = logging.getLogger('minotaur_host.main')


def parse_cell(text: str) -> Tuple[int, int]:
    """解析 'x,y' 形式的栅格坐标"""
    try:
        x, y = (int(v) for v in text.split(','))
    except ValueError:
        raise argparse.ArgumentTypeError(f"栅格坐标格式应为 x,y: {text!r}")
    return (x, y)


def load_grid(filename: str) -> np.ndarray:
    """读取占据栅格（.npy 或空白分隔的文本）"""
    path = Path(filename)
    if path.suffix == '.npy':
        return np.load(path)
    return np.loadtxt(path, dtype=np.int64, ndmin=2)


def cmd_plan(args) -> int:
    """规划路径并输出栅格/像素坐标"""
    try:
        grid = load_grid(args.grid)
    except (OSError, ValueError) as e:
        logger.error(f"无法读取栅格文件 {args.grid}: {e}")
        return 1

    terrain_config = TerrainConfig(spread_wall_penalty=args.penalty)
    planner = PathPlanner(PathPlannerConfig(cell_size=args.cell_size, terrain=terrain_config))

    try:
        cost_field = kernelize(grid, terrain_config)
        path = planner.search_path(cost_field, args.start, args.goal)
    except MinotaurError as e:
        logger.error(f"路径规划失败: {e}")
        return 1

    pixels = scale_path_pixels(path, planner.config.origin, planner.config.cell_size)
    print(f"[结果] 找到路径: {len(path)} 个点，代价 {planner.get_path_cost(cost_field, path)}")
    for cell, pixel in zip(path, pixels):
        print(f"  {cell[0]},{cell[1]} -> {pixel[0]:.1f},{pixel[1]:.1f}")

    if args.plot:
        import matplotlib
        matplotlib.use('Agg')  # 非交互式后端
        from minotaur_host.visualization import save_plan_figure
        save_plan_figure(cost_field, path, args.plot)
        print(f"[结果] 图形已保存: {args.plot}")
    return 0


def cmd_jog(args) -> int:
    """打开串口并发送一次两轴相对移动"""
    actuator = create_actuator(args.port, connect=False, baudrate=args.baudrate)
    if args.invert:
        actuator.invert_devices()

    if not actuator.connect():
        print("[错误] 无法连接串口，请检查:")
        print(f"  1. 串口设备是否存在: {args.port}")
        print(f"  2. 是否有权限: sudo chmod 666 {args.port}")
        return 1

    try:
        ok = actuator.move((args.dx, args.dy), args.duration)
    finally:
        actuator.disconnect()
    return 0 if ok else 1


def cmd_ports(args) -> int:
    """列出可用串口"""
    ports = serial.tools.list_ports.comports()
    if not ports:
        print("未找到串口")
        return 0
    for port in ports:
        print(f"  {port.device}: {port.description}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='minotaur-host', description='视觉定位平台主机端工具')
    parser.add_argument('--log-level', default=None, help='日志级别（默认使用config.LOG_LEVEL）')
    sub = parser.add_subparsers(dest='command', required=True)

    plan = sub.add_parser('plan', help='在占据栅格上规划路径')
    plan.add_argument('grid', help='占据栅格文件（.npy 或文本，墙为 -1）')
    plan.add_argument('--start', type=parse_cell, required=True, help='起点 x,y')
    plan.add_argument('--goal', type=parse_cell, required=True, help='终点 x,y')
    plan.add_argument('--penalty', action='store_true', help='启用墙体惩罚扩散')
    plan.add_argument('--cell-size', type=int, default=config.GRID_SIZE, help='栅格像素尺寸')
    plan.add_argument('--plot', default=None, help='保存规划结果图片')
    plan.set_defaults(func=cmd_plan)

    jog = sub.add_parser('jog', help='执行器点动')
    jog.add_argument('--port', default=config.SERIAL_PORT, help='串口号（Windows: COM3, Linux: /dev/ttyUSB0）')
    jog.add_argument('--baudrate', type=int, default=config.BAUDRATE, help='波特率')
    jog.add_argument('--dx', type=int, default=0, help='X轴步数')
    jog.add_argument('--dy', type=int, default=0, help='Y轴步数')
    jog.add_argument('--duration', type=float, default=config.MOVE_DURATION, help='每轴时长（秒）')
    jog.add_argument('--invert', action='store_true', help='交换X/Y设备')
    jog.set_defaults(func=cmd_jog)

    ports = sub.add_parser('ports', help='列出可用串口')
    ports.set_defaults(func=cmd_ports)

    return parser


def main(argv=None) -> int:
    """主函数"""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = getattr(logging, args.log_level.upper(), None) if args.log_level else None
    setup_all_loggers(level=level)
    if not config.validate_config():
        return 1

    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
