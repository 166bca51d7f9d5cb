# config.py - minotaur_host 统一配置文件
# 修改此文件后，重启程序即可生效

import logging

logger = logging.getLogger(__name__)

# ============================================================================
# 串口通信配置
# ============================================================================
SERIAL_PORT = 'COM3'               # Windows: 'COM3', Linux: '/dev/ttyUSB0', 测试: 'loop://'
BAUDRATE = 9600                    # Zaber T系列默认波特率
BYTESIZE = 8                       # 数据位
PARITY = 'N'                       # 校验位: 'N' | 'E' | 'O' | 'M' | 'S'
STOPBITS = 1                       # 停止位: 1 | 1.5 | 2
FLOW_CONTROL = 'none'              # 流控: 'none' | 'xonxoff' | 'rtscts' | 'dsrdtr'
TIMEOUT = 0.5                      # 读写超时（秒）

# ============================================================================
# 执行器协议参数（⚠️ 必须与电机控制器固件保持一致！）
# ============================================================================
DEVICE_X = 0                       # X轴设备号
DEVICE_Y = 1                       # Y轴设备号
BYTE_RANGE = 256                   # 数据字节的进制
STEP_FACTOR = 10                   # 每个单位步对应的微步数
MOVE_DURATION = 0.1                # 单次move的默认总时长（秒）
CONCURRENT_AXES = False            # 是否两轴并行发送（默认顺序发送）

# ============================================================================
# 栅格与地形配置
# ============================================================================
GRID_ROWS = 12                     # 栅格行数
GRID_COLS = 16                     # 栅格列数
GRID_SIZE = 40                     # 单个栅格的像素尺寸
GRID_ORIGIN = (0, 0)               # 栅格左上角在画面中的像素坐标
GRID_WALL_VALUE = -1               # 占据栅格中表示墙的值

# 墙体惩罚（距墙1/2/3格的附加代价）
WALL_PENALTY_0 = 8
WALL_PENALTY_1 = 4
WALL_PENALTY_2 = 2
WALL_PENALTY_ENABLED = False       # ⚠️ 惩罚扩散目前默认关闭，仅保留墙体

BASE_STEP_COST = 1                 # 每走一格的基础代价（保证启发函数可采纳）

# ============================================================================
# 路径跟随控制器配置
# ============================================================================
PROCEDURE_TICK_MS = 50             # 控制循环周期（毫秒）
LOC_ACCEPT = 10.0                  # 路径点到达半径（像素）
NORM_DEV = 15.0                    # 允许的横向偏离（像素）

# ============================================================================
# 推物体状态机配置
# ============================================================================
OBJECT_LINE_TICK_MS = 50           # 状态机循环周期（毫秒）
OBJECT_MOVE_TICK_MS = 50           # 推动子过程循环周期（毫秒）
OBJECT_NORM_DEV = 10.0             # 推动时物体允许的横向偏离（像素）
CORRECTION_NORM_DEV = 10000.0      # 纠偏推动时的偏离阈值（相当于关闭）
OBJECT_TARGET_TOLERANCE = 2.0      # 物体到达目标的容差（像素）
OBJECT_PUSH_MAX_POWER = 20         # 单次推动的最大步数
READY_MOVE_CLEARANCE = 10.0        # 绕行物体时的额外间隙（像素）
READY_MOVE_ACCEPT = 6.0            # 就位子过程的到达半径（像素）
READY_MOVE_NORM_DEV = 10.0         # 就位子过程允许的横向偏离（像素）

# ============================================================================
# 可视化配置
# ============================================================================
VISUALIZE_WINDOW_SIZE = (8, 6)     # 窗口大小（英寸，matplotlib figsize）
COLOR_PATH = '#00c000'             # 路径颜色
COLOR_START = '#0000ff'            # 起点颜色
COLOR_GOAL = '#ff0000'             # 终点颜色

# ============================================================================
# 日志配置
# ============================================================================
LOG_DIR = 'data/logs'
LOG_LEVEL = 'INFO'                 # DEBUG | INFO | WARNING | ERROR
ENABLE_FILE_LOG = True
ENABLE_CONSOLE_LOG = True
LOG_FORMAT = '[%(asctime)s] %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%H:%M:%S'

# ============================================================================
# 辅助函数
# ============================================================================

def get_config_summary():
    """获取配置摘要（用于调试）"""
    return f"""
╔════════════════════════════════════════════════════════════════╗
║                  minotaur_host 配置摘要                        ║
╠════════════════════════════════════════════════════════════════╣
║ 串口: {SERIAL_PORT} @ {BAUDRATE} {BYTESIZE}{PARITY}{STOPBITS}
║ 设备: X={DEVICE_X}, Y={DEVICE_Y}, 步长因子={STEP_FACTOR}
║ 栅格: {GRID_COLS}x{GRID_ROWS} @ {GRID_SIZE}px/格
║ 墙体惩罚: {WALL_PENALTY_0}/{WALL_PENALTY_1}/{WALL_PENALTY_2} ({'启用' if WALL_PENALTY_ENABLED else '禁用'})
║ 跟随: 周期={PROCEDURE_TICK_MS}ms, 到达={LOC_ACCEPT}px, 偏离={NORM_DEV}px
║ 日志: {LOG_LEVEL} -> {LOG_DIR}
╚════════════════════════════════════════════════════════════════╝
    """


def validate_config():
    """验证配置参数的合理性

    Returns:
        没有错误返回True
    """
    errors = []
    warnings = []

    if GRID_SIZE <= 0:
        errors.append("GRID_SIZE 必须大于0")
    if GRID_ROWS <= 0 or GRID_COLS <= 0:
        errors.append("GRID_ROWS/GRID_COLS 必须大于0")
    if BASE_STEP_COST < 1:
        errors.append("BASE_STEP_COST 必须不小于1，否则曼哈顿启发函数不可采纳")
    if not 2 <= BYTE_RANGE <= 256:
        errors.append("BYTE_RANGE 必须在 [2, 256] 范围内")
    if DEVICE_X == DEVICE_Y:
        errors.append("DEVICE_X 与 DEVICE_Y 不能相同")
    if PROCEDURE_TICK_MS <= 0 or OBJECT_LINE_TICK_MS <= 0 or OBJECT_MOVE_TICK_MS <= 0:
        errors.append("控制循环周期必须大于0")
    if min(WALL_PENALTY_0, WALL_PENALTY_1, WALL_PENALTY_2) < 0:
        errors.append("墙体惩罚不能为负")

    if LOC_ACCEPT > GRID_SIZE:
        warnings.append(f"LOC_ACCEPT={LOC_ACCEPT}px 大于一个栅格，可能跳过路径点")
    if MOVE_DURATION > 1.0:
        warnings.append(f"MOVE_DURATION={MOVE_DURATION}s 过长，会阻塞控制循环")

    for err in errors:
        logger.error(f"配置错误: {err}")
    for warn in warnings:
        logger.warning(f"配置警告: {warn}")

    return len(errors) == 0


if __name__ == '__main__':
    # 如果直接运行此文件，显示配置摘要
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    print(get_config_summary())
    validate_config()
