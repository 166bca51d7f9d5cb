"""
minotaur_host
视觉定位平台主机端：路径规划、路径跟随、物体推送和执行器驱动
"""

__version__ = '0.1.0'
