"""
自适应查询分类与增强管道
"""
__version__ = "0.1.0"
