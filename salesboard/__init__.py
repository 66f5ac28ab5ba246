"""
飲食店 売上分析システム
"""

__version__ = '0.1.0'
