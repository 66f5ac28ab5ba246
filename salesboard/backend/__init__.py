"""
売上分析バックエンド
"""
