"""
データ読み込みサービス
"""

from .file_handler import DataFormatError, DataSourceNotFoundError, FileHandler

__all__ = ['DataFormatError', 'DataSourceNotFoundError', 'FileHandler']
