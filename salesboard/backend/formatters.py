"""
表示用フォーマット
"""
import math
from datetime import date

WEEKDAYS = ['月', '火', '水', '木', '金', '土', '日']


def round_half_up(value: float) -> int:
    """四捨五入（0.5は正の方向へ）"""
    return math.floor(value + 0.5)


def format_currency(amount: float) -> str:
    """金額を丸めて桁区切り（例: 1234.5 → "1,235"）"""
    return f"{round_half_up(amount):,}"


def format_date(day: date) -> str:
    """日付を日本語形式に変換（例: 2024年5月16日(木)）"""
    return f"{day.year}年{day.month}月{day.day}日({WEEKDAYS[day.weekday()]})"


def format_year_month(day: date) -> str:
    """年月を日本語形式に変換（例: 2024年5月）"""
    return f"{day.year}年{day.month}月"
