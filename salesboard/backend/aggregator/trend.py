"""
比較値（前日比・前週比・前年比）の算出
"""
from typing import Optional

from ..formatters import round_half_up
from .period import ComparisonMode, DisplayMode

TREND_UP = 'up'
TREND_DOWN = 'down'
TREND_NEUTRAL = 'neutral'

COMPARISON_PREFIXES = {
    'day': '前日から',
    'week': '前週から',
    'month': '前月から',
    'year': '前年から',
}

COMPARISON_MODE_LABELS = {
    ComparisonMode.NONE: '',
    ComparisonMode.PREVIOUS_DAY: '前日',
    ComparisonMode.PREVIOUS_WEEK: '前週同曜日',
    ComparisonMode.PREVIOUS_YEAR: '前年同日',
}


def comparison_kind(mode: DisplayMode, comparison: ComparisonMode) -> str:
    """比較モードに対応する比較タイプ（day/week/month/year）"""
    if comparison is ComparisonMode.PREVIOUS_YEAR:
        return 'year'
    if mode is DisplayMode.MONTHLY:
        return 'month'
    if comparison is ComparisonMode.PREVIOUS_WEEK:
        return 'week'
    return 'day'


def calculate_comparison(
    current: float,
    previous: Optional[float],
    kind: str,
    value_unit: str = ''
) -> str:
    """
    実データから比較値を算出

    Args:
        current: 現在の値
        previous: 比較対象の値（Noneの場合は空文字）
        kind: 比較タイプ（day/week/month/year）
        value_unit: 値の単位（例: '円'、'人'）

    Returns:
        str: 例「前日から +1,234円」
    """
    if previous is None:
        return ''

    diff = round_half_up(current - previous)
    prefix = COMPARISON_PREFIXES.get(kind, '')
    sign = '+' if diff >= 0 else ''
    return f"{prefix} {sign}{diff:,}{value_unit}"


def determine_trend(sub_value: str) -> str:
    """比較値の文字列から増減傾向を判定"""
    if not sub_value:
        return TREND_NEUTRAL
    if '+' in sub_value:
        return TREND_UP
    if '-' in sub_value:
        return TREND_DOWN
    return TREND_NEUTRAL
