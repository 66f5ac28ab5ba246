from datetime import date

import pytest

from salesboard.backend.aggregator.period import ComparisonMode, DisplayMode
from salesboard.backend.aggregator.trend import (
    TREND_DOWN, TREND_NEUTRAL, TREND_UP, calculate_comparison, comparison_kind, determine_trend
)
from salesboard.backend.formatters import (
    format_currency, format_date, format_year_month, round_half_up
)


@pytest.mark.parametrize('mode, comparison, kind', [
    (DisplayMode.DAILY, ComparisonMode.PREVIOUS_DAY, 'day'),
    (DisplayMode.DAILY, ComparisonMode.PREVIOUS_WEEK, 'week'),
    (DisplayMode.DAILY, ComparisonMode.PREVIOUS_YEAR, 'year'),
    (DisplayMode.MONTHLY, ComparisonMode.PREVIOUS_DAY, 'month'),
    (DisplayMode.MONTHLY, ComparisonMode.PREVIOUS_WEEK, 'month'),
    (DisplayMode.MONTHLY, ComparisonMode.PREVIOUS_YEAR, 'year'),
])
def test_comparison_kind(mode, comparison, kind):
    assert comparison_kind(mode, comparison) == kind


def test_calculate_comparison():
    assert calculate_comparison(12000, 10766, 'day', '円') == '前日から +1,234円'
    assert calculate_comparison(5, 8, 'week', '組') == '前週から -3組'
    assert calculate_comparison(100, 100, 'month') == '前月から +0'
    assert calculate_comparison(100, None, 'year', '円') == ''


def test_determine_trend():
    assert determine_trend('前日から +1,234円') == TREND_UP
    assert determine_trend('前日から -3組') == TREND_DOWN
    assert determine_trend('') == TREND_NEUTRAL


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_half_up(-266.67) == -267


def test_formatters():
    assert format_currency(1234.5) == '1,235'
    assert format_date(date(2024, 5, 16)) == '2024年5月16日(木)'
    assert format_date(date(2024, 5, 19)) == '2024年5月19日(日)'
    assert format_year_month(date(2024, 5, 1)) == '2024年5月'
