from datetime import date, datetime

import pytest

from salesboard.backend.aggregator.customers import (
    CustomerBucket, TimeScale, aggregate_customers, bucket_key, bucket_ticks,
    fill_missing_buckets, generate_daily_customers_data, generate_half_hourly_customers_data,
    generate_hourly_customers_data, generate_two_hourly_customers_data
)
from salesboard.backend.aggregator.period import filter_daily_orders, filter_monthly_orders
from salesboard.backend.models import Order

from .conftest import REPORT_DATE


def _summary(buckets):
    return [(b.label, b.group_count, b.person_count) for b in buckets]


@pytest.fixture
def daily_orders(orders):
    return filter_daily_orders(orders, REPORT_DATE)


@pytest.mark.parametrize('moment, scale, label', [
    (datetime(2024, 5, 16, 9, 5), TimeScale.HOUR, '9:00'),
    (datetime(2024, 5, 16, 18, 59), TimeScale.HOUR, '18:00'),
    (datetime(2024, 5, 16, 9, 29), TimeScale.HALF_HOUR, '09:00'),
    (datetime(2024, 5, 16, 9, 30), TimeScale.HALF_HOUR, '09:30'),
    (datetime(2024, 5, 16, 13, 0), TimeScale.TWO_HOURS, '12:00-14:00'),
    (datetime(2024, 5, 16, 23, 59), TimeScale.TWO_HOURS, '22:00-24:00'),
    (datetime(2024, 5, 6, 12, 0), TimeScale.DAY, '6'),
])
def test_bucket_labels(moment, scale, label):
    assert bucket_key(moment, scale)[0] == label


def test_hourly(daily_orders):
    assert _summary(generate_hourly_customers_data(daily_orders)) == [
        ('11:00', 2, 5),
        ('18:00', 1, 4),
    ]


def test_half_hourly(daily_orders):
    assert _summary(generate_half_hourly_customers_data(daily_orders)) == [
        ('11:00', 1, 2),
        ('11:30', 1, 3),
        ('18:00', 1, 4),
    ]


def test_two_hourly(daily_orders):
    assert _summary(generate_two_hourly_customers_data(daily_orders)) == [
        ('10:00-12:00', 2, 5),
        ('18:00-20:00', 1, 4),
    ]


def test_daily_buckets_sorted_numerically(orders):
    monthly = filter_monthly_orders(orders, REPORT_DATE)
    assert _summary(generate_daily_customers_data(monthly)) == [
        ('9', 1, 2),
        ('15', 1, 1),
        ('16', 3, 9),
    ]


def test_hourly_labels_sort_by_hour_not_text():
    orders = [
        Order(1, datetime(2024, 5, 16, 11, 0), 1, 2),
        Order(2, datetime(2024, 5, 16, 9, 30), 2, 1),
    ]
    buckets = aggregate_customers(orders, TimeScale.HOUR)
    assert [b.label for b in buckets] == ['9:00', '11:00']


@pytest.mark.parametrize('scale', list(TimeScale))
def test_buckets_partition_orders(orders, scale):
    buckets = aggregate_customers(orders, scale)
    assert sum(b.group_count for b in buckets) == len(orders)
    assert sum(b.person_count for b in buckets) == sum(o.party_size for o in orders)


def test_empty_input():
    assert aggregate_customers([], TimeScale.HOUR) == []


def test_ticks():
    hourly = bucket_ticks(TimeScale.HOUR)
    assert hourly[0] == '10:00'
    assert hourly[-1] == '24:00'
    assert len(hourly) == 15

    half = bucket_ticks(TimeScale.HALF_HOUR)
    assert half[:3] == ['10:00', '10:30', '11:00']
    assert half[-1] == '24:00'

    assert bucket_ticks(TimeScale.TWO_HOURS, 10, 24) == [
        '10:00-12:00', '12:00-14:00', '14:00-16:00', '16:00-18:00',
        '18:00-20:00', '20:00-22:00', '22:00-24:00', '24:00-26:00',
    ]

    assert len(bucket_ticks(TimeScale.DAY, anchor=date(2024, 2, 10))) == 29
    assert len(bucket_ticks(TimeScale.DAY)) == 31


def test_fill_missing_buckets_keeps_totals():
    buckets = [CustomerBucket('9:00', 1, 2), CustomerBucket('11:00', 2, 5)]
    filled = fill_missing_buckets(buckets, bucket_ticks(TimeScale.HOUR))

    assert filled[0].label == '10:00'
    assert filled[0].group_count == 0
    assert filled[1] == CustomerBucket('11:00', 2, 5)
    # 目盛り範囲外の区間は末尾に残る
    assert filled[-1] == CustomerBucket('9:00', 1, 2)
    assert sum(b.group_count for b in filled) == 3


def test_to_dict():
    assert CustomerBucket('11:00', 2, 5).to_dict() == {
        'label': '11:00', 'group_count': 2, 'person_count': 5
    }
