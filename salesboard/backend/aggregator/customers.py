"""
時間帯別客数集計モジュール
注文を30分/1時間/2時間/日単位の区間に振り分け、組数と人数を集計する
"""
import calendar
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple
import logging

from ..models import Order

logger = logging.getLogger(__name__)


class TimeScale(Enum):
    """集計区間の刻み幅"""
    HALF_HOUR = '30min'
    HOUR = '1hour'
    TWO_HOURS = '2hour'
    DAY = 'day'


@dataclass
class CustomerBucket:
    """区間別客数レコード"""
    label: str
    group_count: int = 0    # 客組数
    person_count: int = 0   # 客人数

    def to_dict(self):
        return {
            'label': self.label,
            'group_count': self.group_count,
            'person_count': self.person_count
        }


def _hour_label(hour: int) -> str:
    return f"{hour}:00"


def _half_hour_label(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def _two_hour_label(block: int) -> str:
    return f"{block:02d}:00-{block + 2:02d}:00"


def bucket_key(moment: datetime, scale: TimeScale) -> Tuple[str, Tuple[int, int]]:
    """
    日時から区間ラベルとソートキーを求める

    Args:
        moment: 注文完了日時（ローカル時刻）
        scale: 刻み幅

    Returns:
        Tuple[str, Tuple[int, int]]: (ラベル, ソートキー)
    """
    if scale is TimeScale.HOUR:
        return _hour_label(moment.hour), (moment.hour, 0)
    if scale is TimeScale.HALF_HOUR:
        # 0-29分は「XX:00」、30-59分は「XX:30」に集計
        minute = 0 if moment.minute < 30 else 30
        return _half_hour_label(moment.hour, minute), (moment.hour, minute)
    if scale is TimeScale.TWO_HOURS:
        block = moment.hour // 2 * 2
        return _two_hour_label(block), (block, 0)
    return str(moment.day), (moment.day, 0)


def aggregate_customers(orders: Iterable[Order], scale: TimeScale) -> List[CustomerBucket]:
    """
    区間別の客数データを生成

    注文のない区間は出力しない（fill_missing_bucketsで補完する）。

    Args:
        orders: 期間でフィルタリング済みの注文データ
        scale: 刻み幅

    Returns:
        List[CustomerBucket]: 区間の昇順に並んだ客数データ
    """
    buckets: Dict[str, CustomerBucket] = {}
    sort_keys: Dict[str, Tuple[int, int]] = {}

    for order in orders:
        label, key = bucket_key(order.completed_at, scale)
        bucket = buckets.get(label)
        if bucket is None:
            bucket = buckets[label] = CustomerBucket(label)
            sort_keys[label] = key
        bucket.group_count += 1
        bucket.person_count += order.party_size

    return sorted(buckets.values(), key=lambda b: sort_keys[b.label])


def generate_hourly_customers_data(orders: Iterable[Order]) -> List[CustomerBucket]:
    """1時間区切りの客数データ"""
    return aggregate_customers(orders, TimeScale.HOUR)


def generate_half_hourly_customers_data(orders: Iterable[Order]) -> List[CustomerBucket]:
    """30分区切りの客数データ"""
    return aggregate_customers(orders, TimeScale.HALF_HOUR)


def generate_two_hourly_customers_data(orders: Iterable[Order]) -> List[CustomerBucket]:
    """2時間区切りの客数データ"""
    return aggregate_customers(orders, TimeScale.TWO_HOURS)


def generate_daily_customers_data(orders: Iterable[Order]) -> List[CustomerBucket]:
    """月内の日別客数データ（月報用）"""
    return aggregate_customers(orders, TimeScale.DAY)


def bucket_ticks(
    scale: TimeScale,
    open_hour: int = 10,
    close_hour: int = 24,
    anchor: Optional[date] = None
) -> List[str]:
    """
    グラフの目盛り（区間ラベル一覧）を生成

    Args:
        scale: 刻み幅
        open_hour: 営業開始時刻
        close_hour: 営業終了時刻（24 = 翌0時）
        anchor: 日単位の場合の対象月（省略時は31日分）

    Returns:
        List[str]: 区間ラベル
    """
    if scale is TimeScale.HOUR:
        return [_hour_label(h) for h in range(open_hour, close_hour + 1)]
    if scale is TimeScale.HALF_HOUR:
        ticks = []
        for h in range(open_hour, close_hour):
            ticks.append(_half_hour_label(h, 0))
            ticks.append(_half_hour_label(h, 30))
        ticks.append(_half_hour_label(close_hour, 0))
        return ticks
    if scale is TimeScale.TWO_HOURS:
        # 閉店時刻を含む区間まで（例: 24:00-26:00）
        return [_two_hour_label(h) for h in range(open_hour, close_hour + 1, 2)]

    days = calendar.monthrange(anchor.year, anchor.month)[1] if anchor else 31
    return [str(d) for d in range(1, days + 1)]


def fill_missing_buckets(
    buckets: List[CustomerBucket], ticks: List[str]
) -> List[CustomerBucket]:
    """
    目盛りに合わせて注文のない区間を0で補完

    目盛りの範囲外の区間（営業時間外の注文など）は削除せず末尾に残すため、
    組数の合計は補完前と変わらない。

    Args:
        buckets: aggregate_customersの結果
        ticks: bucket_ticksの結果

    Returns:
        List[CustomerBucket]: 目盛り順の客数データ
    """
    by_label = {b.label: b for b in buckets}
    filled = [by_label.get(t) or CustomerBucket(t) for t in ticks]

    tick_set = set(ticks)
    extra = [b for b in buckets if b.label not in tick_set]
    if extra:
        logger.debug(f"目盛り範囲外の区間: {[b.label for b in extra]}")
    return filled + extra
