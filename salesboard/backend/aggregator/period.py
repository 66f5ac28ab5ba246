"""
期間フィルタモジュール
日報/月報の対象期間で注文・決済・注文アイテムを絞り込む
"""
import calendar
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Union

from ..models import Order, OrderItem, Payment

DateLike = Union[date, datetime]


class DisplayMode(Enum):
    """表示モード（日報/月報）"""
    DAILY = 'daily'
    WEEKLY = 'weekly'  # 将来的な拡張用
    MONTHLY = 'monthly'
    YEARLY = 'yearly'  # 将来的な拡張用

    @property
    def label(self) -> str:
        return DISPLAY_MODE_LABELS[self]


DISPLAY_MODE_LABELS = {
    DisplayMode.DAILY: '日報',
    DisplayMode.WEEKLY: '週報',
    DisplayMode.MONTHLY: '月報',
    DisplayMode.YEARLY: '年報',
}


class ComparisonMode(Enum):
    """比較モード"""
    NONE = 'none'
    PREVIOUS_DAY = 'previousDay'
    PREVIOUS_WEEK = 'previousWeek'
    PREVIOUS_YEAR = 'previousYear'


def _as_date(value: DateLike) -> date:
    """datetimeの場合は日付部分のみを取り出す"""
    if isinstance(value, datetime):
        return value.date()
    return value


def _day_range(value: DateLike):
    """指定日の [00:00, 翌日00:00) の範囲"""
    start = datetime.combine(_as_date(value), time.min)
    return start, start + timedelta(days=1)


def filter_daily_orders(orders: Iterable[Order], day: DateLike) -> List[Order]:
    """
    指定日の注文データを抽出

    Args:
        orders: 全注文データ
        day: 対象日

    Returns:
        List[Order]: 00:00:00 以降、翌日 00:00:00 より前に完了した注文
    """
    start, end = _day_range(day)
    return [o for o in orders if start <= o.completed_at < end]


def filter_daily_payments(payments: Iterable[Payment], day: DateLike) -> List[Payment]:
    """指定日の決済データを抽出"""
    start, end = _day_range(day)
    return [p for p in payments if start <= p.payment_time < end]


def filter_monthly_orders(orders: Iterable[Order], day: DateLike) -> List[Order]:
    """指定年月の注文データを抽出"""
    return [
        o for o in orders
        if o.completed_at.year == day.year and o.completed_at.month == day.month
    ]


def filter_monthly_payments(payments: Iterable[Payment], day: DateLike) -> List[Payment]:
    """指定年月の決済データを抽出"""
    return [
        p for p in payments
        if p.payment_time.year == day.year and p.payment_time.month == day.month
    ]


def filter_order_items(
    order_items: Iterable[OrderItem], order_ids: Iterable[int]
) -> List[OrderItem]:
    """
    注文IDに含まれる注文アイテムを抽出

    Args:
        order_items: 全注文アイテム
        order_ids: 対象期間の注文ID

    Returns:
        List[OrderItem]: 対象注文に属するアイテム
    """
    ids = set(order_ids)
    return [item for item in order_items if item.order_id in ids]


def shift_month(day: date, months: int) -> date:
    """月を移動（日は移動先の月末で切り詰める）"""
    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def shift_year(day: date, years: int) -> date:
    """年を移動（2/29は2/28に切り詰める）"""
    return shift_month(day, years * 12)


@dataclass(frozen=True)
class ReportContext:
    """
    レポート表示コンテキスト（表示モード + 基準日）

    使用例:
        context = ReportContext(DisplayMode.DAILY, date(2024, 5, 16))
        orders = context.filter_orders(all_orders)
        context = context.prev_day()
    """
    mode: DisplayMode
    anchor: date
    last_daily_date: Optional[date] = None

    def __post_init__(self):
        if isinstance(self.anchor, datetime):
            object.__setattr__(self, 'anchor', self.anchor.date())
        # 日報表示中は最後に表示した日報の日付を追従させる
        if self.mode is DisplayMode.DAILY or self.last_daily_date is None:
            object.__setattr__(self, 'last_daily_date', self.anchor)

    @classmethod
    def from_query(
        cls,
        mode: Optional[str],
        date_str: Optional[str],
        default_date: date
    ) -> 'ReportContext':
        """
        クエリパラメータからコンテキストを生成

        Args:
            mode: 'daily' / 'monthly'（省略時は日報）
            date_str: YYYY-MM-DD（省略時はdefault_date）
            default_date: 既定の基準日

        Raises:
            ValueError: モードまたは日付の形式が不正な場合
        """
        mode = (mode or DisplayMode.DAILY.value).lower()
        if mode not in (DisplayMode.DAILY.value, DisplayMode.MONTHLY.value):
            raise ValueError(f"表示モードが不正です: {mode}")
        if date_str:
            try:
                anchor = datetime.strptime(date_str, '%Y-%m-%d').date()
            except ValueError:
                raise ValueError(f"日付の形式が不正です（YYYY-MM-DD）: {date_str}") from None
        else:
            anchor = default_date
        return cls(DisplayMode(mode), anchor)

    # ========== 日付操作 ==========

    def _move_to(self, anchor: date) -> 'ReportContext':
        return replace(self, anchor=anchor)

    def prev_day(self) -> 'ReportContext':
        return self._move_to(self.anchor - timedelta(days=1))

    def next_day(self) -> 'ReportContext':
        return self._move_to(self.anchor + timedelta(days=1))

    def prev_month(self) -> 'ReportContext':
        return self._move_to(shift_month(self.anchor, -1))

    def next_month(self) -> 'ReportContext':
        return self._move_to(shift_month(self.anchor, 1))

    def today(self, today: date) -> 'ReportContext':
        return self._move_to(today)

    def with_mode(self, mode: DisplayMode) -> 'ReportContext':
        """
        表示モードを切り替え

        月報→日報の場合、最後に表示した日報の日付が同じ月ならその日付に、
        そうでなければ月の1日に戻る。
        """
        if mode is self.mode:
            return self

        anchor = self.anchor
        if mode is DisplayMode.DAILY:
            last = self.last_daily_date
            if last and (last.year, last.month) == (anchor.year, anchor.month):
                anchor = last
            else:
                anchor = anchor.replace(day=1)
        return ReportContext(mode, anchor, self.last_daily_date)

    # ========== フィルタ ==========

    def _require_supported(self) -> None:
        if self.mode not in (DisplayMode.DAILY, DisplayMode.MONTHLY):
            raise ValueError(f"未対応の表示モードです: {self.mode.value}")

    def filter_orders(self, orders: Sequence[Order]) -> List[Order]:
        self._require_supported()
        if self.mode is DisplayMode.DAILY:
            return filter_daily_orders(orders, self.anchor)
        return filter_monthly_orders(orders, self.anchor)

    def filter_payments(self, payments: Sequence[Payment]) -> List[Payment]:
        self._require_supported()
        if self.mode is DisplayMode.DAILY:
            return filter_daily_payments(payments, self.anchor)
        return filter_monthly_payments(payments, self.anchor)

    def filter_order_items(
        self, order_items: Sequence[OrderItem], orders: Sequence[Order]
    ) -> List[OrderItem]:
        """期間内の注文（フィルタ済み）に属する注文アイテムを抽出"""
        return filter_order_items(order_items, (o.order_id for o in orders))

    def comparison_context(self, comparison: 'ComparisonMode') -> Optional['ReportContext']:
        """
        比較対象期間のコンテキストを取得

        日報: 前日 / 前週同曜日 / 前年同日
        月報: 前日・前週は前月として扱い、前年は前年同月

        Returns:
            ReportContext: 比較対象期間（比較なしの場合はNone）
        """
        if comparison is ComparisonMode.NONE:
            return None

        anchor = self.anchor
        if self.mode is DisplayMode.MONTHLY:
            if comparison is ComparisonMode.PREVIOUS_YEAR:
                anchor = shift_year(anchor, -1)
            else:
                anchor = shift_month(anchor, -1)
        elif comparison is ComparisonMode.PREVIOUS_DAY:
            anchor = anchor - timedelta(days=1)
        elif comparison is ComparisonMode.PREVIOUS_WEEK:
            anchor = anchor - timedelta(days=7)
        else:
            anchor = shift_year(anchor, -1)
        return ReportContext(self.mode, anchor)

    @property
    def period_label(self) -> str:
        """期間の表示名（例: 2024-05-16 / 2024-05）"""
        if self.mode is DisplayMode.MONTHLY:
            return self.anchor.strftime('%Y-%m')
        return self.anchor.isoformat()
