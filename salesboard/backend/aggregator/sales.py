"""
売上集計モジュール
期間別売上（時間帯別/日別）の集計と、各集計をまとめて実行する集計クラス
"""
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence
import logging

from ..models import Order, OrderItem, Payment, Product, SalesData
from .customers import CustomerBucket, TimeScale, aggregate_customers, bucket_ticks, fill_missing_buckets
from .payments import PaymentMethodAmount, aggregate_by_method
from .period import ComparisonMode, DisplayMode, ReportContext
from .products import (
    AbcAnalysisItem, AbcThresholds, DEFAULT_ABC_THRESHOLDS, perform_abc_analysis, rollup_products
)
from .summary import SalesKPI, SalesSummary
from .trend import calculate_comparison, comparison_kind

logger = logging.getLogger(__name__)


@dataclass
class PeriodSalesRecord:
    """期間別（時間帯別/日別）売上レコード"""
    period: str
    total_sales: float = 0.0
    net_sales: float = 0.0
    fees: float = 0.0
    profit: float = 0.0
    average_per_customer: float = 0.0

    def to_dict(self):
        return {
            'period': self.period,
            'total_sales': self.total_sales,
            'net_sales': self.net_sales,
            'fees': self.fees,
            'profit': self.profit,
            'average_per_customer': self.average_per_customer
        }


@dataclass
class DetailedSalesTable:
    """詳細データテーブル（列ごとの配列）"""
    periods: List[str] = field(default_factory=list)
    total_sales: List[float] = field(default_factory=list)
    net_sales: List[float] = field(default_factory=list)
    fees: List[float] = field(default_factory=list)
    profit: List[float] = field(default_factory=list)
    average_per_customer: List[float] = field(default_factory=list)

    def to_dict(self):
        return {
            'periods': self.periods,
            'total_sales': self.total_sales,
            'net_sales': self.net_sales,
            'fees': self.fees,
            'profit': self.profit,
            'average_per_customer': self.average_per_customer
        }


def _generate_period_sales_data(
    orders: Sequence[Order],
    payments: Sequence[Payment],
    order_items: Sequence[OrderItem],
    products: Sequence[Product],
    scale: TimeScale
) -> List[PeriodSalesRecord]:
    """注文を区間ごとにまとめ、紐づく決済と注文アイテムから売上・粗利を集計"""
    payments_by_order: Dict[int, List[Payment]] = defaultdict(list)
    for payment in payments:
        payments_by_order[payment.order_id].append(payment)

    items_by_order: Dict[int, List[OrderItem]] = defaultdict(list)
    for item in order_items:
        items_by_order[item.order_id].append(item)

    catalog = {p.product_id: p for p in products}

    totals: Dict[str, Dict[str, float]] = {}
    sort_keys = {}
    for order in orders:
        if scale is TimeScale.DAY:
            period, key = str(order.completed_at.day), order.completed_at.day
        else:
            period, key = f"{order.completed_at.hour}:00", order.completed_at.hour

        data = totals.get(period)
        if data is None:
            data = totals[period] = {
                'total_sales': 0, 'fees': 0, 'party_size': 0, 'profit': 0
            }
            sort_keys[period] = key

        data['party_size'] += order.party_size
        for payment in payments_by_order.get(order.order_id, ()):
            data['total_sales'] += payment.amount
            data['fees'] += payment.fee
        for item in items_by_order.get(order.order_id, ()):
            product = catalog.get(item.product_id)
            if product:
                data['profit'] += product.profit * item.quantity

    records = []
    for period in sorted(totals, key=sort_keys.get):
        data = totals[period]
        records.append(PeriodSalesRecord(
            period=period,
            total_sales=data['total_sales'],
            net_sales=data['total_sales'] - data['fees'],
            fees=data['fees'],
            profit=data['profit'],
            average_per_customer=(
                data['total_sales'] / data['party_size'] if data['party_size'] > 0 else 0
            )
        ))
    return records


def generate_hourly_sales_data(
    orders: Sequence[Order],
    payments: Sequence[Payment],
    order_items: Sequence[OrderItem],
    products: Sequence[Product]
) -> List[PeriodSalesRecord]:
    """
    時間帯別売上データを生成

    Args:
        orders: 日別注文データ
        payments: 日別決済データ
        order_items: 日別注文アイテムデータ
        products: 商品マスタ

    Returns:
        List[PeriodSalesRecord]: 時間帯（"H:00"）の昇順
    """
    return _generate_period_sales_data(orders, payments, order_items, products, TimeScale.HOUR)


def generate_daily_sales_data(
    orders: Sequence[Order],
    payments: Sequence[Payment],
    order_items: Sequence[OrderItem],
    products: Sequence[Product]
) -> List[PeriodSalesRecord]:
    """日別売上データを生成（月報用）"""
    return _generate_period_sales_data(orders, payments, order_items, products, TimeScale.DAY)


def calculate_detailed_sales_data(records: Sequence[PeriodSalesRecord]) -> DetailedSalesTable:
    """期間別売上データを詳細テーブル（列形式）に変換"""
    return DetailedSalesTable(
        periods=[r.period for r in records],
        total_sales=[r.total_sales for r in records],
        net_sales=[r.net_sales for r in records],
        fees=[r.fees for r in records],
        profit=[r.profit for r in records],
        average_per_customer=[r.average_per_customer for r in records]
    )


@dataclass
class PeriodSnapshot:
    """比較対象期間の集計結果"""
    kind: str                      # day / week / month / year
    context: ReportContext
    kpi: SalesKPI
    customers: List[CustomerBucket] = field(default_factory=list)
    comparisons: Dict[str, str] = field(default_factory=dict)

    def to_dict(self):
        return {
            'kind': self.kind,
            'period': self.context.period_label,
            'kpi': self.kpi.to_dict(),
            'customers': [c.to_dict() for c in self.customers],
            'comparisons': self.comparisons
        }


@dataclass
class AggregationResult:
    """集計結果全体を格納するデータクラス"""
    context: Optional[ReportContext] = None
    kpi: Optional[SalesKPI] = None
    customers: List[CustomerBucket] = field(default_factory=list)
    sales: List[PeriodSalesRecord] = field(default_factory=list)
    payment_methods: List[PaymentMethodAmount] = field(default_factory=list)
    products: List[AbcAnalysisItem] = field(default_factory=list)
    comparisons: Dict[str, PeriodSnapshot] = field(default_factory=dict)

    @property
    def detailed_sales(self) -> DetailedSalesTable:
        return calculate_detailed_sales_data(self.sales)

    def to_dict(self):
        return {
            'mode': self.context.mode.value,
            'date': self.context.anchor.isoformat(),
            'period': self.context.period_label,
            'kpi': self.kpi.to_dict(),
            'customers': [c.to_dict() for c in self.customers],
            'sales': [s.to_dict() for s in self.sales],
            'detailed_sales': self.detailed_sales.to_dict(),
            'payment_methods': [p.to_dict() for p in self.payment_methods],
            'products': [p.to_dict() for p in self.products],
            'comparisons': {k: v.to_dict() for k, v in self.comparisons.items()}
        }


class SalesAggregator:
    """
    売上データ集計クラス

    使用例:
        aggregator = SalesAggregator(sales_data, ReportContext(DisplayMode.DAILY, date(2024, 5, 16)))
        result = aggregator.aggregate_all()
    """

    # KPIの比較値に使う項目と単位
    COMPARISON_FIELDS = {
        'total_sales': '円',
        'total_customer_groups': '組',
        'average_per_customer': '円',
    }

    def __init__(
        self,
        data: SalesData,
        context: ReportContext,
        time_scale: TimeScale = TimeScale.HOUR,
        thresholds: AbcThresholds = DEFAULT_ABC_THRESHOLDS,
        pad_buckets: bool = False,
        business_hours: tuple = (10, 24),
        include_comparisons: bool = True,
        progress_callback: Optional[Callable[[str, int], None]] = None
    ):
        """
        Args:
            data: 読み込み済みの売上データ
            context: 表示モードと基準日
            time_scale: 日報の客数集計の刻み幅（月報は常に日単位）
            thresholds: ABC分析の閾値
            pad_buckets: Trueの場合、注文のない区間を0で補完する
            business_hours: 補完に使う営業時間 (開始, 終了)
            include_comparisons: 比較期間（前日・前週・前年など）も集計する
            progress_callback: 進捗通知用コールバック (message, percentage)
        """
        self.data = data
        self.context = context
        self.time_scale = TimeScale.DAY if context.mode is DisplayMode.MONTHLY else time_scale
        self.thresholds = thresholds
        self.pad_buckets = pad_buckets
        self.business_hours = business_hours
        self.include_comparisons = include_comparisons
        self.progress_callback = progress_callback

        # フィルタリング済みデータ
        self.orders: List[Order] = []
        self.payments: List[Payment] = []
        self.order_items: List[OrderItem] = []
        # 集計結果
        self.result = AggregationResult(context=context)

    def _notify_progress(self, message: str, percentage: int):
        """進捗を通知"""
        logger.info(f"[{percentage}%] {message}")
        if self.progress_callback:
            self.progress_callback(message, percentage)

    def aggregate_all(self) -> AggregationResult:
        """
        全ての集計を実行

        Returns:
            AggregationResult: 集計結果
        """
        self._notify_progress(f"集計開始: {self.context.mode.label} {self.context.period_label}", 0)

        self._filter_data()
        self._notify_progress("期間フィルタリング完了", 10)

        self.result.kpi = SalesSummary(self.orders, self.payments).calculate()
        self._notify_progress("KPI計算完了", 25)

        self.result.customers = self._aggregate_customers(self.orders, self.context)
        self._notify_progress("客数集計完了", 40)

        self._aggregate_sales()
        self._notify_progress("売上推移集計完了", 55)

        self.result.payment_methods = aggregate_by_method(self.payments)
        self._notify_progress("決済手段別集計完了", 65)

        self._aggregate_products()
        self._notify_progress("商品別集計完了", 80)

        if self.include_comparisons:
            self._aggregate_comparisons()
        self._notify_progress("集計完了", 100)
        return self.result

    def aggregate_kpis(self) -> AggregationResult:
        """
        KPIと比較期間のみを集計（客数・売上推移・決済手段・商品別は集計しない）

        Returns:
            AggregationResult: kpiとcomparisonsのみを設定した集計結果
        """
        self._filter_data()
        self.result.kpi = SalesSummary(self.orders, self.payments).calculate()
        if self.include_comparisons:
            self._aggregate_comparisons()
        return self.result

    def _filter_data(self) -> None:
        """対象期間のデータを抽出"""
        self.orders = self.context.filter_orders(self.data.orders)
        self.payments = self.context.filter_payments(self.data.payments)
        self.order_items = self.context.filter_order_items(self.data.order_items, self.orders)
        logger.info(
            f"フィルタリング後データ: 注文{len(self.orders)}件, "
            f"決済{len(self.payments)}件, 注文アイテム{len(self.order_items)}件"
        )

    def _aggregate_customers(self, orders: Sequence[Order], context: ReportContext) -> List[CustomerBucket]:
        """区間別の客数を集計"""
        buckets = aggregate_customers(orders, self.time_scale)
        if self.pad_buckets:
            open_hour, close_hour = self.business_hours
            ticks = bucket_ticks(self.time_scale, open_hour, close_hour, anchor=context.anchor)
            buckets = fill_missing_buckets(buckets, ticks)
        return buckets

    def _aggregate_sales(self) -> None:
        """時間帯別（日報）/日別（月報）の売上を集計"""
        if self.context.mode is DisplayMode.MONTHLY:
            generate = generate_daily_sales_data
        else:
            generate = generate_hourly_sales_data
        self.result.sales = generate(
            self.orders, self.payments, self.order_items, self.data.products
        )

    def _aggregate_products(self) -> None:
        """商品別集計とABC分析"""
        product_sales = rollup_products(self.order_items, self.data.products)
        self.result.products = perform_abc_analysis(product_sales, self.thresholds)

    def _comparison_modes(self) -> List[ComparisonMode]:
        if self.context.mode is DisplayMode.MONTHLY:
            # 月報では前日/前週は前月として扱うため、前月と前年のみ
            return [ComparisonMode.PREVIOUS_DAY, ComparisonMode.PREVIOUS_YEAR]
        return [ComparisonMode.PREVIOUS_DAY, ComparisonMode.PREVIOUS_WEEK, ComparisonMode.PREVIOUS_YEAR]

    def _aggregate_comparisons(self) -> None:
        """比較対象期間のKPIと客数を集計"""
        for comparison in self._comparison_modes():
            context = self.context.comparison_context(comparison)
            kind = comparison_kind(self.context.mode, comparison)

            orders = context.filter_orders(self.data.orders)
            payments = context.filter_payments(self.data.payments)
            kpi = SalesSummary(orders, payments).calculate()

            texts = {
                name: calculate_comparison(
                    getattr(self.result.kpi, name), getattr(kpi, name), kind, unit
                )
                for name, unit in self.COMPARISON_FIELDS.items()
            }
            self.result.comparisons[kind] = PeriodSnapshot(
                kind=kind,
                context=context,
                kpi=kpi,
                customers=self._aggregate_customers(orders, context),
                comparisons=texts
            )
            logger.info(f"比較期間 {kind} ({context.period_label}): 注文{len(orders)}件")
