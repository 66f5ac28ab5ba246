"""
KPI計算モジュール
売上金額・手数料・純売上・客数・客単価・決済区分別売上を算出する
"""
from dataclasses import dataclass
from typing import Sequence
import logging

from ..models import Order, Payment, PaymentCategory

logger = logging.getLogger(__name__)


@dataclass
class SalesKPI:
    """KPI計算結果を格納するデータクラス"""
    total_sales: float = 0.0            # 売上金額（決済額合計）
    total_fees: float = 0.0             # 決済手数料合計
    net_sales: float = 0.0              # 純売上（売上 - 手数料）
    total_customer_groups: int = 0      # 総客数（組数）
    total_party_size: int = 0           # 総人数
    average_per_customer: float = 0.0   # 客単価（1人あたり）
    onsite_payments: float = 0.0        # 現地決済額
    online_payments: float = 0.0        # オンライン決済額

    def to_dict(self):
        """辞書形式に変換"""
        return {
            'total_sales': self.total_sales,
            'total_fees': self.total_fees,
            'net_sales': self.net_sales,
            'total_customer_groups': self.total_customer_groups,
            'total_party_size': self.total_party_size,
            'average_per_customer': self.average_per_customer,
            'onsite_payments': self.onsite_payments,
            'online_payments': self.online_payments
        }


class SalesSummary:
    """
    KPI計算クラス

    使用例:
        summary = SalesSummary(daily_orders, daily_payments)
        kpi = summary.calculate()
    """

    def __init__(self, orders: Sequence[Order], payments: Sequence[Payment]):
        """
        Args:
            orders: 期間でフィルタリング済みの注文データ
            payments: 期間でフィルタリング済みの決済データ
        """
        self.orders = orders
        self.payments = payments
        self.result = SalesKPI()

    def calculate(self) -> SalesKPI:
        """
        全てのKPIを計算

        Returns:
            SalesKPI: 計算結果
        """
        self._calculate_total_sales()
        self._calculate_customers()
        self._calculate_sales_by_category()
        logger.debug(
            f"KPI計算完了: 売上{self.result.total_sales:,.0f}円, "
            f"{self.result.total_customer_groups}組{self.result.total_party_size}名"
        )
        return self.result

    def _calculate_total_sales(self) -> None:
        """売上金額・手数料・純売上を計算"""
        self.result.total_sales = sum(p.amount for p in self.payments)
        self.result.total_fees = sum(p.fee for p in self.payments)
        self.result.net_sales = self.result.total_sales - self.result.total_fees

    def _calculate_customers(self) -> None:
        """客数と客単価を計算"""
        self.result.total_customer_groups = len(self.orders)
        self.result.total_party_size = sum(o.party_size for o in self.orders)

        # 客単価は組数ではなく人数で割る
        if self.result.total_party_size > 0:
            self.result.average_per_customer = (
                self.result.total_sales / self.result.total_party_size
            )
        else:
            self.result.average_per_customer = 0

    def _calculate_sales_by_category(self) -> None:
        """現地決済/オンライン決済の売上を計算"""
        self.result.onsite_payments = sum(
            p.amount for p in self.payments
            if p.payment_method.category is PaymentCategory.ONSITE
        )
        self.result.online_payments = sum(
            p.amount for p in self.payments
            if p.payment_method.category is PaymentCategory.ONLINE
        )


def calculate_kpis(orders: Sequence[Order], payments: Sequence[Payment]) -> SalesKPI:
    """期間内の注文・決済からKPIを計算"""
    return SalesSummary(orders, payments).calculate()
