"""
決済方法別集計モジュール
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List

from ..models import Payment, PaymentMethod


@dataclass
class PaymentMethodAmount:
    """決済方法別売上レコード"""
    method: PaymentMethod
    total_amount: float = 0.0

    @property
    def name(self) -> str:
        return self.method.display_name

    @property
    def label(self) -> str:
        return self.method.label

    def to_dict(self):
        return {
            'method': self.method.value,
            'name': self.name,
            'label': self.label,
            'category': self.method.category.value,
            'total_amount': self.total_amount
        }


def aggregate_by_method(payments: Iterable[Payment]) -> List[PaymentMethodAmount]:
    """
    決済方法別の決済額を集計（手数料は含めない）

    決済のない方法は出力しない。並び順は最初に出現した順。

    Args:
        payments: 期間でフィルタリング済みの決済データ

    Returns:
        List[PaymentMethodAmount]: 決済方法別データ
    """
    amounts: Dict[PaymentMethod, PaymentMethodAmount] = {}
    for payment in payments:
        entry = amounts.get(payment.payment_method)
        if entry is None:
            entry = amounts[payment.payment_method] = PaymentMethodAmount(payment.payment_method)
        entry.total_amount += payment.amount
    return list(amounts.values())


def sort_by_amount(entries: Iterable[PaymentMethodAmount]) -> List[PaymentMethodAmount]:
    """決済額の降順に並べ替え"""
    return sorted(entries, key=lambda e: e.total_amount, reverse=True)


def payment_share(entry: PaymentMethodAmount, total_amount: float) -> float:
    """決済額の構成比（%）。合計が0の場合は0"""
    if total_amount == 0:
        return 0.0
    return entry.total_amount / total_amount * 100
