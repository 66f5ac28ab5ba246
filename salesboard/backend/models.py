"""
売上データモデル
注文・注文アイテム・商品・決済のレコード定義
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Tuple


class PaymentCategory(Enum):
    """決済区分（現地/オンライン）"""
    ONSITE = 'onsite'
    ONLINE = 'online'


class PaymentMethod(Enum):
    """決済方法"""
    CASH = 'CASH'
    CREDIT_CARD_ONSITE = 'CREDIT_CARD_ONSITE'
    QR_CODE_ONSITE = 'QR_CODE_ONSITE'
    CREDIT_CARD_ONLINE = 'CREDIT_CARD_ONLINE'
    PAYPAY = 'PAYPAY'
    LINE_PAY = 'LINE_PAY'
    RAKUTEN_PAY = 'RAKUTEN_PAY'

    @property
    def category(self) -> PaymentCategory:
        """現地決済/オンライン決済の区分"""
        return PAYMENT_CATEGORIES[self]

    @property
    def label(self) -> str:
        """表示名"""
        return PAYMENT_METHOD_LABELS[self]

    @property
    def display_name(self) -> str:
        """英字表示名（例: CREDIT_CARD_ONLINE → "credit card online"）"""
        return self.value.replace('_', ' ').lower()

    @classmethod
    def parse(cls, value) -> 'PaymentMethod':
        """
        文字列から決済方法を取得

        Raises:
            ValueError: 未定義の決済方法の場合
        """
        if isinstance(value, cls):
            return value
        key = str(value).strip()
        # "PaymentMethod.CASH" 形式にも対応
        if '.' in key:
            key = key.rsplit('.', 1)[1]
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"未定義の決済方法です: {value}") from None


# 決済方法 → 区分（全決済方法を網羅すること）
PAYMENT_CATEGORIES = {
    PaymentMethod.CASH: PaymentCategory.ONSITE,
    PaymentMethod.CREDIT_CARD_ONSITE: PaymentCategory.ONSITE,
    PaymentMethod.QR_CODE_ONSITE: PaymentCategory.ONSITE,
    PaymentMethod.CREDIT_CARD_ONLINE: PaymentCategory.ONLINE,
    PaymentMethod.PAYPAY: PaymentCategory.ONLINE,
    PaymentMethod.LINE_PAY: PaymentCategory.ONLINE,
    PaymentMethod.RAKUTEN_PAY: PaymentCategory.ONLINE,
}

PAYMENT_METHOD_LABELS = {
    PaymentMethod.CASH: '現金',
    PaymentMethod.CREDIT_CARD_ONSITE: 'クレジットカード（店頭）',
    PaymentMethod.QR_CODE_ONSITE: 'QRコード決済（店頭）',
    PaymentMethod.CREDIT_CARD_ONLINE: 'クレジットカード（オンライン）',
    PaymentMethod.PAYPAY: 'PayPay',
    PaymentMethod.LINE_PAY: 'LINE Pay',
    PaymentMethod.RAKUTEN_PAY: '楽天ペイ',
}


@dataclass(frozen=True)
class Order:
    """注文（1組の来店客）"""
    order_id: int
    completed_at: datetime
    customer_id: int
    party_size: int  # 客の人数


@dataclass(frozen=True)
class OrderItem:
    """注文アイテム"""
    order_item_id: int
    order_id: int
    product_id: int
    quantity: int


@dataclass(frozen=True)
class Product:
    """商品マスタ"""
    product_id: int
    menu: str
    category: str
    sub_category: str
    product_name: str
    price: float
    cost: float
    profit: float  # 1個あたり粗利（price - cost）


@dataclass(frozen=True)
class Payment:
    """決済"""
    payment_id: int
    order_id: int
    payment_method: PaymentMethod
    amount: float
    fee: float
    payment_time: datetime


@dataclass(frozen=True)
class SalesData:
    """読み込み済みの売上データ一式（セッション中は読み取り専用）"""
    orders: Tuple[Order, ...] = ()
    order_items: Tuple[OrderItem, ...] = ()
    products: Tuple[Product, ...] = ()
    payments: Tuple[Payment, ...] = ()

    def summary(self) -> dict:
        """件数サマリー"""
        return {
            'orders': len(self.orders),
            'order_items': len(self.order_items),
            'products': len(self.products),
            'payments': len(self.payments)
        }
