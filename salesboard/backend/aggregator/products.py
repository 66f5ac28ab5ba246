"""
商品別集計・ABC分析モジュール
"""
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence
import logging

from ..models import OrderItem, Product

logger = logging.getLogger(__name__)


class AbcRank(str, Enum):
    """ABC分析のランク"""
    A = 'A'
    B = 'B'
    C = 'C'


@dataclass(frozen=True)
class AbcThresholds:
    """ABC分析の閾値（累積構成比 %）"""
    a: float = 70
    b: float = 90


DEFAULT_ABC_THRESHOLDS = AbcThresholds()


@dataclass
class ProductSales:
    """商品別売上レコード"""
    product_id: int
    name: str
    menu: str
    category: str
    sub_category: str
    amount: float   # 売上金額
    count: int      # 売上個数
    profit: float   # 粗利

    def to_dict(self):
        return asdict(self)


@dataclass
class AbcAnalysisItem(ProductSales):
    """ABC分析結果レコード"""
    amount_rank: AbcRank
    count_rank: AbcRank
    profit_rank: AbcRank

    def to_dict(self):
        data = asdict(self)
        for key in ('amount_rank', 'count_rank', 'profit_rank'):
            data[key] = data[key].value
        return data


# 集計指標名 → 値の取り出し
METRICS: Dict[str, Callable[[ProductSales], float]] = {
    'amount': lambda item: item.amount,
    'count': lambda item: item.count,
    'profit': lambda item: item.profit,
}


def get_metric(metric: str) -> Callable[[ProductSales], float]:
    """
    Raises:
        ValueError: 未定義の指標の場合
    """
    try:
        return METRICS[metric]
    except KeyError:
        raise ValueError(f"未定義の指標です: {metric}（amount/count/profit）") from None


def rollup_products(
    order_items: Iterable[OrderItem],
    products: Sequence[Product],
    include_unsold: bool = True
) -> List[ProductSales]:
    """
    商品別の売上金額・個数・粗利を集計

    Args:
        order_items: 期間でフィルタリング済みの注文アイテム
        products: 商品マスタ
        include_unsold: Trueの場合、売れていない商品も0件として含める

    Returns:
        List[ProductSales]: 商品別売上データ
    """
    catalog = {p.product_id: p for p in products}
    totals: Dict[int, List[float]] = {}

    if include_unsold:
        for product in products:
            totals[product.product_id] = [0, 0]

    skipped = 0
    for item in order_items:
        product = catalog.get(item.product_id)
        if product is None:
            skipped += 1
            continue
        entry = totals.setdefault(item.product_id, [0, 0])
        entry[0] += product.price * item.quantity
        entry[1] += item.quantity

    if skipped:
        logger.warning(f"商品マスタにない注文アイテムをスキップ: {skipped}件")

    result = []
    for product_id, (amount, count) in totals.items():
        product = catalog[product_id]
        result.append(ProductSales(
            product_id=product_id,
            name=product.product_name,
            menu=product.menu,
            category=product.category,
            sub_category=product.sub_category,
            amount=amount,
            count=count,
            profit=product.profit * count
        ))
    return result


def rank_by_cumulative_share(
    items: Sequence[ProductSales],
    metric: Callable[[ProductSales], float],
    thresholds: AbcThresholds = DEFAULT_ABC_THRESHOLDS
) -> Dict[int, AbcRank]:
    """
    1つの指標で累積構成比を求めてランクを付ける

    指標の降順に並べ、累積構成比が閾値a以下ならA、閾値b以下ならB、それ以外はC。
    指標の合計が0以下の場合（売上なし・赤字など）は構成比をすべて0とし、全商品をAとする。

    Args:
        items: 商品別売上データ
        metric: 指標の取り出し関数
        thresholds: 閾値

    Returns:
        Dict[int, AbcRank]: 商品ID → ランク
    """
    total = sum(metric(item) for item in items)
    ranks: Dict[int, AbcRank] = {}

    cumulative = 0
    for item in sorted(items, key=metric, reverse=True):
        cumulative += metric(item)
        # 累積値から構成比を求めて浮動小数の誤差の蓄積を避ける
        percentage = cumulative * 100 / total if total > 0 else 0
        if percentage <= thresholds.a:
            ranks[item.product_id] = AbcRank.A
        elif percentage <= thresholds.b:
            ranks[item.product_id] = AbcRank.B
        else:
            ranks[item.product_id] = AbcRank.C
    return ranks


def perform_abc_analysis(
    items: Sequence[ProductSales],
    thresholds: AbcThresholds = DEFAULT_ABC_THRESHOLDS
) -> List[AbcAnalysisItem]:
    """
    売上金額・売上個数・粗利の3指標でABC分析

    Args:
        items: 商品別売上データ
        thresholds: 閾値（デフォルト: A=70%, B=90%）

    Returns:
        List[AbcAnalysisItem]: 入力順のままランクを付与したデータ
    """
    amount_ranks = rank_by_cumulative_share(items, METRICS['amount'], thresholds)
    count_ranks = rank_by_cumulative_share(items, METRICS['count'], thresholds)
    profit_ranks = rank_by_cumulative_share(items, METRICS['profit'], thresholds)

    return [
        AbcAnalysisItem(
            **asdict(item),
            amount_rank=amount_ranks.get(item.product_id, AbcRank.C),
            count_rank=count_ranks.get(item.product_id, AbcRank.C),
            profit_rank=profit_ranks.get(item.product_id, AbcRank.C)
        )
        for item in items
    ]


def filter_products(
    items: Iterable[ProductSales],
    menu: Optional[str] = None,
    category: Optional[str] = None,
    sub_category: Optional[str] = None,
    keyword: Optional[str] = None
) -> List[ProductSales]:
    """
    メニュー・カテゴリ・サブカテゴリ（完全一致）と商品名（部分一致）で絞り込み
    """
    keyword = keyword.lower() if keyword else None
    result = []
    for item in items:
        if menu and item.menu != menu:
            continue
        if category and item.category != category:
            continue
        if sub_category and item.sub_category != sub_category:
            continue
        if keyword and keyword not in item.name.lower():
            continue
        result.append(item)
    return result


def top_products(
    items: Iterable[ProductSales], limit: int = 10, metric: str = 'amount'
) -> List[ProductSales]:
    """指標の上位N件（売れ筋ランキング）"""
    return sorted(items, key=get_metric(metric), reverse=True)[:limit]
