"""
集計ロジック（期間フィルタ・KPI・客数・決済手段・商品ABC分析）
"""

from .period import ComparisonMode, DisplayMode, ReportContext
from .summary import SalesKPI, SalesSummary, calculate_kpis
from .customers import CustomerBucket, TimeScale, aggregate_customers
from .payments import PaymentMethodAmount, aggregate_by_method
from .products import AbcAnalysisItem, AbcRank, AbcThresholds, perform_abc_analysis, rollup_products
from .sales import AggregationResult, SalesAggregator
from .excel_output import ExcelExporter

__all__ = [
    'ComparisonMode', 'DisplayMode', 'ReportContext',
    'SalesKPI', 'SalesSummary', 'calculate_kpis',
    'CustomerBucket', 'TimeScale', 'aggregate_customers',
    'PaymentMethodAmount', 'aggregate_by_method',
    'AbcAnalysisItem', 'AbcRank', 'AbcThresholds', 'perform_abc_analysis', 'rollup_products',
    'AggregationResult', 'SalesAggregator',
    'ExcelExporter'
]
