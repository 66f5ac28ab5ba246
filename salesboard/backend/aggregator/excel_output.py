"""
Excel出力モジュール
集計結果を複数シートのExcelファイルに出力する
"""
import pandas as pd
from pathlib import Path
from typing import Optional
import logging

from openpyxl.styles import Font, Alignment
from openpyxl.utils import get_column_letter

from ..formatters import format_date, format_year_month, round_half_up
from ..models import PaymentCategory
from .payments import payment_share, sort_by_amount
from .period import DisplayMode
from .sales import AggregationResult

logger = logging.getLogger(__name__)


class ExcelExporter:
    """
    Excel出力クラス

    使用例:
        exporter = ExcelExporter(result, output_dir=Path.home() / "Downloads")
        filepath = exporter.export()
    """

    def __init__(
        self,
        result: AggregationResult,
        output_dir: Optional[Path] = None,
        filename: Optional[str] = None
    ):
        """
        Args:
            result: 集計結果
            output_dir: 出力ディレクトリ（デフォルト: ~/Downloads）
            filename: 出力ファイル名（デフォルト: SalesReport_daily_YYYYMMDD.xlsx）
        """
        self.result = result
        self.output_dir = Path(output_dir) if output_dir else Path.home() / "Downloads"

        # ファイル名生成
        if filename:
            self.filename = filename
        else:
            context = result.context
            if context.mode is DisplayMode.MONTHLY:
                stamp = context.anchor.strftime('%Y%m')
            else:
                stamp = context.anchor.strftime('%Y%m%d')
            self.filename = f"SalesReport_{context.mode.value}_{stamp}.xlsx"

        self.filepath = self.output_dir / self.filename

    def export(self) -> Path:
        """
        Excelファイルを出力

        Returns:
            Path: 出力ファイルパス
        """
        logger.info(f"Excel出力開始: {self.filepath}")

        self.output_dir.mkdir(parents=True, exist_ok=True)

        with pd.ExcelWriter(self.filepath, engine="openpyxl") as writer:
            self._write_summary_sheet(writer)
            self._write_customers_sheet(writer)
            self._write_sales_sheet(writer)
            self._write_payment_sheet(writer)
            self._write_products_sheet(writer)
            for worksheet in writer.book.worksheets:
                self._format_sheet(worksheet)

        logger.info(f"Excel出力完了: {self.filepath}")
        return self.filepath

    def _period_title(self) -> str:
        context = self.result.context
        if context.mode is DisplayMode.MONTHLY:
            return f"{format_year_month(context.anchor)} {context.mode.label}"
        return f"{format_date(context.anchor)} {context.mode.label}"

    def _write_summary_sheet(self, writer: pd.ExcelWriter) -> None:
        """集計結果シートを出力"""
        kpi = self.result.kpi
        summary_data = {
            "項目": [
                "対象期間",
                "売上金額",
                "決済手数料",
                "純売上",
                "総客数（組）",
                "総人数",
                "客単価",
                "現地決済",
                "オンライン決済"
            ],
            "集計結果": [
                self._period_title(),
                kpi.total_sales,
                kpi.total_fees,
                kpi.net_sales,
                kpi.total_customer_groups,
                kpi.total_party_size,
                round_half_up(kpi.average_per_customer),
                kpi.onsite_payments,
                kpi.online_payments
            ]
        }
        pd.DataFrame(summary_data).to_excel(writer, sheet_name="集計結果", index=False)

        # 比較期間（12行目から）
        if self.result.comparisons:
            comparison_data = {
                "比較": [s.kind for s in self.result.comparisons.values()],
                "期間": [s.context.period_label for s in self.result.comparisons.values()],
                "売上金額": [s.kpi.total_sales for s in self.result.comparisons.values()],
                "総客数（組）": [s.kpi.total_customer_groups for s in self.result.comparisons.values()],
                "売上比較": [s.comparisons.get('total_sales', '') for s in self.result.comparisons.values()]
            }
            pd.DataFrame(comparison_data).to_excel(
                writer, sheet_name="集計結果", index=False, startrow=11, header=True
            )

    def _write_customers_sheet(self, writer: pd.ExcelWriter) -> None:
        """客数推移シートを出力"""
        customers = self.result.customers
        customers_data = {
            "区間": [c.label for c in customers],
            "客組数": [c.group_count for c in customers],
            "客人数": [c.person_count for c in customers]
        }
        pd.DataFrame(customers_data).to_excel(writer, sheet_name="客数推移", index=False)

    def _write_sales_sheet(self, writer: pd.ExcelWriter) -> None:
        """売上推移シートを出力"""
        table = self.result.detailed_sales
        sales_data = {
            "期間": table.periods,
            "売上金額": table.total_sales,
            "純売上": table.net_sales,
            "手数料": table.fees,
            "粗利": table.profit,
            "客単価": [round_half_up(v) for v in table.average_per_customer]
        }
        pd.DataFrame(sales_data).to_excel(writer, sheet_name="売上推移", index=False)

    def _write_payment_sheet(self, writer: pd.ExcelWriter) -> None:
        """決済手段別シートを出力"""
        entries = sort_by_amount(self.result.payment_methods)
        total = sum(e.total_amount for e in entries)
        payment_data = {
            "決済手段": [e.label for e in entries],
            "区分": ["現地" if e.method.category is PaymentCategory.ONSITE else "オンライン" for e in entries],
            "決済額": [e.total_amount for e in entries],
            "構成比(%)": [round(payment_share(e, total), 1) for e in entries]
        }
        pd.DataFrame(payment_data).to_excel(writer, sheet_name="決済手段別", index=False)

    def _write_products_sheet(self, writer: pd.ExcelWriter) -> None:
        """商品ABCシートを出力（売上金額の降順）"""
        items = sorted(self.result.products, key=lambda p: p.amount, reverse=True)
        product_data = {
            "商品名": [p.name for p in items],
            "メニュー": [p.menu for p in items],
            "カテゴリ": [p.category for p in items],
            "サブカテゴリ": [p.sub_category for p in items],
            "売上金額": [p.amount for p in items],
            "売上個数": [p.count for p in items],
            "粗利": [p.profit for p in items],
            "金額ランク": [p.amount_rank.value for p in items],
            "個数ランク": [p.count_rank.value for p in items],
            "粗利ランク": [p.profit_rank.value for p in items]
        }
        pd.DataFrame(product_data).to_excel(writer, sheet_name="商品ABC", index=False)

    def _format_sheet(self, worksheet) -> None:
        """ヘッダーを太字にし、列幅を調整"""
        for cell in worksheet[1]:
            cell.font = Font(bold=True)
            cell.alignment = Alignment(horizontal='center')

        for column_cells in worksheet.columns:
            width = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column_cells)
            letter = get_column_letter(column_cells[0].column)
            worksheet.column_dimensions[letter].width = min(max(width * 2, 10), 40)
