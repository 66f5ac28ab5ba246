from openpyxl import load_workbook

from salesboard.backend.aggregator import (
    DisplayMode, ExcelExporter, ReportContext, SalesAggregator
)

from .conftest import REPORT_DATE


def _export(sales_data, tmp_path, mode):
    context = ReportContext(mode, REPORT_DATE)
    result = SalesAggregator(sales_data, context, pad_buckets=True).aggregate_all()
    return ExcelExporter(result, output_dir=tmp_path / 'reports').export()


def test_daily_workbook(sales_data, tmp_path):
    filepath = _export(sales_data, tmp_path, DisplayMode.DAILY)

    assert filepath.name == 'SalesReport_daily_20240516.xlsx'
    assert filepath.is_file()

    workbook = load_workbook(filepath)
    assert workbook.sheetnames == ['集計結果', '客数推移', '売上推移', '決済手段別', '商品ABC']

    summary = workbook['集計結果']
    assert summary['A1'].value == '項目'
    assert summary['A1'].font.bold
    assert summary['B2'].value == '2024年5月16日(木) 日報'
    assert summary['B3'].value == 8400
    # 比較期間の表
    assert summary['A12'].value == '比較'
    assert summary['A13'].value == 'day'

    products = workbook['商品ABC']
    assert products['A2'].value == 'カルボナーラ'
    assert products['H2'].value == 'A'

    customers = workbook['客数推移']
    assert customers['A2'].value == '10:00'


def test_monthly_filename(sales_data, tmp_path):
    filepath = _export(sales_data, tmp_path, DisplayMode.MONTHLY)
    assert filepath.name == 'SalesReport_monthly_202405.xlsx'

    summary = load_workbook(filepath)['集計結果']
    assert summary['B2'].value == '2024年5月 月報'
    assert summary['B3'].value == 10800


def test_custom_filename(sales_data, tmp_path):
    context = ReportContext(DisplayMode.DAILY, REPORT_DATE)
    result = SalesAggregator(sales_data, context).aggregate_all()
    exporter = ExcelExporter(result, output_dir=tmp_path, filename='report.xlsx')
    assert exporter.export() == tmp_path / 'report.xlsx'
