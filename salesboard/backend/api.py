"""
Flask APIエンドポイント
"""
from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from pathlib import Path
import logging
from datetime import datetime

from .aggregator import ExcelExporter, ReportContext, SalesAggregator, TimeScale
from .aggregator.customers import aggregate_customers, bucket_ticks, fill_missing_buckets
from .aggregator.payments import aggregate_by_method, payment_share, sort_by_amount
from .aggregator.period import DisplayMode
from .aggregator.products import (
    AbcThresholds, filter_products, perform_abc_analysis, rollup_products, top_products
)
from .aggregator.sales import generate_daily_sales_data, generate_hourly_sales_data, calculate_detailed_sales_data
from .aggregator.trend import determine_trend
from .models import SalesData
from .services import DataFormatError, DataSourceNotFoundError, FileHandler

# ロギング設定
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _parse_bool(value) -> bool:
    return str(value).lower() in ('1', 'true', 'yes')


def _parse_scale(value) -> TimeScale:
    try:
        return TimeScale(value or TimeScale.HOUR.value)
    except ValueError:
        raise ValueError(f"刻み幅が不正です: {value}（30min/1hour/2hour/day）") from None


def _parse_limit(value) -> int:
    try:
        limit = int(value)
    except ValueError:
        raise ValueError(f"件数が不正です: {value}") from None
    if limit < 1:
        raise ValueError(f"件数は1以上を指定してください: {value}")
    return limit


def create_app(config=None, data: SalesData = None):
    """
    Flaskアプリケーションファクトリ

    Args:
        config: 設定オブジェクト
        data: 読み込み済みの売上データ（省略時は初回リクエストでDATA_DIRから読み込み）

    Returns:
        Flask: アプリケーションインスタンス
    """
    app = Flask(__name__)

    # CORS設定（フロントエンドからのアクセス許可）
    CORS(app, origins=["http://localhost:*", "http://127.0.0.1:*"])

    # 設定読み込み
    if config:
        app.config.from_object(config)
    else:
        from ..config import get_config
        app.config.from_object(get_config())

    app.config.setdefault('DATA_DIR', Path.cwd() / 'sample_data')
    app.config.setdefault('OUTPUT_DIR', Path.home() / 'Downloads')
    app.config.setdefault('CSV_ENCODING', 'utf-8')
    app.config.setdefault('TIMEZONE', 'Asia/Tokyo')
    app.config.setdefault('DEFAULT_DATE', datetime.now().date())
    app.config.setdefault('ABC_THRESHOLD_A', 70)
    app.config.setdefault('ABC_THRESHOLD_B', 90)
    app.config.setdefault('BUSINESS_OPEN_HOUR', 10)
    app.config.setdefault('BUSINESS_CLOSE_HOUR', 24)

    # 読み込み済みデータ（セッション中は読み取り専用）
    app.sales_data = data

    def get_data() -> SalesData:
        if app.sales_data is None:
            handler = FileHandler(
                Path(app.config['DATA_DIR']),
                encoding=app.config['CSV_ENCODING'],
                timezone=app.config['TIMEZONE']
            )
            app.sales_data = handler.load_all()
        return app.sales_data

    def get_context() -> ReportContext:
        return ReportContext.from_query(
            request.args.get('mode'),
            request.args.get('date'),
            app.config['DEFAULT_DATE']
        )

    def get_thresholds() -> AbcThresholds:
        return AbcThresholds(app.config['ABC_THRESHOLD_A'], app.config['ABC_THRESHOLD_B'])

    def business_hours() -> tuple:
        return app.config['BUSINESS_OPEN_HOUR'], app.config['BUSINESS_CLOSE_HOUR']

    @app.errorhandler(DataSourceNotFoundError)
    def handle_data_not_found(e):
        logger.error(f"データ読み込みエラー: {e}")
        return jsonify({
            'status': 'error',
            'error_type': 'data_not_found',
            'message': str(e),
            'missing_files': e.missing_files
        }), 404

    @app.errorhandler(DataFormatError)
    def handle_data_format_error(e):
        logger.error(f"データ形式エラー: {e}")
        return jsonify({
            'status': 'error',
            'error_type': 'invalid_data',
            'message': str(e),
            'source': e.source
        }), 500

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        logger.error(f"バリデーションエラー: {e}")
        return jsonify({'status': 'error', 'message': str(e)}), 400

    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return e
        logger.exception(f"集計エラー: {e}")
        return jsonify({'status': 'error', 'message': str(e)}), 500

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """ヘルスチェック"""
        return jsonify({'status': 'ok', 'timestamp': datetime.now().isoformat()})

    @app.route('/api/config', methods=['GET'])
    def get_app_config():
        """設定情報取得"""
        return jsonify({
            'default_date': app.config['DEFAULT_DATE'].isoformat(),
            'modes': [DisplayMode.DAILY.value, DisplayMode.MONTHLY.value],
            'time_scales': [s.value for s in TimeScale],
            'abc_thresholds': {
                'a': app.config['ABC_THRESHOLD_A'],
                'b': app.config['ABC_THRESHOLD_B']
            },
            'business_hours': list(business_hours())
        })

    @app.route('/api/report', methods=['GET'])
    def get_report():
        """全集計（KPI・客数・売上推移・決済手段・商品ABC・比較期間）"""
        aggregator = SalesAggregator(
            get_data(),
            get_context(),
            time_scale=_parse_scale(request.args.get('scale')),
            thresholds=get_thresholds(),
            pad_buckets=_parse_bool(request.args.get('pad', 'false')),
            business_hours=business_hours()
        )
        result = aggregator.aggregate_all()
        return jsonify({'status': 'success', **result.to_dict()})

    @app.route('/api/kpi', methods=['GET'])
    def get_kpi():
        """KPIと比較値（前日比など）"""
        aggregator = SalesAggregator(get_data(), get_context())
        result = aggregator.aggregate_kpis()
        comparisons = {}
        for kind, snapshot in result.comparisons.items():
            comparisons[kind] = {
                'period': snapshot.context.period_label,
                'kpi': snapshot.kpi.to_dict(),
                'texts': snapshot.comparisons,
                'trends': {k: determine_trend(v) for k, v in snapshot.comparisons.items()}
            }
        return jsonify({
            'status': 'success',
            'period': result.context.period_label,
            'kpi': result.kpi.to_dict(),
            'comparisons': comparisons
        })

    @app.route('/api/customers', methods=['GET'])
    def get_customers():
        """区間別客数（日報: 30min/1hour/2hour、月報: 日別）"""
        context = get_context()
        scale = TimeScale.DAY if context.mode is DisplayMode.MONTHLY else _parse_scale(request.args.get('scale'))
        orders = context.filter_orders(get_data().orders)
        buckets = aggregate_customers(orders, scale)
        if _parse_bool(request.args.get('pad', 'false')):
            open_hour, close_hour = business_hours()
            buckets = fill_missing_buckets(
                buckets, bucket_ticks(scale, open_hour, close_hour, anchor=context.anchor)
            )
        return jsonify({
            'status': 'success',
            'period': context.period_label,
            'scale': scale.value,
            'buckets': [b.to_dict() for b in buckets]
        })

    @app.route('/api/sales', methods=['GET'])
    def get_sales():
        """時間帯別（日報）/日別（月報）売上と詳細テーブル"""
        context = get_context()
        data = get_data()
        orders = context.filter_orders(data.orders)
        payments = context.filter_payments(data.payments)
        order_items = context.filter_order_items(data.order_items, orders)
        if context.mode is DisplayMode.MONTHLY:
            records = generate_daily_sales_data(orders, payments, order_items, data.products)
        else:
            records = generate_hourly_sales_data(orders, payments, order_items, data.products)
        return jsonify({
            'status': 'success',
            'period': context.period_label,
            'records': [r.to_dict() for r in records],
            'table': calculate_detailed_sales_data(records).to_dict()
        })

    @app.route('/api/payment-methods', methods=['GET'])
    def get_payment_methods():
        """決済方法別売上"""
        context = get_context()
        payments = context.filter_payments(get_data().payments)
        entries = aggregate_by_method(payments)
        if _parse_bool(request.args.get('sorted', 'false')):
            entries = sort_by_amount(entries)
        total = sum(e.total_amount for e in entries)
        return jsonify({
            'status': 'success',
            'period': context.period_label,
            'total_amount': total,
            'methods': [
                {**e.to_dict(), 'share': payment_share(e, total)} for e in entries
            ]
        })

    @app.route('/api/products', methods=['GET'])
    def get_products():
        """商品別売上とABC分析（絞り込み・上位N件）"""
        context = get_context()
        data = get_data()
        orders = context.filter_orders(data.orders)
        order_items = context.filter_order_items(data.order_items, orders)

        items = perform_abc_analysis(rollup_products(order_items, data.products), get_thresholds())
        items = filter_products(
            items,
            menu=request.args.get('menu'),
            category=request.args.get('category'),
            sub_category=request.args.get('sub_category'),
            keyword=request.args.get('q')
        )

        limit = request.args.get('limit')
        if limit is not None:
            items = top_products(items, _parse_limit(limit), request.args.get('metric', 'amount'))

        return jsonify({
            'status': 'success',
            'period': context.period_label,
            'total_amount': sum(i.amount for i in items),
            'total_count': sum(i.count for i in items),
            'total_profit': sum(i.profit for i in items),
            'products': [i.to_dict() for i in items]
        })

    @app.route('/api/export', methods=['POST'])
    def export_report():
        """集計結果をExcel出力"""
        params = request.get_json(silent=True) or {}
        context = ReportContext.from_query(
            params.get('mode'), params.get('date'), app.config['DEFAULT_DATE']
        )
        aggregator = SalesAggregator(
            get_data(),
            context,
            time_scale=_parse_scale(params.get('scale')),
            thresholds=get_thresholds(),
            pad_buckets=True,
            business_hours=business_hours()
        )
        result = aggregator.aggregate_all()
        exporter = ExcelExporter(result, output_dir=Path(app.config['OUTPUT_DIR']))
        output_path = exporter.export()
        return jsonify({
            'status': 'success',
            'summary': result.kpi.to_dict(),
            'output_file': output_path.name
        })

    @app.route('/api/download/<filename>', methods=['GET'])
    def download_file(filename):
        """Excelファイルダウンロード"""
        output_dir = Path(app.config['OUTPUT_DIR']).resolve()
        output_path = (output_dir / filename).resolve()
        if output_path.parent != output_dir or not output_path.is_file():
            return jsonify({
                'status': 'error',
                'message': 'ファイルが見つかりません'
            }), 404

        return send_file(
            output_path,
            as_attachment=True,
            download_name=output_path.name
        )

    return app
