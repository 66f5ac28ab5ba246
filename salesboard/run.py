"""
アプリケーション起動スクリプト
"""
import argparse
import os
import sys
from pathlib import Path


def export_report(config, date_str: str, mode: str, data_dir: Path = None) -> Path:
    """サーバーを起動せずに集計結果をExcel出力"""
    from .backend.aggregator import ExcelExporter, ReportContext, SalesAggregator
    from .backend.aggregator.products import AbcThresholds
    from .backend.services import FileHandler

    handler = FileHandler(data_dir or config.DATA_DIR, encoding=config.CSV_ENCODING, timezone=config.TIMEZONE)
    data = handler.load_all()

    context = ReportContext.from_query(mode, date_str, config.DEFAULT_DATE)
    aggregator = SalesAggregator(
        data,
        context,
        thresholds=AbcThresholds(config.ABC_THRESHOLD_A, config.ABC_THRESHOLD_B),
        pad_buckets=True,
        business_hours=(config.BUSINESS_OPEN_HOUR, config.BUSINESS_CLOSE_HOUR)
    )
    result = aggregator.aggregate_all()
    return ExcelExporter(result, output_dir=config.OUTPUT_DIR).export()


def main(argv=None):
    """メイン関数"""
    parser = argparse.ArgumentParser(
        description='飲食店 売上分析システム'
    )
    parser.add_argument(
        '--port', '-p',
        type=int,
        default=int(os.getenv('PORT', 8080)),
        help='サーバーポート番号（デフォルト: 8080）'
    )
    parser.add_argument(
        '--host',
        type=str,
        default=os.getenv('HOST', '127.0.0.1'),
        help='ホストアドレス（デフォルト: 127.0.0.1）'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='デバッグモードで起動'
    )
    parser.add_argument(
        '--data-dir',
        type=str,
        default=None,
        help='売上データ（CSV）のディレクトリ'
    )
    parser.add_argument(
        '--export',
        metavar='DATE',
        default=None,
        help='指定日（YYYY-MM-DD）の集計結果をExcel出力して終了'
    )
    parser.add_argument(
        '--mode',
        choices=['daily', 'monthly'],
        default='daily',
        help='--export時の表示モード（デフォルト: daily）'
    )

    args = parser.parse_args(argv)

    # 環境変数に設定
    os.environ['PORT'] = str(args.port)
    os.environ['HOST'] = args.host
    if args.debug:
        os.environ['DEBUG'] = 'true'

    from .config import get_config
    config = get_config()
    data_dir = Path(args.data_dir) if args.data_dir else config.DATA_DIR

    if args.export:
        output_path = export_report(config, args.export, args.mode, data_dir)
        print(f"Excel出力完了: {output_path}")
        return 0

    config.init_app()

    # アプリケーション作成
    from .backend.api import create_app
    app = create_app(config)
    app.config['DATA_DIR'] = data_dir

    print(f"""
============================================================
  飲食店 売上分析システム
============================================================
  サーバー起動中...
  URL: http://{args.host}:{args.port}
  データ: {data_dir}

  停止するには Ctrl+C を押してください
============================================================
    """)

    # サーバー起動
    app.run(
        host=args.host,
        port=args.port,
        debug=args.debug
    )
    return 0


if __name__ == '__main__':
    sys.exit(main())
