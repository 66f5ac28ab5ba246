"""
ファイル処理サービス
"""
import re
import pandas as pd
from pathlib import Path
from typing import List, Optional
import logging

from ..models import Order, OrderItem, Payment, PaymentMethod, Product, SalesData

logger = logging.getLogger(__name__)

# 型ヒント付きヘッダー（例: "orderId:int", "paymentMethod:enum(PaymentMethod)"）
TYPED_HEADER_PATTERN = re.compile(r'^(.*?)(?::(?:int|string|date|enum)(?:\(.*?\))?)?$')


class DataSourceNotFoundError(Exception):
    """データファイルが見つからない場合の例外"""
    def __init__(self, missing_files: list):
        self.missing_files = missing_files
        message = f"データファイルが見つかりません: {', '.join(missing_files)}"
        super().__init__(message)


class DataFormatError(ValueError):
    """データファイルの内容が不正な場合の例外（カラム不足・未定義の値など）"""
    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(message)


class FileHandler:
    """
    ファイル処理クラス

    注文・注文アイテム・商品・決済のCSV読み込みとバリデーションを担当
    """

    # データ名 → 必須カラム
    REQUIRED_COLUMNS = {
        'orders': ['orderId', 'completedAt', 'customerId', 'partySize'],
        'order_items': ['orderItemId', 'orderId', 'productId', 'quantity'],
        'products': ['productId', 'menu', 'category', 'subCategory', 'productName', 'price', 'cost'],
        'payments': ['paymentId', 'orderId', 'paymentMethod', 'amount', 'fee', 'paymentTime'],
    }

    def __init__(self, data_dir: Path, encoding: str = 'utf-8', timezone: str = 'Asia/Tokyo'):
        """
        Args:
            data_dir: CSVファイルの格納ディレクトリ
            encoding: CSVエンコーディング
            timezone: オフセット付き日時の変換先タイムゾーン
        """
        self.data_dir = Path(data_dir)
        self.encoding = encoding
        self.timezone = timezone

    def find_file(self, name: str) -> Optional[Path]:
        """
        データファイルのパスを取得

        "<name>.csv" または "<name>/<name>.csv" を探す
        """
        for candidate in (self.data_dir / f"{name}.csv", self.data_dir / name / f"{name}.csv"):
            if candidate.is_file():
                return candidate
        return None

    def load_all(self) -> SalesData:
        """
        4種類のデータをまとめて読み込み

        Returns:
            SalesData: 読み込み済みデータ

        Raises:
            DataSourceNotFoundError: ファイルが不足している場合
        """
        missing = [f"{name}.csv" for name in self.REQUIRED_COLUMNS if self.find_file(name) is None]
        if missing:
            raise DataSourceNotFoundError(missing)

        data = SalesData(
            orders=tuple(self.read_orders(self.find_file('orders'))),
            order_items=tuple(self.read_order_items(self.find_file('order_items'))),
            products=tuple(self.read_products(self.find_file('products'))),
            payments=tuple(self.read_payments(self.find_file('payments')))
        )
        self._check_references(data)
        logger.info(f"データ読み込み完了: {data.summary()}")
        return data

    def read_orders(self, filepath: Path) -> List[Order]:
        """
        注文データCSVを読み込み

        Args:
            filepath: CSVファイルパス

        Returns:
            List[Order]: 注文データ
        """
        df = self._read_csv(filepath, 'orders')
        df['completedAt'] = self._parse_datetimes(df['completedAt'])

        orders = [
            Order(
                order_id=int(row['orderId']),
                completed_at=row['completedAt'].to_pydatetime(),
                customer_id=int(row['customerId']),
                party_size=int(row['partySize'])
            )
            for row in df.to_dict('records')
        ]
        logger.info(f"注文データ読み込み: {len(orders)}件")
        return orders

    def read_order_items(self, filepath: Path) -> List[OrderItem]:
        """注文アイテムデータCSVを読み込み"""
        df = self._read_csv(filepath, 'order_items')
        items = [
            OrderItem(
                order_item_id=int(row['orderItemId']),
                order_id=int(row['orderId']),
                product_id=int(row['productId']),
                quantity=int(row['quantity'])
            )
            for row in df.to_dict('records')
        ]
        logger.info(f"注文アイテムデータ読み込み: {len(items)}件")
        return items

    def read_products(self, filepath: Path) -> List[Product]:
        """
        商品マスタCSVを読み込み

        profit列がない場合は price - cost で補完する
        """
        df = self._read_csv(filepath, 'products')
        if 'profit' not in df.columns:
            df['profit'] = df['price'] - df['cost']

        products = [
            Product(
                product_id=int(row['productId']),
                menu=str(row['menu']),
                category=str(row['category']),
                sub_category=str(row['subCategory']) if pd.notna(row['subCategory']) else '',
                product_name=str(row['productName']),
                price=float(row['price']),
                cost=float(row['cost']),
                profit=float(row['profit'])
            )
            for row in df.to_dict('records')
        ]
        logger.info(f"商品データ読み込み: {len(products)}件")
        return products

    def read_payments(self, filepath: Path) -> List[Payment]:
        """
        決済データCSVを読み込み

        Raises:
            DataFormatError: 未定義の決済方法が含まれる場合
        """
        df = self._read_csv(filepath, 'payments')
        df['paymentTime'] = self._parse_datetimes(df['paymentTime'])
        try:
            methods = [PaymentMethod.parse(value) for value in df['paymentMethod']]
        except ValueError as e:
            raise DataFormatError('payments', f"paymentsの値が不正です: {e}") from e

        payments = [
            Payment(
                payment_id=int(row['paymentId']),
                order_id=int(row['orderId']),
                payment_method=method,
                amount=float(row['amount']),
                fee=float(row['fee']),
                payment_time=row['paymentTime'].to_pydatetime()
            )
            for row, method in zip(df.to_dict('records'), methods)
        ]
        logger.info(f"決済データ読み込み: {len(payments)}件")
        return payments

    def _read_csv(self, filepath: Path, name: str) -> pd.DataFrame:
        """CSVを読み込み、型ヒントを除いたカラム名で必須カラムをチェック"""
        df = pd.read_csv(filepath, encoding=self.encoding)
        df.columns = [TYPED_HEADER_PATTERN.match(str(c).strip()).group(1) for c in df.columns]
        self._validate_columns(df, self.REQUIRED_COLUMNS[name], name)
        return df

    def _parse_datetimes(self, values: pd.Series) -> pd.Series:
        """
        日時文字列をローカル時刻（タイムゾーンなし）に変換

        "2024-05-16T03:30:00.000Z" のようなオフセット付きの値は店舗のタイムゾーンに
        変換し、オフセットなしの値はそのままローカル時刻として扱う
        """
        parsed = pd.to_datetime(values, format='ISO8601')
        if parsed.dt.tz is not None:
            parsed = parsed.dt.tz_convert(self.timezone).dt.tz_localize(None)
        return parsed

    def _validate_columns(
        self, df: pd.DataFrame, required: list, name: str
    ) -> None:
        """
        必須カラムの存在チェック

        Args:
            df: データフレーム
            required: 必須カラムリスト
            name: データ名（エラーメッセージ用）

        Raises:
            DataFormatError: 必須カラムが不足している場合
        """
        missing = [col for col in required if col not in df.columns]
        if missing:
            raise DataFormatError(
                name, f"{name}に必須カラムがありません: {missing}"
            )

    def _check_references(self, data: SalesData) -> None:
        """存在しない注文・商品を参照するレコードを警告（集計時は除外される）"""
        order_ids = {o.order_id for o in data.orders}
        product_ids = {p.product_id for p in data.products}

        dangling_items = sum(
            1 for item in data.order_items
            if item.order_id not in order_ids or item.product_id not in product_ids
        )
        dangling_payments = sum(1 for p in data.payments if p.order_id not in order_ids)

        if dangling_items:
            logger.warning(f"参照先のない注文アイテム: {dangling_items}件")
        if dangling_payments:
            logger.warning(f"参照先のない決済: {dangling_payments}件")
