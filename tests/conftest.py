from datetime import date, datetime

import pytest

from salesboard.backend.models import (
    Order, OrderItem, Payment, PaymentMethod, Product, SalesData
)
from salesboard.config import TestingConfig

REPORT_DATE = date(2024, 5, 16)


@pytest.fixture
def products():
    return [
        Product(1, 'ランチ', 'メイン料理', 'パスタ', 'カルボナーラ', 1200, 400, 800),
        Product(2, 'ランチ', 'サラダ', '', 'シーザーサラダ', 600, 200, 400),
        Product(3, 'ディナー', 'ドリンク', 'ビール', '生ビール', 500, 150, 350),
        Product(4, 'ディナー', 'デザート', '', 'ティラミス', 700, 300, 400),
    ]


@pytest.fixture
def orders():
    return [
        Order(1, datetime(2024, 5, 16, 11, 15), 10, 2),
        Order(2, datetime(2024, 5, 16, 11, 45), 11, 3),
        Order(3, datetime(2024, 5, 16, 18, 5), 12, 4),
        Order(4, datetime(2024, 5, 15, 12, 0), 13, 1),
        Order(5, datetime(2024, 5, 9, 19, 0), 14, 2),
        Order(6, datetime(2024, 4, 30, 23, 30), 15, 1),
    ]


@pytest.fixture
def order_items():
    return [
        OrderItem(1, 1, 1, 2),
        OrderItem(2, 1, 2, 1),
        OrderItem(3, 2, 1, 1),
        OrderItem(4, 2, 3, 2),
        OrderItem(5, 3, 3, 4),
        OrderItem(6, 3, 1, 1),
        OrderItem(7, 4, 2, 2),
        OrderItem(8, 5, 1, 1),
        OrderItem(9, 6, 3, 1),
        # 商品マスタにない商品
        OrderItem(10, 3, 99, 1),
    ]


@pytest.fixture
def payments():
    return [
        Payment(1, 1, PaymentMethod.CASH, 3000, 0, datetime(2024, 5, 16, 11, 16)),
        Payment(2, 2, PaymentMethod.PAYPAY, 2200, 55, datetime(2024, 5, 16, 11, 47)),
        Payment(3, 3, PaymentMethod.CREDIT_CARD_ONSITE, 3200, 96, datetime(2024, 5, 16, 18, 6)),
        Payment(4, 4, PaymentMethod.CASH, 1200, 0, datetime(2024, 5, 15, 12, 1)),
        Payment(5, 5, PaymentMethod.LINE_PAY, 1200, 36, datetime(2024, 5, 9, 19, 2)),
        Payment(6, 6, PaymentMethod.QR_CODE_ONSITE, 500, 10, datetime(2024, 4, 30, 23, 31)),
    ]


@pytest.fixture
def sales_data(orders, order_items, products, payments):
    return SalesData(
        orders=tuple(orders),
        order_items=tuple(order_items),
        products=tuple(products),
        payments=tuple(payments)
    )


@pytest.fixture
def csv_dir(tmp_path):
    """型ヒント付きヘッダーのCSVを書き出したデータディレクトリ"""
    data_dir = tmp_path / 'sample_data'
    data_dir.mkdir()

    (data_dir / 'orders.csv').write_text(
        'orderId:int,completedAt:date,customerId:int,partySize:int\n'
        '1,2024-05-16T11:15:00,10,2\n'
        '2,2024-05-16T11:45:00,11,3\n'
        '3,2024-05-16T18:05:00,12,4\n',
        encoding='utf-8'
    )
    (data_dir / 'order_items.csv').write_text(
        'orderItemId:int,orderId:int,productId:int,quantity:int\n'
        '1,1,1,2\n'
        '2,1,2,1\n'
        '3,2,1,1\n'
        '4,2,3,2\n'
        '5,3,3,4\n'
        '6,3,1,1\n'
        '7,3,99,1\n',
        encoding='utf-8'
    )
    (data_dir / 'products.csv').write_text(
        'productId:int,menu,category,subCategory,productName,price:int,cost:int\n'
        '1,ランチ,メイン料理,パスタ,カルボナーラ,1200,400\n'
        '2,ランチ,サラダ,,シーザーサラダ,600,200\n'
        '3,ディナー,ドリンク,ビール,生ビール,500,150\n'
        '4,ディナー,デザート,,ティラミス,700,300\n',
        encoding='utf-8'
    )
    # 決済日時はUTC（店舗のタイムゾーンはAsia/Tokyo）
    payments_dir = data_dir / 'payments'
    payments_dir.mkdir()
    (payments_dir / 'payments.csv').write_text(
        'paymentId:int,orderId:int,paymentMethod:enum,amount:int,fee:int,paymentTime:date\n'
        '1,1,CASH,3000,0,2024-05-16T02:16:00.000Z\n'
        '2,2,PAYPAY,2200,55,2024-05-16T02:47:00.000Z\n'
        '3,3,CREDIT_CARD_ONSITE,3200,96,2024-05-16T09:06:00.000Z\n'
        '4,42,CASH,100,0,2024-05-16T04:00:00.000Z\n',
        encoding='utf-8'
    )
    return data_dir


@pytest.fixture
def test_config(tmp_path):
    class Config(TestingConfig):
        OUTPUT_DIR = tmp_path / 'output'
        DATA_DIR = tmp_path / 'missing'
        DEFAULT_DATE = REPORT_DATE
    return Config


@pytest.fixture
def app(test_config, sales_data):
    from salesboard.backend.api import create_app
    return create_app(test_config, data=sales_data)


@pytest.fixture
def client(app):
    return app.test_client()
