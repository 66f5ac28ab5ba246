import pytest

from salesboard.backend.api import create_app


def test_health(client):
    response = client.get('/api/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'ok'


def test_config(client):
    data = client.get('/api/config').get_json()
    assert data['default_date'] == '2024-05-16'
    assert data['modes'] == ['daily', 'monthly']
    assert data['abc_thresholds'] == {'a': 70, 'b': 90}


def test_report_uses_default_date(client):
    data = client.get('/api/report').get_json()
    assert data['status'] == 'success'
    assert data['mode'] == 'daily'
    assert data['period'] == '2024-05-16'
    assert data['kpi']['total_sales'] == 8400
    assert set(data['comparisons']) == {'day', 'week', 'year'}


def test_report_monthly_padded(client):
    data = client.get('/api/report?mode=monthly&date=2024-05-01&pad=true').get_json()
    assert data['period'] == '2024-05'
    assert len(data['customers']) == 31
    assert sum(b['group_count'] for b in data['customers']) == 5


def test_kpi_with_trends(client):
    data = client.get('/api/kpi?date=2024-05-16').get_json()
    day = data['comparisons']['day']
    assert day['period'] == '2024-05-15'
    assert day['texts']['total_sales'] == '前日から +7,200円'
    assert day['trends']['total_sales'] == 'up'
    assert day['trends']['average_per_customer'] == 'down'


def test_customers(client):
    data = client.get('/api/customers?scale=30min').get_json()
    assert data['scale'] == '30min'
    assert [b['label'] for b in data['buckets']] == ['11:00', '11:30', '18:00']

    monthly = client.get('/api/customers?mode=monthly&scale=30min').get_json()
    assert monthly['scale'] == 'day'


def test_sales(client):
    data = client.get('/api/sales').get_json()
    assert [r['period'] for r in data['records']] == ['11:00', '18:00']
    assert data['table']['total_sales'] == [5200, 3200]


def test_payment_methods(client):
    data = client.get('/api/payment-methods?sorted=true').get_json()
    assert data['total_amount'] == 8400
    methods = data['methods']
    assert [m['method'] for m in methods] == ['CREDIT_CARD_ONSITE', 'CASH', 'PAYPAY']
    assert sum(m['share'] for m in methods) == pytest.approx(100)


def test_products(client):
    data = client.get('/api/products').get_json()
    assert len(data['products']) == 4
    assert data['total_amount'] == 8400

    lunch = client.get('/api/products', query_string={'menu': 'ランチ', 'limit': 1}).get_json()
    assert [p['name'] for p in lunch['products']] == ['カルボナーラ']
    assert lunch['products'][0]['amount_rank'] == 'A'

    beer = client.get('/api/products', query_string={'q': 'ビール'}).get_json()
    assert [p['product_id'] for p in beer['products']] == [3]


@pytest.mark.parametrize('url', [
    '/api/report?mode=weekly',
    '/api/report?date=2024-13-01',
    '/api/customers?scale=15min',
    '/api/products?limit=0',
    '/api/products?limit=abc',
    '/api/products?limit=3&metric=margin',
])
def test_bad_parameters(client, url):
    response = client.get(url)
    assert response.status_code == 400
    assert response.get_json()['status'] == 'error'


def test_missing_data_files(test_config):
    client = create_app(test_config).test_client()
    response = client.get('/api/report')

    assert response.status_code == 404
    data = response.get_json()
    assert data['error_type'] == 'data_not_found'
    assert 'orders.csv' in data['missing_files']


def test_lazy_load_from_data_dir(test_config, csv_dir):
    test_config.DATA_DIR = csv_dir
    client = create_app(test_config).test_client()

    data = client.get('/api/kpi').get_json()
    # 注文に紐づかない決済も売上に含まれる
    assert data['kpi']['total_sales'] == 8500
    assert data['kpi']['total_customer_groups'] == 3


def test_export_and_download(client, test_config):
    response = client.post('/api/export', json={'mode': 'daily', 'date': '2024-05-16'})
    assert response.status_code == 200
    data = response.get_json()
    assert data['output_file'] == 'SalesReport_daily_20240516.xlsx'
    assert (test_config.OUTPUT_DIR / data['output_file']).is_file()

    download = client.get(f"/api/download/{data['output_file']}")
    assert download.status_code == 200
    assert download.data[:2] == b'PK'


def test_download_unknown_file(client):
    assert client.get('/api/download/nothing.xlsx').status_code == 404
    assert client.get('/api/download/..%2Fconftest.py').status_code == 404


def test_unknown_route_is_404(client):
    assert client.get('/api/unknown').status_code == 404


def test_invalid_data_file_is_server_error(test_config, csv_dir):
    (csv_dir / 'orders.csv').write_text(
        'orderId,completedAt,customerId\n1,2024-05-16T11:15:00,10\n', encoding='utf-8'
    )
    test_config.DATA_DIR = csv_dir
    client = create_app(test_config).test_client()

    response = client.get('/api/report')

    assert response.status_code == 500
    data = response.get_json()
    assert data['error_type'] == 'invalid_data'
    assert data['source'] == 'orders'
    assert 'partySize' in data['message']
