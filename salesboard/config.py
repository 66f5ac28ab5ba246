"""
アプリケーション設定
"""
import os
from datetime import date
from pathlib import Path


class Config:
    """アプリケーション設定クラス"""

    # サーバー設定
    HOST = os.getenv('HOST', '127.0.0.1')
    PORT = int(os.getenv('PORT', 8080))
    DEBUG = os.getenv('DEBUG', 'false').lower() == 'true'
    TESTING = False

    # パス設定
    APP_DIR = Path(__file__).parent
    BASE_DIR = APP_DIR.parent
    DATA_DIR = Path(os.getenv('SALESBOARD_DATA_DIR', BASE_DIR / 'sample_data'))
    OUTPUT_DIR = Path(os.getenv('SALESBOARD_OUTPUT_DIR', Path.home() / 'Downloads'))

    # ファイルエンコーディング
    CSV_ENCODING = 'utf-8'

    # 店舗のタイムゾーン（オフセット付きの日時はこのタイムゾーンに変換して扱う）
    TIMEZONE = os.getenv('SALESBOARD_TIMEZONE', 'Asia/Tokyo')

    # 基準日（「今日」ボタン相当。サンプルデータの日付に合わせる）
    DEFAULT_DATE = date.fromisoformat(os.getenv('SALESBOARD_DEFAULT_DATE', '2024-05-16'))

    # ABC分析の閾値（累積構成比 %）
    ABC_THRESHOLD_A = float(os.getenv('ABC_THRESHOLD_A', 70))
    ABC_THRESHOLD_B = float(os.getenv('ABC_THRESHOLD_B', 90))

    # 営業時間（グラフの目盛り）
    BUSINESS_OPEN_HOUR = 10
    BUSINESS_CLOSE_HOUR = 24

    @classmethod
    def init_app(cls):
        """アプリケーション初期化時の設定"""
        cls.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)


class DevelopmentConfig(Config):
    """開発環境設定"""
    DEBUG = True


class ProductionConfig(Config):
    """本番環境設定"""
    DEBUG = False


class TestingConfig(Config):
    """テスト環境設定"""
    TESTING = True


# 設定マッピング
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """現在の設定を取得"""
    env = os.getenv('FLASK_ENV', 'development')
    return config.get(env, config['default'])
