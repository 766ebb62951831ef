import os


def _flag(name, default):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev_secret_key')
    # in-memory by default: the shop state is rebuilt from mock data on every start
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URI', 'sqlite:///:memory:')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER', os.path.join('static', 'uploads'))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    SEED_MOCK_DATA = _flag('SEED_MOCK_DATA', 'true')
    DAILY_CAPACITY_HOURS = float(os.getenv('DAILY_CAPACITY_HOURS', '8'))
    NOTIFICATION_INTERVAL_MINUTES = int(os.getenv('NOTIFICATION_INTERVAL_MINUTES', '30'))
    NOTIFICATION_COOLDOWN_MINUTES = int(os.getenv('NOTIFICATION_COOLDOWN_MINUTES', '30'))
    QR_BASE_URL = os.getenv('QR_BASE_URL', 'https://repair-shop.local')
