# config.py
# Конфигурация приложения Flask

import os


class Config:
    # Относительный путь sqlite Flask-SQLAlchemy кладёт в папку instance/
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///judging.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv('SECRET_KEY', 'your-secret-key-change-me')  # Замени на случайный ключ в продакшене

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    # Сколько последних событий показывать на дашборде администратора
    RECENT_ACTIVITY_LIMIT = int(os.getenv('RECENT_ACTIVITY_LIMIT', '10'))


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SECRET_KEY = 'testing'
    LOG_LEVEL = 'WARNING'
