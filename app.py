# app.py
# Основной файл Flask-приложения с использованием паттерна Application Factory

import logging

import click
from flask import Flask, render_template
from config import Config
from extensions import db, migrate

# Важно импортировать модели здесь, чтобы Alembic (Migrate) мог их видеть
from models import User, Contest, AgeCategory, Entry, Score, Activity
from scoring import CRITERIA, CRITERION_LABELS, CRITERIA_GROUPS

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def configure_logging(app):
    # Один консольный обработчик, без дублей при повторном create_app()
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    app.logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    app.logger.addHandler(handler)
    app.logger.setLevel(level)

    # scoring пишет в свой логгер, корневой не настроен
    scoring_logger = logging.getLogger('scoring')
    scoring_logger.handlers.clear()
    scoring_logger.addHandler(handler)
    scoring_logger.setLevel(level)


def create_app(config_class=Config):
    # Создаем экземпляр приложения
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app)

    @app.context_processor
    def inject_display_maps():
        LABELS = {
            'cover': 'Cover Design',
            'bookmark': 'Bookmark Design',
            'pending': 'Pending',
            'active': 'Active',
            'inactive': 'Inactive',
            'judge': 'Judge',
            'admin': 'Administrator',
        }
        return dict(LABELS=LABELS, CRITERIA=CRITERIA,
                    CRITERION_LABELS=CRITERION_LABELS, CRITERIA_GROUPS=CRITERIA_GROUPS)

    # --- Инициализируем расширения С ПРИЛОЖЕНИЕМ ---
    db.init_app(app)
    migrate.init_app(app, db)

    # --- Регистрируем наши Blueprints (маршруты) ---
    from routes.auth import auth_bp
    from routes.main import main_bp
    from routes.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(admin_bp)

    @app.errorhandler(404)
    def not_found(error):
        return render_template('404.html'), 404

    @app.cli.command('init-db')
    def init_db_command():
        """Создать таблицы без миграций (для быстрого старта)."""
        db.create_all()
        click.echo('Database tables created.')

    return app
