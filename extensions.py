# extensions.py
# Экземпляры расширений Flask создаются здесь без приложения,
# а привязываются к нему в create_app()

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()
