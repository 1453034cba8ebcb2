# models/__init__.py
# Инициализация моделей

from .user import User
from .contest import Contest
from .age_category import AgeCategory
from .entry import Entry
from .score import Score
from .activity import Activity
