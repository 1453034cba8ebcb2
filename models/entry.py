# models/entry.py

from extensions import db
from sqlalchemy import CheckConstraint, UniqueConstraint

class Entry(db.Model):
    __tablename__ = 'entries'

    id = db.Column(db.Integer, primary_key=True)
    contest_id = db.Column(db.Integer, db.ForeignKey('contests.id', ondelete='CASCADE'), nullable=False)
    entry_number = db.Column(db.Integer, nullable=False)
    participant_name = db.Column(db.String(200), nullable=False)
    participant_age = db.Column(db.Integer, nullable=False)
    # При удалении категории работа остаётся, просто без категории
    age_category_id = db.Column(db.Integer, db.ForeignKey('age_categories.id', ondelete='SET NULL'), nullable=True)
    artist_statement = db.Column(db.Text, nullable=True)
    # Сами файлы лежат во внешнем хранилище, здесь только пути
    front_image_path = db.Column(db.String, nullable=False)
    back_image_path = db.Column(db.String, nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    contest = db.relationship('Contest', back_populates='entries')
    age_category = db.relationship('AgeCategory', back_populates='entries')
    scores = db.relationship('Score', back_populates='entry', lazy=True, cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('contest_id', 'entry_number', name='unique_contest_entry_number'),
        CheckConstraint("participant_age >= 0", name="check_participant_age"),
    )
