# models/contest.py

from extensions import db
from sqlalchemy import CheckConstraint

class Contest(db.Model):
    __tablename__ = 'contests'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String, unique=True, nullable=False)
    # 'cover' - обложка, 'bookmark' - закладка
    type = db.Column(db.String(20), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    entries = db.relationship('Entry', back_populates='contest', lazy=True, cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("type IN ('cover', 'bookmark')", name="check_contest_type"),
    )
