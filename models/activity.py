# models/activity.py
# Лента событий для дашборда администратора

from extensions import db
from sqlalchemy import CheckConstraint

class Activity(db.Model):
    __tablename__ = 'activities'
    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(20), nullable=False)
    message = db.Column(db.String, nullable=False)
    related_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp(), index=True)

    __table_args__ = (
        CheckConstraint("type IN ('entry', 'judge', 'contest')", name="check_activity_type"),
    )
