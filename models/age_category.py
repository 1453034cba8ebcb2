# models/age_category.py

from extensions import db
from sqlalchemy import CheckConstraint

class AgeCategory(db.Model):
    __tablename__ = 'age_categories'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String, unique=True, nullable=False)
    min_age = db.Column(db.Integer, nullable=False)
    # NULL - верхней границы нет ("18+")
    max_age = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    entries = db.relationship('Entry', back_populates='age_category', lazy=True)

    __table_args__ = (
        CheckConstraint("min_age >= 0", name="check_min_age"),
        CheckConstraint("max_age IS NULL OR max_age >= min_age", name="check_age_range"),
    )

    def contains(self, age):
        return self.min_age <= age and (self.max_age is None or age <= self.max_age)
