from extensions import db
from sqlalchemy import CheckConstraint

class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(6), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=True, index=True)
    name = db.Column(db.String(100), nullable=True)
    role = db.Column(db.String, nullable=False)
    # Статус имеет смысл только для судей: pending до первого входа
    status = db.Column(db.String, nullable=False, default='pending')
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    scores = db.relationship('Score', back_populates='judge', cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'judge')", name="check_role"),
        CheckConstraint("status IN ('pending', 'active', 'inactive')", name="check_status"),
    )

    @property
    def display_name(self):
        return self.name or self.email or self.code
