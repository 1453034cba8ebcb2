from extensions import db
from sqlalchemy import CheckConstraint

CRITERION_COLUMNS = (
    'creativity_score',
    'execution_score',
    'impact_score',
    'theme_interpretation_score',
    'movement_representation_score',
    'composition_score',
    'color_usage_score',
    'visual_focus_score',
    'storytelling_score',
    'technique_mastery_score',
)

class Score(db.Model):
    __tablename__ = 'scores'
    id = db.Column(db.Integer, primary_key=True)
    entry_id = db.Column(db.Integer, db.ForeignKey('entries.id', ondelete='CASCADE'), nullable=False)
    judge_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)

    # Основные критерии
    creativity_score = db.Column(db.Integer, nullable=False, default=5)
    execution_score = db.Column(db.Integer, nullable=False, default=5)
    impact_score = db.Column(db.Integer, nullable=False, default=5)
    # Тематика
    theme_interpretation_score = db.Column(db.Integer, nullable=False, default=5)
    movement_representation_score = db.Column(db.Integer, nullable=False, default=5)
    # Принципы дизайна
    composition_score = db.Column(db.Integer, nullable=False, default=5)
    color_usage_score = db.Column(db.Integer, nullable=False, default=5)
    visual_focus_score = db.Column(db.Integer, nullable=False, default=5)
    # Дополнительно
    storytelling_score = db.Column(db.Integer, nullable=False, default=5)
    technique_mastery_score = db.Column(db.Integer, nullable=False, default=5)

    judge_comments = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, server_default=db.func.current_timestamp(), onupdate=db.func.current_timestamp())

    # Связи для joinedload()
    entry = db.relationship('Entry', back_populates='scores')
    judge = db.relationship('User', back_populates='scores')

    __table_args__ = (
        db.UniqueConstraint('entry_id', 'judge_id', name='unique_entry_judge'),
    ) + tuple(
        CheckConstraint(f"{column} BETWEEN 0 AND 10", name=f"check_{column}")
        for column in CRITERION_COLUMNS
    )
