# logic.py
# Бизнес-логика, которой нужна база: сохранение оценок, прогресс судей,
# сбор результатов конкурса. Коммит делают маршруты.

import secrets
from collections import defaultdict
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite

from extensions import db
from models import Activity, AgeCategory, Entry, Score, User
from scoring import CRITERIA, aggregate_entries, rank_by_category

DEFAULT_SCORE = 5
MIN_SCORE = 0
MAX_SCORE = 10

# Диалекты, где есть INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


def log_activity(activity_type, message, related_id=None):
    activity = Activity(type=activity_type, message=message, related_id=related_id)
    db.session.add(activity)
    return activity


def find_age_category(categories, age):
    """Первая категория, в границы которой попадает возраст, иначе None."""
    for category in categories:
        if category.contains(age):
            return category
    return None


def next_entry_number():
    max_number = db.session.query(func.max(Entry.entry_number)).scalar()
    return (max_number or 0) + 1


def generate_access_code():
    while True:
        code = f'{secrets.randbelow(10 ** 6):06d}'
        if not User.query.filter_by(code=code).first():
            return code


def parse_score_form(form):
    """
    Достаёт оценки по всем критериям из формы судьи.
    Возвращает (values, comments); при ошибке бросает ValueError с текстом для flash.
    """
    values = {}
    for key, _, label in CRITERIA:
        raw = form.get(key)
        if raw is None or str(raw).strip() == '':
            raise ValueError(f'Please score "{label}".')
        try:
            value = int(raw)
        except (TypeError, ValueError):
            raise ValueError(f'Score for "{label}" must be a whole number.') from None
        if not MIN_SCORE <= value <= MAX_SCORE:
            raise ValueError(f'Score for "{label}" must be between {MIN_SCORE} and {MAX_SCORE}.')
        values[key] = value

    comments = (form.get('comments') or '').strip() or None
    return values, comments


def upsert_score(entry_id, judge_id, values, comments=None):
    """
    Сохраняет оценку судьи для работы: одна строка на пару (работа, судья).

    На PostgreSQL и SQLite это один INSERT ... ON CONFLICT DO UPDATE, так что
    две одновременные отправки не создадут дубль. Для остальных баз -
    проверка и затем insert/update.
    """
    data = {'entry_id': entry_id, 'judge_id': judge_id, 'judge_comments': comments or None}
    for key, column, _ in CRITERIA:
        value = values.get(key)
        data[column] = DEFAULT_SCORE if value is None else value

    dialect = db.engine.dialect.name
    insert = _UPSERT_INSERTS.get(dialect)

    if insert is not None:
        stmt = insert(Score.__table__).values(**data)
        update_columns = {
            name: stmt.excluded[name]
            for name in data
            if name not in ('entry_id', 'judge_id')
        }
        update_columns['updated_at'] = func.current_timestamp()
        stmt = stmt.on_conflict_do_update(index_elements=['entry_id', 'judge_id'], set_=update_columns)
        db.session.execute(stmt)
    else:
        existing = Score.query.filter_by(entry_id=entry_id, judge_id=judge_id).first()
        if existing:
            for name, value in data.items():
                setattr(existing, name, value)
        else:
            db.session.add(Score(**data))
        db.session.flush()

    # populate_existing: в сессии мог остаться старый объект этой оценки
    score = Score.query.populate_existing().filter_by(entry_id=entry_id, judge_id=judge_id).one()
    current_app.logger.info('Score saved: entry=%s judge=%s score_id=%s', entry_id, judge_id, score.id)
    return score


def scores_for_judge(judge_id, entry_ids):
    if not entry_ids:
        return {}
    rows = Score.query.filter(Score.judge_id == judge_id, Score.entry_id.in_(entry_ids)).all()
    return {row.entry_id: row for row in rows}


def _percent(part, whole):
    # Округление половины вверх, как в интерфейсе
    return int(part * 100 / whole + 0.5) if whole else 0


def judge_progress(judge_id, contest, categories):
    """
    Прогресс судьи по конкурсу в разрезе возрастных категорий:
    [{'category': AgeCategory, 'total': N, 'judged': M, 'percentage': P}, ...]
    Категории без работ пропускаются.
    """
    entries = Entry.query.filter_by(contest_id=contest.id).all()
    scored = scores_for_judge(judge_id, [e.id for e in entries])

    counts = defaultdict(lambda: {'total': 0, 'judged': 0})
    for entry in entries:
        bucket = counts[entry.age_category_id]
        bucket['total'] += 1
        if entry.id in scored:
            bucket['judged'] += 1

    progress = []
    for category in categories:
        if category.id not in counts:
            continue
        bucket = counts[category.id]
        progress.append({
            'category': category,
            'total': bucket['total'],
            'judged': bucket['judged'],
            'percentage': _percent(bucket['judged'], bucket['total']),
        })
    return progress


def contest_completion(contest, judges):
    """Сколько работ конкурса оценил каждый судья и общий процент завершения."""
    entry_ids = [e.id for e in contest.entries]
    total_entries = len(entry_ids)

    judged = defaultdict(set)
    if entry_ids:
        pairs = db.session.query(Score.judge_id, Score.entry_id).filter(Score.entry_id.in_(entry_ids))
        for judge_id, entry_id in pairs:
            judged[judge_id].add(entry_id)

    judge_stats = []
    for judge in judges:
        entries_judged = len(judged.get(judge.id, ()))
        judge_stats.append({
            'judge': judge,
            'entries_judged': entries_judged,
            'total_entries': total_entries,
            'is_complete': total_entries > 0 and entries_judged >= total_entries,
            'completion_rate': _percent(entries_judged, total_entries),
        })

    completed_judges = sum(1 for stats in judge_stats if stats['is_complete'])
    return {
        'contest': contest,
        'total_entries': total_entries,
        'total_judges': len(judges),
        'completed_judges': completed_judges,
        'overall_completion_rate': _percent(completed_judges, len(judges)),
        'judge_stats': judge_stats,
    }


def contest_results(contest):
    """Итоги конкурса: {название категории: [результаты по местам]}."""
    entries = Entry.query.filter_by(contest_id=contest.id).order_by(Entry.entry_number).all()
    entry_ids = [e.id for e in entries]
    rows = Score.query.filter(Score.entry_id.in_(entry_ids)).all() if entry_ids else []

    category_names = {c.id: c.name for c in AgeCategory.query.order_by(AgeCategory.min_age)}
    return rank_by_category(aggregate_entries(entries, rows, category_names))


def format_relative_time(timestamp, now=None):
    if now is None:
        now = datetime.now(timezone.utc).replace(tzinfo=None)
    seconds = max(int((now - timestamp).total_seconds()), 0)

    if seconds < 60:
        return f'{seconds} seconds ago'
    if seconds < 3600:
        return f'{seconds // 60} minutes ago'
    if seconds < 86400:
        return f'{seconds // 3600} hours ago'
    if seconds < 604800:
        return f'{seconds // 86400} days ago'
    return timestamp.strftime('%Y-%m-%d')
