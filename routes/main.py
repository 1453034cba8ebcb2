from functools import wraps
from flask import Blueprint, render_template, session, redirect, url_for, flash, request, current_app
from sqlalchemy.exc import SQLAlchemyError
from models import User, Contest, AgeCategory, Entry
from extensions import db
from logic import (DEFAULT_SCORE, judge_progress, log_activity, parse_score_form,
                   scores_for_judge, upsert_score)
from scoring import CRITERIA


main_bp = Blueprint('main', __name__)

def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user_id' not in session:
            flash('Please log in to access this page.', 'error')
            return redirect(url_for('auth.login'))
        return f(*args, **kwargs)
    return decorated_function


def judge_required(f):
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if session.get('user_role') != 'judge':
            flash('Access denied.', 'error')
            return redirect(url_for('main.dashboard'))
        return f(*args, **kwargs)
    return decorated_function


@main_bp.route('/')
def index():
    if 'user_id' in session:
        return redirect(url_for('main.dashboard'))
    return redirect(url_for('auth.login'))


@main_bp.route('/dashboard')
@login_required
def dashboard():
    user = db.session.get(User, session['user_id'])
    if not user:
        session.clear()
        flash('Something went wrong. Please log in again.', 'error')
        return redirect(url_for('auth.login'))

    if user.role == 'admin':
        return redirect(url_for('admin.dashboard'))

    contests = Contest.query.filter_by(is_active=True).order_by(Contest.name).all()
    categories = AgeCategory.query.order_by(AgeCategory.min_age).all()

    contest_progress = []
    total_entries = 0
    judged_entries = 0
    for contest in contests:
        progress = judge_progress(user.id, contest, categories)
        total_entries += sum(p['total'] for p in progress)
        judged_entries += sum(p['judged'] for p in progress)
        contest_progress.append({'contest': contest, 'categories': progress})

    return render_template('judge/dashboard.html',
                           user=user,
                           contest_progress=contest_progress,
                           total_entries=total_entries,
                           judged_entries=judged_entries,
                           remaining_entries=total_entries - judged_entries)


@main_bp.route('/instructions')
@judge_required
def instructions():
    return render_template('judge/instructions.html')


@main_bp.route('/judging/<int:contest_id>', methods=['GET', 'POST'])
@judge_required
def judging_page(contest_id):
    judge_id = session['user_id']
    contest = Contest.query.get_or_404(contest_id)

    if not contest.is_active:
        flash('This contest is not open for judging.', 'error')
        return redirect(url_for('main.dashboard'))

    # Без категории открываем самую младшую
    category_id = request.args.get('category', type=int)
    if not category_id:
        first_category = AgeCategory.query.order_by(AgeCategory.min_age).first()
        if not first_category:
            flash('No age categories have been set up yet.', 'error')
            return redirect(url_for('main.dashboard'))
        return redirect(url_for('main.judging_page', contest_id=contest.id, category=first_category.id))

    category = AgeCategory.query.get_or_404(category_id)
    entries = Entry.query.filter_by(
        contest_id=contest.id,
        age_category_id=category.id
    ).order_by(Entry.entry_number).all()
    scored = scores_for_judge(judge_id, [e.id for e in entries])

    if request.method == 'POST':
        entry_id = request.form.get('entry_id', type=int)
        entry = next((e for e in entries if e.id == entry_id), None)
        if entry is None:
            flash('This entry does not belong to the selected contest and category.', 'error')
            return redirect(url_for('main.judging_page', contest_id=contest.id, category=category.id))

        position = entries.index(entry)
        try:
            values, comments = parse_score_form(request.form)
            score = upsert_score(entry.id, judge_id, values, comments)

            judge = db.session.get(User, judge_id)
            log_activity('judge', f'Judge {judge.email or judge.display_name} scored Entry #{entry.entry_number}',
                         related_id=score.id)
            db.session.commit()
            flash('Scores saved successfully!', 'success')
            # Переходим к следующей работе
            position += 1
        except ValueError as e:
            flash(str(e), 'error')
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception('Failed to save score for entry %s', entry.id)
            flash('Failed to save scores. Please try again.', 'error')

        return redirect(url_for('main.judging_page', contest_id=contest.id, category=category.id, entry=position))

    # Без явной позиции показываем первую неоцененную работу
    position = request.args.get('entry', type=int)
    if position is None:
        position = next((i for i, e in enumerate(entries) if e.id not in scored), 0)
    if entries:
        position = min(max(position, 0), len(entries) - 1)
    current_entry = entries[position] if entries else None

    existing = scored.get(current_entry.id) if current_entry else None
    form_values = {
        key: getattr(existing, column) if existing else DEFAULT_SCORE
        for key, column, _ in CRITERIA
    }

    return render_template('judge/judging_page.html',
                           contest=contest,
                           category=category,
                           categories=AgeCategory.query.order_by(AgeCategory.min_age).all(),
                           entries=entries,
                           position=position,
                           current_entry=current_entry,
                           form_values=form_values,
                           comments=existing.judge_comments if existing and existing.judge_comments else '',
                           scored_ids=set(scored),
                           all_scored=bool(entries) and len(scored) == len(entries))
