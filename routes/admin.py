# routes/admin.py

from flask import Blueprint, render_template, request, redirect, url_for, session, flash, jsonify, current_app
from functools import wraps
from sqlalchemy.exc import IntegrityError
from extensions import db
from models import User, Contest, AgeCategory, Entry, Score, Activity
from sqlalchemy.orm import joinedload
from logic import (contest_completion, contest_results, find_age_category, format_relative_time,
                   generate_access_code, log_activity, next_entry_number)
from scoring import CRITERIA_GROUPS, build_entry_result


CONTEST_TYPES = ['cover', 'bookmark']
JUDGE_STATUSES = ['pending', 'active', 'inactive']
ROLES = ['admin', 'judge']


admin_bp = Blueprint('admin', __name__, url_prefix='/admin')

def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user_role' not in session or session['user_role'] != 'admin':
            flash('You do not have permission to access this page.', 'error')
            if 'user_id' not in session:
                return redirect(url_for('auth.login'))
            return redirect(url_for('main.dashboard'))
        return f(*args, **kwargs)
    return decorated_function


def _optional_int(value):
    value = (value or '').strip()
    return int(value) if value else None


def _read_entry_form(form):
    """Проверяет форму работы. Бросает ValueError с текстом для flash."""
    participant_name = (form.get('participant_name') or '').strip()
    front_image_path = (form.get('front_image_path') or '').strip()
    if not participant_name:
        raise ValueError('Participant name is required.')
    if not front_image_path:
        raise ValueError('Front image is required.')

    try:
        contest_id = int(form.get('contest_id') or '')
        participant_age = int(form.get('participant_age') or '')
        age_category_id = _optional_int(form.get('age_category_id'))
    except ValueError:
        raise ValueError('Contest and age must be valid numbers.') from None
    if participant_age < 0:
        raise ValueError('Age cannot be negative.')

    return {
        'contest_id': contest_id,
        'participant_name': participant_name,
        'participant_age': participant_age,
        'age_category_id': age_category_id,
        'artist_statement': (form.get('artist_statement') or '').strip() or None,
        'front_image_path': front_image_path,
        'back_image_path': (form.get('back_image_path') or '').strip() or None,
    }


def _resolve_age_category(data, categories):
    # Категорию можно выбрать вручную, иначе определяем по возрасту
    if data['age_category_id'] is not None:
        if not db.session.get(AgeCategory, data['age_category_id']):
            raise ValueError('Age category not found.')
        return data['age_category_id']
    category = find_age_category(categories, data['participant_age'])
    return category.id if category else None


# --- Дашборд ---
@admin_bp.route('/')
@admin_required
def dashboard():
    limit = current_app.config.get('RECENT_ACTIVITY_LIMIT', 10)
    activities = Activity.query.order_by(Activity.created_at.desc(), Activity.id.desc()).limit(limit).all()

    return render_template('admin/dashboard.html',
                           entries_count=Entry.query.count(),
                           judges_count=User.query.filter_by(role='judge').count(),
                           active_contests=Contest.query.filter_by(is_active=True).count(),
                           recent_activity=[(a, format_relative_time(a.created_at)) for a in activities])


# --- БЛОК CRUD для Contest ---
@admin_bp.route('/contests', methods=['GET', 'POST'])
@admin_required
def manage_contests():
    if request.method == 'POST':
        name = (request.form.get('name') or '').strip()
        contest_type = request.form.get('type')

        if not name or contest_type not in CONTEST_TYPES:
            flash('Contest name and a valid type are required.', 'error')
        else:
            contest = Contest(name=name, type=contest_type, is_active=True)
            db.session.add(contest)
            try:
                db.session.flush()
                log_activity('contest', f'Contest "{name}" created', related_id=contest.id)
                db.session.commit()
                flash(f'Contest "{name}" created.', 'success')
            except IntegrityError:
                db.session.rollback()
                flash(f'A contest named "{name}" already exists.', 'error')
        return redirect(url_for('admin.manage_contests'))

    contests = Contest.query.order_by(Contest.name).all()
    return render_template('admin/contests.html', contests=contests, contest_types=CONTEST_TYPES)


@admin_bp.route('/contest/<int:contest_id>/toggle', methods=['POST'])
@admin_required
def toggle_contest(contest_id):
    contest = Contest.query.get_or_404(contest_id)
    contest.is_active = not contest.is_active
    db.session.commit()
    state = 'opened' if contest.is_active else 'closed'
    flash(f'Contest "{contest.name}" {state} for judging.', 'success')
    return redirect(url_for('admin.manage_contests'))


@admin_bp.route('/contest/<int:contest_id>/delete', methods=['POST'])
@admin_required
def delete_contest(contest_id):
    contest = Contest.query.get_or_404(contest_id)
    try:
        # Работы и оценки удалятся каскадом
        db.session.delete(contest)
        db.session.commit()
        flash(f'Contest "{contest.name}" and all its entries were deleted.', 'success')
    except IntegrityError:
        db.session.rollback()
        current_app.logger.exception('Failed to delete contest %s', contest_id)
        flash('Could not delete the contest.', 'error')
    return redirect(url_for('admin.manage_contests'))


# --- БЛОК CRUD для AgeCategory ---
@admin_bp.route('/age_categories', methods=['GET', 'POST'])
@admin_required
def manage_age_categories():
    if request.method == 'POST':
        name = (request.form.get('name') or '').strip()
        try:
            min_age = int(request.form.get('min_age') or '')
            max_age = _optional_int(request.form.get('max_age'))
        except ValueError:
            flash('Ages must be whole numbers.', 'error')
            return redirect(url_for('admin.manage_age_categories'))

        if not name:
            flash('Category name is required.', 'error')
        elif min_age < 0:
            flash('Minimum age cannot be negative.', 'error')
        elif max_age is not None and max_age < min_age:
            flash('Maximum age cannot be lower than minimum age.', 'error')
        else:
            db.session.add(AgeCategory(name=name, min_age=min_age, max_age=max_age))
            try:
                db.session.commit()
                flash(f'Age category "{name}" created.', 'success')
            except IntegrityError:
                db.session.rollback()
                flash(f'An age category named "{name}" already exists.', 'error')
        return redirect(url_for('admin.manage_age_categories'))

    categories = AgeCategory.query.order_by(AgeCategory.min_age).all()
    return render_template('admin/age_categories.html', categories=categories)


@admin_bp.route('/age_category/<int:category_id>/delete', methods=['POST'])
@admin_required
def delete_age_category(category_id):
    category = AgeCategory.query.get_or_404(category_id)
    # Работы этой категории остаются без категории
    Entry.query.filter_by(age_category_id=category.id).update({'age_category_id': None})
    db.session.delete(category)
    db.session.commit()
    flash(f'Age category "{category.name}" deleted.', 'success')
    return redirect(url_for('admin.manage_age_categories'))


# --- БЛОК CRUD для Entry ---
@admin_bp.route('/entries')
@admin_required
def manage_entries():
    contest_id = request.args.get('contest_id', type=int)
    query = Entry.query.options(joinedload(Entry.contest), joinedload(Entry.age_category))
    if contest_id:
        query = query.filter(Entry.contest_id == contest_id)
    entries = query.order_by(Entry.entry_number).all()

    contests = Contest.query.order_by(Contest.name).all()
    return render_template('admin/entries.html', entries=entries, contests=contests, selected_contest_id=contest_id)


@admin_bp.route('/entries/new', methods=['GET', 'POST'])
@admin_required
def new_entry():
    contests = Contest.query.filter_by(is_active=True).order_by(Contest.name).all()
    categories = AgeCategory.query.order_by(AgeCategory.min_age).all()

    if request.method == 'POST':
        try:
            data = _read_entry_form(request.form)
            if not db.session.get(Contest, data['contest_id']):
                raise ValueError('Contest not found.')
            data['age_category_id'] = _resolve_age_category(data, categories)

            entry = Entry(entry_number=next_entry_number(), **data)
            db.session.add(entry)
            db.session.flush()
            log_activity('entry', f'Entry #{entry.entry_number} by {entry.participant_name} added', related_id=entry.id)
            db.session.commit()
            current_app.logger.info('Entry #%s created in contest %s', entry.entry_number, entry.contest_id)
            flash(f'Entry #{entry.entry_number} created.', 'success')
            return redirect(url_for('admin.manage_entries'))
        except ValueError as e:
            flash(str(e), 'error')
        except IntegrityError:
            db.session.rollback()
            flash('Could not create the entry: the entry number is already taken. Please try again.', 'error')

        return render_template('admin/entry_form.html', entry=None, form=request.form,
                               contests=contests, categories=categories)

    return render_template('admin/entry_form.html', entry=None, form={},
                           contests=contests, categories=categories)


@admin_bp.route('/entry/<int:entry_id>')
@admin_required
def entry_detail(entry_id):
    entry = Entry.query.options(
        joinedload(Entry.contest),
        joinedload(Entry.age_category),
        joinedload(Entry.scores).joinedload(Score.judge)
    ).get_or_404(entry_id)

    category_name = entry.age_category.name if entry.age_category else None
    result = build_entry_result(entry, entry.scores, category_name)
    return render_template('admin/entry_detail.html', entry=entry, result=result)


@admin_bp.route('/entry/<int:entry_id>/edit', methods=['GET', 'POST'])
@admin_required
def edit_entry(entry_id):
    entry = Entry.query.get_or_404(entry_id)
    contests = Contest.query.order_by(Contest.name).all()
    categories = AgeCategory.query.order_by(AgeCategory.min_age).all()

    if request.method == 'POST':
        try:
            data = _read_entry_form(request.form)
            if not db.session.get(Contest, data['contest_id']):
                raise ValueError('Contest not found.')
            data['age_category_id'] = _resolve_age_category(data, categories)
            for name, value in data.items():
                setattr(entry, name, value)
            db.session.commit()
            flash('Entry updated.', 'success')
            return redirect(url_for('admin.entry_detail', entry_id=entry.id))
        except ValueError as e:
            flash(str(e), 'error')
        except IntegrityError:
            db.session.rollback()
            flash('Could not update the entry.', 'error')
        return redirect(url_for('admin.edit_entry', entry_id=entry.id))

    return render_template('admin/entry_form.html', entry=entry, form={},
                           contests=contests, categories=categories)


@admin_bp.route('/entry/<int:entry_id>/delete', methods=['POST'])
@admin_required
def delete_entry(entry_id):
    entry = Entry.query.get_or_404(entry_id)
    db.session.delete(entry)
    db.session.commit()
    flash(f'Entry #{entry.entry_number} deleted.', 'success')
    return redirect(url_for('admin.manage_entries'))


# --- Судьи ---
@admin_bp.route('/judges', methods=['GET', 'POST'])
@admin_required
def manage_judges():
    if request.method == 'POST':
        email = (request.form.get('email') or '').strip().lower()
        name = (request.form.get('name') or '').strip() or None

        if not email or '@' not in email:
            flash('A valid email address is required.', 'error')
            return redirect(url_for('admin.manage_judges'))

        judge = User(code=generate_access_code(), email=email, name=name, role='judge', status='pending')
        db.session.add(judge)
        try:
            db.session.flush()
            log_activity('judge', f'Judge {email} invited', related_id=judge.id)
            db.session.commit()
            current_app.logger.info('Judge %s invited', email)
            flash(f'Judge {email} invited. Access code: {judge.code}', 'success')
        except IntegrityError:
            db.session.rollback()
            flash(f'A user with email {email} already exists.', 'error')
        return redirect(url_for('admin.manage_judges'))

    judges = User.query.filter_by(role='judge').order_by(User.created_at.desc(), User.id.desc()).all()
    return render_template('admin/judges.html', judges=judges, statuses=JUDGE_STATUSES)


@admin_bp.route('/judge/<int:judge_id>/reset_code', methods=['POST'])
@admin_required
def reset_judge_code(judge_id):
    judge = User.query.filter_by(id=judge_id, role='judge').first_or_404()
    judge.code = generate_access_code()
    db.session.commit()
    flash(f'New access code for {judge.display_name}: {judge.code}', 'success')
    return redirect(url_for('admin.manage_judges'))


@admin_bp.route('/judge/<int:judge_id>/status', methods=['POST'])
@admin_required
def update_judge_status(judge_id):
    judge = User.query.filter_by(id=judge_id, role='judge').first_or_404()
    status = request.form.get('status')
    if status not in JUDGE_STATUSES:
        flash('Unknown status.', 'error')
    else:
        judge.status = status
        db.session.commit()
        flash(f'Status of {judge.display_name} set to {status}.', 'success')
    return redirect(url_for('admin.manage_judges'))


@admin_bp.route('/judge/<int:judge_id>/delete', methods=['POST'])
@admin_required
def delete_judge(judge_id):
    judge = User.query.filter_by(id=judge_id, role='judge').first_or_404()
    try:
        # Оценки судьи удаляются вместе с ним
        db.session.delete(judge)
        db.session.commit()
        flash(f'Judge {judge.display_name} deleted.', 'success')
    except IntegrityError:
        db.session.rollback()
        current_app.logger.exception('Failed to delete judge %s', judge_id)
        flash('Could not delete the judge.', 'error')
    return redirect(url_for('admin.manage_judges'))


# --- Пользователи и роли ---
@admin_bp.route('/users')
@admin_required
def manage_users():
    users = User.query.order_by(User.created_at.desc(), User.id.desc()).all()
    return render_template('admin/users.html', users=users, roles=ROLES)


@admin_bp.route('/user/<int:user_id>/role', methods=['POST'])
@admin_required
def update_user_role(user_id):
    if user_id == session.get('user_id'):
        flash('You cannot change your own role.', 'error')
        return redirect(url_for('admin.manage_users'))

    user = User.query.get_or_404(user_id)
    role = request.form.get('role')
    if role not in ROLES:
        flash('Unknown role.', 'error')
    else:
        user.role = role
        db.session.commit()
        flash(f'Role of {user.display_name} updated to {role}.', 'success')
    return redirect(url_for('admin.manage_users'))


# --- Результаты ---
@admin_bp.route('/results')
@admin_required
def results_overview():
    contests = Contest.query.options(joinedload(Contest.entries)).order_by(Contest.name).all()
    judges = User.query.filter_by(role='judge').order_by(User.email).all()
    contest_stats = [contest_completion(contest, judges) for contest in contests]
    return render_template('admin/results.html', contest_stats=contest_stats)


@admin_bp.route('/results/<int:contest_id>')
@admin_required
def contest_results_view(contest_id):
    contest = Contest.query.get_or_404(contest_id)
    view = request.args.get('view', 'simplified')
    if view not in CRITERIA_GROUPS:
        view = 'simplified'

    return render_template('admin/contest_results.html',
                           contest=contest,
                           entries_by_category=contest_results(contest),
                           view=view,
                           view_criteria=CRITERIA_GROUPS[view])


@admin_bp.route('/results/<int:contest_id>/export.json')
@admin_required
def export_contest_results(contest_id):
    contest = Contest.query.get_or_404(contest_id)
    ranked = contest_results(contest)
    # Список, а не словарь: jsonify сортирует ключи, а порядок категорий важен
    return jsonify({
        'contest': {'id': contest.id, 'name': contest.name, 'type': contest.type},
        'categories': [{'category': name, 'entries': entries} for name, entries in ranked.items()],
    })
