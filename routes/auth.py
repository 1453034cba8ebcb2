# routes/auth.py
# Маршруты для авторизации

from flask import Blueprint, render_template, request, redirect, url_for, session, flash, current_app
from extensions import db
from logic import log_activity
from models.user import User

auth_bp = Blueprint('auth', __name__)

@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    # Если пользователь уже вошел, перенаправляем его на главную страницу
    if 'user_id' in session:
        return redirect(url_for('main.dashboard'))

    if request.method == 'POST':
        user_code = (request.form.get('code') or '').strip()
        if not user_code:
            flash('Please enter your access code.', 'error')
            return redirect(url_for('auth.login'))

        user = User.query.filter_by(code=user_code).first()

        if not user:
            current_app.logger.warning('Failed login attempt with unknown code')
            flash('Invalid access code. Please try again.', 'error')
            return redirect(url_for('auth.login'))

        if user.role == 'judge' and user.status == 'inactive':
            flash('Your judge account has been deactivated.', 'error')
            return redirect(url_for('auth.login'))

        # Первый вход судьи: приглашение принято
        if user.role == 'judge' and user.status == 'pending':
            user.status = 'active'
            log_activity('judge', f'Judge {user.display_name} accepted the invitation', related_id=user.id)
            db.session.commit()
            current_app.logger.info('Judge %s activated on first login', user.id)

        session.clear()  # Очищаем старую сессию для безопасности
        session['user_id'] = user.id
        session['user_role'] = user.role
        flash('Logged in successfully!', 'success')
        return redirect(url_for('main.dashboard'))

    return render_template('login.html')


@auth_bp.route('/logout')
def logout():
    session.clear()
    flash('You have been logged out.', 'success')
    return redirect(url_for('auth.login'))
