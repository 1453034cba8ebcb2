# tests/conftest.py

import pytest

from app import create_app
from config import TestingConfig
from extensions import db
from models import User, Contest, AgeCategory, Entry


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    user = User(code='000001', name='Admin', role='admin', status='active')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def judge(app):
    user = User(code='200001', email='judge@example.com', name='Judge One', role='judge', status='active')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def login(client):
    def _login(user):
        return client.post('/login', data={'code': user.code})
    return _login


@pytest.fixture
def contest(app):
    contest = Contest(name='Cover Design 2025', type='cover', is_active=True)
    db.session.add(contest)
    db.session.commit()
    return contest


@pytest.fixture
def categories(app):
    items = [
        AgeCategory(name='8-12', min_age=8, max_age=12),
        AgeCategory(name='3-7', min_age=3, max_age=7),
        AgeCategory(name='13+', min_age=13, max_age=None),
    ]
    db.session.add_all(items)
    db.session.commit()
    return {c.name: c for c in items}


@pytest.fixture
def make_entry(app):
    def _make_entry(contest, number, name, age, category=None):
        entry = Entry(
            contest_id=contest.id,
            entry_number=number,
            participant_name=name,
            participant_age=age,
            age_category_id=category.id if category else None,
            front_image_path=f'entries/{number}_front.jpg',
        )
        db.session.add(entry)
        db.session.commit()
        return entry
    return _make_entry
