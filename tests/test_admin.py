import pytest

from extensions import db
from logic import upsert_score
from models import Activity, AgeCategory, Contest, Entry, Score, User
from scoring import CRITERIA


@pytest.fixture
def logged_admin(client, admin, login):
    login(admin)
    return admin


def test_dashboard_counts_and_activity(client, logged_admin, contest, make_entry):
    make_entry(contest, 1, 'Anna', 6)
    db.session.add(Activity(type='entry', message='Entry #1 by Anna added'))
    db.session.commit()

    response = client.get('/admin/')

    assert response.status_code == 200
    assert b'Entries: 1' in response.data
    assert b'Active contests: 1' in response.data
    assert b'Entry #1 by Anna added' in response.data
    assert b'seconds ago' in response.data


def test_create_contest_logs_activity(client, logged_admin):
    response = client.post('/admin/contests', data={'name': 'Bookmarks', 'type': 'bookmark'})

    assert response.status_code == 302
    contest = Contest.query.filter_by(name='Bookmarks').one()
    assert contest.is_active is True
    assert Activity.query.filter_by(type='contest', related_id=contest.id).count() == 1


def test_duplicate_contest_is_rejected(client, logged_admin, contest):
    response = client.post('/admin/contests', data={'name': contest.name, 'type': 'cover'}, follow_redirects=True)

    assert b'already exists' in response.data
    assert Contest.query.count() == 1


def test_invalid_contest_type_is_rejected(client, logged_admin):
    client.post('/admin/contests', data={'name': 'Posters', 'type': 'poster'})
    assert Contest.query.count() == 0


def test_toggle_contest(client, logged_admin, contest):
    client.post(f'/admin/contest/{contest.id}/toggle')

    db.session.expire_all()
    assert db.session.get(Contest, contest.id).is_active is False


def test_delete_contest_removes_entries_and_scores(client, logged_admin, contest, judge, make_entry):
    entry = make_entry(contest, 1, 'Anna', 6)
    upsert_score(entry.id, judge.id, {})
    db.session.commit()

    client.post(f'/admin/contest/{contest.id}/delete')

    db.session.expire_all()
    assert Contest.query.count() == 0
    assert Entry.query.count() == 0
    assert Score.query.count() == 0


def test_create_age_category(client, logged_admin):
    client.post('/admin/age_categories', data={'name': '18+', 'min_age': '18', 'max_age': ''})

    category = AgeCategory.query.one()
    assert category.min_age == 18
    assert category.max_age is None


@pytest.mark.parametrize('data, message', [
    ({'name': 'Bad', 'min_age': '10', 'max_age': '5'}, b'cannot be lower'),
    ({'name': 'Bad', 'min_age': 'ten', 'max_age': ''}, b'whole numbers'),
    ({'name': '', 'min_age': '1', 'max_age': ''}, b'name is required'),
])
def test_invalid_age_category(client, logged_admin, data, message):
    response = client.post('/admin/age_categories', data=data, follow_redirects=True)

    assert message in response.data
    assert AgeCategory.query.count() == 0


def test_delete_age_category_keeps_entries(client, logged_admin, contest, categories, make_entry):
    entry = make_entry(contest, 1, 'Anna', 6, categories['3-7'])

    client.post(f'/admin/age_category/{categories["3-7"].id}/delete')

    db.session.expire_all()
    kept = db.session.get(Entry, entry.id)
    assert kept is not None
    assert kept.age_category_id is None


def test_new_entry_gets_number_and_category(client, logged_admin, contest, categories, make_entry):
    make_entry(contest, 7, 'Existing', 6)

    response = client.post('/admin/entries/new', data={
        'contest_id': str(contest.id),
        'participant_name': 'Boris',
        'participant_age': '9',
        'age_category_id': '',
        'artist_statement': 'A dancing city',
        'front_image_path': 'entries/boris_front.jpg',
        'back_image_path': '',
    })

    assert response.status_code == 302
    entry = Entry.query.filter_by(participant_name='Boris').one()
    assert entry.entry_number == 8
    assert entry.age_category_id == categories['8-12'].id
    assert entry.back_image_path is None
    assert Activity.query.filter_by(type='entry', related_id=entry.id).count() == 1


def test_new_entry_requires_front_image(client, logged_admin, contest):
    response = client.post('/admin/entries/new', data={
        'contest_id': str(contest.id),
        'participant_name': 'Boris',
        'participant_age': '9',
        'front_image_path': '',
    })

    assert response.status_code == 200
    assert b'Front image is required' in response.data
    assert Entry.query.count() == 0


def test_new_entry_rejects_unknown_age_category(client, logged_admin, contest, categories):
    response = client.post('/admin/entries/new', data={
        'contest_id': str(contest.id),
        'participant_name': 'Boris',
        'participant_age': '9',
        'age_category_id': '999',
        'front_image_path': 'entries/boris_front.jpg',
    })

    assert response.status_code == 200
    assert b'Age category not found' in response.data
    assert Entry.query.count() == 0


def test_edit_entry_rejects_unknown_age_category(client, logged_admin, contest, categories, make_entry):
    entry = make_entry(contest, 1, 'Anna', 6, categories['3-7'])

    response = client.post(f'/admin/entry/{entry.id}/edit', data={
        'contest_id': str(contest.id),
        'participant_name': 'Anna',
        'participant_age': '6',
        'age_category_id': '999',
        'front_image_path': entry.front_image_path,
    }, follow_redirects=True)

    assert b'Age category not found' in response.data
    db.session.expire_all()
    assert db.session.get(Entry, entry.id).age_category_id == categories['3-7'].id


def test_edit_entry_corrects_age_category(client, logged_admin, contest, categories, make_entry):
    entry = make_entry(contest, 1, 'Anna', 6, categories['3-7'])

    client.post(f'/admin/entry/{entry.id}/edit', data={
        'contest_id': str(contest.id),
        'participant_name': 'Anna K.',
        'participant_age': '14',
        'age_category_id': '',
        'front_image_path': entry.front_image_path,
    })

    db.session.expire_all()
    updated = db.session.get(Entry, entry.id)
    assert updated.participant_name == 'Anna K.'
    assert updated.age_category_id == categories['13+'].id
    assert updated.entry_number == 1


def test_entry_list_and_detail(client, logged_admin, contest, judge, categories, make_entry):
    entry = make_entry(contest, 1, 'Anna', 6, categories['3-7'])
    upsert_score(entry.id, judge.id, {key: 6 for key, _, _ in CRITERIA}, 'Careful linework')
    db.session.commit()

    listing = client.get(f'/admin/entries?contest_id={contest.id}')
    detail = client.get(f'/admin/entry/{entry.id}')

    assert b'Anna' in listing.data
    assert detail.status_code == 200
    assert b'Careful linework' in detail.data
    assert b'6.0/10' in detail.data


def test_missing_entry_is_404(client, logged_admin):
    assert client.get('/admin/entry/999').status_code == 404


def test_delete_entry(client, logged_admin, contest, make_entry):
    entry = make_entry(contest, 1, 'Anna', 6)
    client.post(f'/admin/entry/{entry.id}/delete')
    assert Entry.query.count() == 0


def test_invite_judge(client, logged_admin):
    client.post('/admin/judges', data={'email': 'Judge@Example.com', 'name': 'Maria'})

    judge = User.query.filter_by(role='judge').one()
    assert judge.email == 'judge@example.com'
    assert judge.status == 'pending'
    assert len(judge.code) == 6 and judge.code.isdigit()
    assert Activity.query.filter_by(type='judge', related_id=judge.id).count() == 1


def test_invite_existing_email_is_rejected(client, logged_admin, judge):
    response = client.post('/admin/judges', data={'email': judge.email}, follow_redirects=True)

    assert b'already exists' in response.data
    assert User.query.filter_by(role='judge').count() == 1


def test_reset_code_and_status(client, logged_admin, judge):
    old_code = judge.code

    client.post(f'/admin/judge/{judge.id}/reset_code')
    client.post(f'/admin/judge/{judge.id}/status', data={'status': 'inactive'})

    db.session.expire_all()
    updated = db.session.get(User, judge.id)
    assert updated.code != old_code
    assert updated.status == 'inactive'


def test_delete_judge_removes_scores(client, logged_admin, contest, judge, make_entry):
    entry = make_entry(contest, 1, 'Anna', 6)
    upsert_score(entry.id, judge.id, {})
    db.session.commit()

    client.post(f'/admin/judge/{judge.id}/delete')

    db.session.expire_all()
    assert User.query.filter_by(role='judge').count() == 0
    assert Score.query.count() == 0


def test_admin_cannot_change_own_role(client, logged_admin):
    response = client.post(f'/admin/user/{logged_admin.id}/role', data={'role': 'judge'}, follow_redirects=True)

    assert b'cannot change your own role' in response.data
    db.session.expire_all()
    assert db.session.get(User, logged_admin.id).role == 'admin'


def test_update_user_role(client, logged_admin, judge):
    client.post(f'/admin/user/{judge.id}/role', data={'role': 'admin'})

    db.session.expire_all()
    assert db.session.get(User, judge.id).role == 'admin'


def _seed_results(contest, judge, categories, make_entry):
    zeros = {key: 0 for key, _, _ in CRITERIA}
    anna = make_entry(contest, 1, 'Anna', 6, categories['3-7'])
    boris = make_entry(contest, 2, 'Boris', 5, categories['3-7'])
    clara = make_entry(contest, 3, 'Clara', 9, categories['8-12'])
    upsert_score(anna.id, judge.id, dict(zeros, creativity=4))
    upsert_score(boris.id, judge.id, dict(zeros, creativity=8, execution=6, impact=10))
    upsert_score(clara.id, judge.id, dict(zeros, composition=7))
    db.session.commit()


def test_results_overview(client, logged_admin, contest, judge, categories, make_entry):
    _seed_results(contest, judge, categories, make_entry)

    response = client.get('/admin/results')

    assert response.status_code == 200
    assert b'Judging Complete' in response.data
    assert b'3 / 3 entries' in response.data


def test_contest_results_are_ranked(client, logged_admin, contest, judge, categories, make_entry):
    _seed_results(contest, judge, categories, make_entry)

    response = client.get(f'/admin/results/{contest.id}')

    assert response.status_code == 200
    page = response.data
    assert page.index(b'Boris') < page.index(b'Anna')
    assert b'Age Category: 3-7' in page
    assert b'8.0' in page


def test_contest_results_view_switch(client, logged_admin, contest, judge, categories, make_entry):
    _seed_results(contest, judge, categories, make_entry)

    response = client.get(f'/admin/results/{contest.id}?view=design')

    assert b'Color Usage' in response.data
    assert b'Creativity' not in response.data


def test_export_results_json(client, logged_admin, contest, judge, categories, make_entry):
    _seed_results(contest, judge, categories, make_entry)

    payload = client.get(f'/admin/results/{contest.id}/export.json').get_json()

    assert payload['contest']['name'] == contest.name
    assert [group['category'] for group in payload['categories']] == ['3-7', '8-12']
    young = payload['categories'][0]['entries']
    assert [e['participant_name'] for e in young] == ['Boris', 'Anna']
    assert [e['rank'] for e in young] == [1, 2]
    assert young[0]['scores']['total'] == '8.0'
    assert young[0]['judge_count'] == 1
    assert payload['categories'][1]['entries'][0]['scores']['composition'] == '7.0'
