from app import create_app
from extensions import db
from logic import find_age_category, upsert_score
from models import User, Contest, AgeCategory, Entry, Score, Activity

# Создаем экземпляр приложения, чтобы получить контекст
app = create_app()

with app.app_context():
    db.create_all()

    # --- 1. ОЧИСТКА ДАННЫХ ---
    print("Clearing old data...")
    # Идем в обратном порядке зависимостей
    db.session.query(Score).delete()
    db.session.query(Activity).delete()
    db.session.query(Entry).delete()
    db.session.query(AgeCategory).delete()
    db.session.query(Contest).delete()
    db.session.query(User).delete()
    db.session.commit()

    # --- 2. СОЗДАНИЕ ДАННЫХ ---
    print("Adding demo data...")

    try:
        admin = User(code='000001', name='Administrator', role='admin', status='active')
        judge1 = User(code='200001', email='judge1@example.com', name='Judge One', role='judge', status='active')
        judge2 = User(code='200002', email='judge2@example.com', name='Judge Two', role='judge', status='pending')
        db.session.add_all([admin, judge1, judge2])

        cover = Contest(name='Cover Design 2025', type='cover', is_active=True)
        bookmark = Contest(name='Bookmark Design 2025', type='bookmark', is_active=True)
        db.session.add_all([cover, bookmark])

        categories = [
            AgeCategory(name='3-7', min_age=3, max_age=7),
            AgeCategory(name='8-12', min_age=8, max_age=12),
            AgeCategory(name='13-17', min_age=13, max_age=17),
            AgeCategory(name='18+', min_age=18, max_age=None),
        ]
        db.session.add_all(categories)
        db.session.commit()

        participants = [('Anna', 6), ('Boris', 9), ('Clara', 11), ('Dmitry', 15), ('Eva', 21)]
        entries = []
        for number, (name, age) in enumerate(participants, start=1):
            category = find_age_category(categories, age)
            entries.append(Entry(
                contest_id=cover.id,
                entry_number=number,
                participant_name=name,
                participant_age=age,
                age_category_id=category.id if category else None,
                front_image_path=f'entries/{number}_front.jpg',
            ))
        db.session.add_all(entries)
        db.session.commit()

        # Пример оценки
        upsert_score(entries[1].id, judge1.id, {'creativity': 8, 'execution': 6, 'impact': 10}, 'Lovely colours')
        db.session.commit()

        print("Demo data added!")
    except Exception as e:
        db.session.rollback()
        print(f"Failed to add demo data: {e}")
        raise
