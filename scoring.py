# scoring.py
# Подсчёт итоговых оценок и ранжирование работ.
# Здесь нет обращений к базе: функции получают уже загруженные строки оценок
# (модели Score или словари с теми же именами колонок) и ничего не меняют.

import logging
from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal

logger = logging.getLogger(__name__)

# (ключ в результате, колонка в таблице scores, подпись для шаблонов)
CRITERIA = (
    ('creativity', 'creativity_score', 'Creativity'),
    ('execution', 'execution_score', 'Execution'),
    ('impact', 'impact_score', 'Impact'),
    ('theme_interpretation', 'theme_interpretation_score', 'Theme Interpretation'),
    ('movement_representation', 'movement_representation_score', 'Movement Representation'),
    ('composition', 'composition_score', 'Composition'),
    ('color_usage', 'color_usage_score', 'Color Usage'),
    ('visual_focus', 'visual_focus_score', 'Visual Focus'),
    ('storytelling', 'storytelling_score', 'Storytelling'),
    ('technique_mastery', 'technique_mastery_score', 'Technique Mastery'),
)

CRITERION_LABELS = {key: label for key, _, label in CRITERIA}

# Вкладки на странице результатов
CRITERIA_GROUPS = {
    'simplified': ('creativity', 'execution', 'impact'),
    'detailed': ('creativity', 'execution', 'impact'),
    'thematic': ('theme_interpretation', 'movement_representation'),
    'design': ('composition', 'color_usage', 'visual_focus'),
    'additional': ('storytelling', 'technique_mastery'),
}

# Делитель, если ни один критерий не набрал баллов. Остался от времён,
# когда критериев было три; при пустых данных итог всё равно 0.
FALLBACK_DIVISOR = 3

UNKNOWN_CATEGORY = 'Unknown'

ENTRY_FIELDS = (
    'id',
    'contest_id',
    'entry_number',
    'participant_name',
    'participant_age',
    'age_category_id',
    'artist_statement',
    'front_image_path',
    'back_image_path',
)


def _field(row, name):
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


def format_score(value):
    """
    Одна цифра после запятой, строкой - как в таблицах результатов.
    Половины округляются вверх (6.25 -> '6.3'). Decimal(float) берёт точное
    двоичное значение, поэтому 0.15 остаётся '0.1'.
    """
    return str(Decimal(value).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


def aggregate_scores(rows):
    """
    Средние по каждому критерию и общий балл для одной работы.

    Среднее по критерию = сумма оценок всех судей / число судей (0 для пустых
    значений). Общий балл - среднее только по тем критериям, у которых
    среднее больше нуля.
    """
    judge_count = len(rows)
    divisor = judge_count or 1

    means = {}
    for key, column, _ in CRITERIA:
        means[key] = sum(_field(row, column) or 0 for row in rows) / divisor

    present = [value for value in means.values() if value > 0]
    total = sum(present) / (len(present) or FALLBACK_DIVISOR)

    comments = [c for c in (_field(row, 'judge_comments') for row in rows) if c]

    return {
        'judge_count': judge_count,
        'means': means,
        'total': total,
        'comments': comments,
    }


def entry_fields(entry):
    if isinstance(entry, dict):
        return dict(entry)
    return {name: getattr(entry, name, None) for name in ENTRY_FIELDS}


def build_entry_result(entry, rows, category=None):
    aggregated = aggregate_scores(rows)

    scores = {key: format_score(value) for key, value in aggregated['means'].items()}
    scores['total'] = format_score(aggregated['total'])

    result = entry_fields(entry)
    result.update({
        'category': category or UNKNOWN_CATEGORY,
        'judge_count': aggregated['judge_count'],
        'comments': aggregated['comments'],
        'scores': scores,
    })
    return result


def aggregate_entries(entries, rows, category_names):
    """
    Результаты для набора работ.

    rows - все оценки этих работ одним списком, category_names - словарь
    {age_category_id: название}. Порядок результатов совпадает с entries.
    """
    rows_by_entry = defaultdict(list)
    for row in rows:
        rows_by_entry[_field(row, 'entry_id')].append(row)

    results = []
    for entry in entries:
        entry_id = _field(entry, 'id')
        category = category_names.get(_field(entry, 'age_category_id'))
        results.append(build_entry_result(entry, rows_by_entry.get(entry_id, []), category))

    logger.debug('Aggregated %d entries from %d score rows', len(results), len(rows))
    return results


def rank_by_category(results):
    """
    Группирует результаты по возрастной категории и сортирует каждую группу
    по убыванию общего балла. Сортировка устойчивая: при равенстве остаётся
    исходный порядок. Каждому результату добавляется место (rank), начиная с 1.
    """
    grouped = {}
    for result in results:
        grouped.setdefault(result['category'], []).append(result)

    ranked = {}
    for category, items in grouped.items():
        ordered = sorted(items, key=lambda r: float(r['scores']['total']), reverse=True)
        ranked[category] = [dict(item, rank=place) for place, item in enumerate(ordered, start=1)]
    return ranked
