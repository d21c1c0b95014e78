"""Shared test fixtures for the feed ingestor test suite."""

from datetime import datetime, timezone

import pytest

from models.stats import FeedStats, ImportResult

FEED_HEADER = [
    'ID', 'TITLE', 'DESCRIPTION', 'LINK', 'IMAGE_LINK', 'AVAILABILITY', 'PRICE',
    'SALE_PRICE', 'BRAND', 'PROGRAM_NAME', 'GOOGLE_PRODUCT_CATEGORY_NAME',
]


def make_record(**overrides):
    """Build a raw feed record keyed by feed column names."""
    record = {
        'ID': 'sku-1',
        'TITLE': 'Trail Running Shoe',
        'DESCRIPTION': 'Lightweight shoe',
        'LINK': 'https://example.com/p/1',
        'IMAGE_LINK': 'https://example.com/i/1.jpg',
        'AVAILABILITY': 'in stock',
        'PRICE': '89.99 USD',
        'SALE_PRICE': '',
        'BRAND': 'Acme',
        'PROGRAM_NAME': 'Acme Outdoors',
        'GOOGLE_PRODUCT_CATEGORY_NAME': 'Apparel > Shoes',
    }
    record.update(overrides)
    return record


def write_feed(path, rows, header=FEED_HEADER):
    """Write a tab-delimited feed file with a header row."""
    lines = ['\t'.join(header)]
    for row in rows:
        lines.append('\t'.join(row.get(column, '') for column in header))
    path.write_text('\n'.join(lines) + '\n', encoding='utf-8')
    return path


def valid_rows(count, prefix='sku'):
    return [make_record(ID=f'{prefix}-{i}', LINK=f'https://example.com/p/{i}') for i in range(count)]


class FakeStore:
    """Records execute_sql_file calls and fails for chosen file names."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []

    def execute_sql_file(self, path):
        self.calls.append(path.name)
        if path.name in self.failing:
            return ImportResult(path.name, False, 0.5, status_code='57014',
                                error='canceling statement due to statement timeout')
        return ImportResult(path.name, True, 0.1)


@pytest.fixture
def fixed_clock():
    moment = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)
    return lambda: moment


@pytest.fixture
def feed_stats():
    return FeedStats('feed.txt')


@pytest.fixture
def feed_dir(tmp_path):
    directory = tmp_path / 'feeds'
    directory.mkdir()
    return directory


@pytest.fixture
def output_dir(tmp_path):
    return tmp_path / 'sql-imports'
