"""Tests for record validation, field mapping and price parsing."""

import logging
from decimal import Decimal

import pytest

from conftest import make_record
from services.transformer import RecordTransformer, parse_price


class TestParsePrice:
    """Price and currency extraction from raw feed values."""

    @pytest.mark.parametrize('raw, expected', [
        ('19.99 USD', (Decimal('19.99'), 'USD')),
        ('5', (Decimal('5'), None)),
        ('0 USD', (Decimal('0'), 'USD')),
        ('not-a-price', (None, None)),
        ('', (None, None)),
        ('12.50EUR', (Decimal('12.50'), 'EUR')),
        ('1.2.3 USD', (None, 'USD')),
        ('. GBP', (None, 'GBP')),
    ])
    def test_parse_price(self, raw, expected):
        assert parse_price(raw) == expected

    def test_lowercase_currency_is_ignored(self):
        assert parse_price('10 usd') == (Decimal('10'), None)

    def test_price_is_never_negative(self):
        numeric_price, _ = parse_price('-4.00 USD')
        assert numeric_price == Decimal('4.00')

    def test_none_input(self):
        assert parse_price(None) == (None, None)


class TestRecordTransformer:
    """Mapping of feed records onto products."""

    def test_maps_feed_columns(self, fixed_clock, feed_stats):
        record = make_record(PROGRAM_URL='https://acme.example', LAST_UPDATED='2026-10-01')
        product = RecordTransformer(clock=fixed_clock).transform(record, 'feed.txt', feed_stats)

        assert product['id'] == 'sku-1'
        assert product['title'] == 'Trail Running Shoe'
        assert product['advertiser_name'] == 'Acme Outdoors'
        assert product['advertiser_url'] == 'https://acme.example'
        assert product['last_updated_feed'] == '2026-10-01'
        assert product['google_product_category_name'] == 'Apparel > Shoes'
        assert product['numeric_price'] == Decimal('89.99')
        assert product['currency'] == 'USD'
        assert feed_stats.accepted == 1

    def test_timestamps_come_from_clock(self, fixed_clock, feed_stats):
        product = RecordTransformer(clock=fixed_clock).transform(make_record(), 'feed.txt', feed_stats)

        assert product['created_at'] == '2026-10-18T12:00:00+00:00'
        assert product['updated_at'] == product['created_at']

    def test_values_are_trimmed_and_empty_becomes_none(self, feed_stats):
        record = make_record(TITLE='  Padded title  ', BRAND='   ')
        product = RecordTransformer().transform(record, 'feed.txt', feed_stats)

        assert product['title'] == 'Padded title'
        assert product['brand'] is None
        assert product['gtin'] is None

    def test_sale_price_used_when_price_missing(self, feed_stats):
        record = make_record(PRICE='', SALE_PRICE='49.00 CAD')
        product = RecordTransformer().transform(record, 'feed.txt', feed_stats)

        assert product['price'] is None
        assert product['sale_price'] == '49.00 CAD'
        assert product['numeric_price'] == Decimal('49.00')
        assert product['currency'] == 'CAD'

    def test_default_price_when_both_missing(self, feed_stats):
        record = make_record(PRICE='', SALE_PRICE='')
        product = RecordTransformer().transform(record, 'feed.txt', feed_stats)

        assert product['numeric_price'] == Decimal('0')
        assert product['currency'] == 'USD'

    def test_unparseable_price_gives_null(self, feed_stats):
        product = RecordTransformer().transform(make_record(PRICE='call us'), 'feed.txt', feed_stats)

        assert product['price'] == 'call us'
        assert product['numeric_price'] is None
        assert product['currency'] is None

    def test_unknown_columns_ignored(self, feed_stats):
        record = make_record(SHIPPING_WEIGHT='2 kg')
        product = RecordTransformer().transform(record, 'feed.txt', feed_stats)

        assert 'shipping_weight' not in product
        assert 'SHIPPING_WEIGHT' not in product


class TestRequiredFields:
    """Records missing id, title or link are dropped."""

    @pytest.mark.parametrize('column', ['ID', 'TITLE', 'LINK'])
    def test_missing_required_field_drops_record(self, column, feed_stats):
        record = make_record(**{column: ''})
        product = RecordTransformer().transform(record, 'feed.txt', feed_stats)

        assert product is None
        assert feed_stats.dropped == 1
        assert feed_stats.accepted == 0

    def test_whitespace_only_counts_as_missing(self, feed_stats):
        product = RecordTransformer().transform(make_record(LINK='   '), 'feed.txt', feed_stats)

        assert product is None
        assert feed_stats.dropped == 1

    def test_absent_column_counts_as_missing(self, feed_stats):
        record = make_record()
        del record['TITLE']

        assert RecordTransformer().transform(record, 'feed.txt', feed_stats) is None

    def test_drop_is_logged_with_file_and_fields(self, feed_stats, caplog):
        record = make_record(ID='', LINK='')
        with caplog.at_level(logging.WARNING):
            RecordTransformer().transform(record, 'shopping-feed.txt', feed_stats)

        message = caplog.records[-1].getMessage()
        assert 'shopping-feed.txt' in message
        assert 'id, link' in message
        assert 'N/A' in message

    def test_each_drop_counts_once(self, feed_stats):
        transformer = RecordTransformer()
        for _ in range(3):
            transformer.transform(make_record(TITLE=''), 'feed.txt', feed_stats)

        assert feed_stats.dropped == 3
