# services/transformer.py
import re
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from config.settings import FIELD_MAP, REQUIRED_FIELDS, DEFAULT_PRICE
from models.product import new_product

logger = logging.getLogger(__name__)

# Leading quantity with an optional 3-letter currency code, e.g. "19.99 USD"
PRICE_PATTERN = re.compile(r'([0-9.]+)\s*([A-Z]{3})?')


def parse_price(value):
    """
    Extract a numeric price and currency code from a raw feed price

    This is a best-effort heuristic over unstructured upstream data; anything
    that does not look like "<number> [CUR]" yields no numeric price.

    Args:
        value (str): Raw price string such as "19.99 USD"

    Returns:
        tuple: (Decimal or None, str or None)
    """
    match = PRICE_PATTERN.search(value or '')
    if not match:
        return None, None

    try:
        numeric_price = Decimal(match.group(1))
    except InvalidOperation:
        numeric_price = None

    return numeric_price, match.group(2)


def _utc_now():
    return datetime.now(timezone.utc)


class RecordTransformer:
    """Maps raw feed records onto validated product dictionaries"""

    def __init__(self, clock=None):
        self.clock = clock or _utc_now

    def transform(self, record, source_name, stats):
        """
        Transform one raw record

        Args:
            record (dict): Feed column -> raw value
            source_name (str): Name of the feed file the record came from
            stats (FeedStats): Counters for that feed

        Returns:
            dict or None: Product dictionary, or None if the record was dropped
        """
        values = {
            field: (record.get(column) or '').strip()
            for field, column in FIELD_MAP.items()
        }

        missing = [field for field in REQUIRED_FIELDS if not values[field]]
        if missing:
            stats.dropped += 1
            logger.warning(
                f"{source_name}: skipping record due to missing required field(s): "
                f"{', '.join(missing)}. Record ID: {values['id'] or 'N/A'}"
            )
            return None

        price_source = values['price'] or values['sale_price'] or DEFAULT_PRICE
        numeric_price, currency = parse_price(price_source)

        timestamp = self.clock().isoformat()

        # Empty optional columns are stored as NULL
        fields = {field: value or None for field, value in values.items()}
        product = new_product(
            currency=currency,
            numeric_price=numeric_price,
            created_at=timestamp,
            updated_at=timestamp,
            **fields
        )

        stats.accepted += 1
        return product
