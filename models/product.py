# models/product.py
"""Product table layout shared by the batch writer and the search service"""

# Column order of the products table and of every generated INSERT
COLUMNS = [
    'id', 'title', 'description', 'link', 'image_link',
    'availability', 'price', 'sale_price', 'brand', 'gtin',
    'mpn', 'google_product_category', 'google_product_category_name', 'product_type', 'condition',
    'adult', 'item_group_id', 'advertiser_name', 'advertiser_url', 'catalog_name',
    'last_updated_feed', 'currency', 'numeric_price', 'created_at', 'updated_at'
]

# (index name suffix, column)
INDEXES = [
    ('brand', 'brand'),
    ('advertiser', 'advertiser_name'),
    ('category', 'google_product_category'),
    ('price', 'numeric_price'),
]

_COLUMN_TYPES = {
    'id': 'TEXT PRIMARY KEY',
    'title': 'TEXT NOT NULL',
    'link': 'TEXT NOT NULL',
    'numeric_price': 'REAL',
}


def create_table_sql(table_name):
    """
    Build the CREATE TABLE and CREATE INDEX statements for the products table

    Args:
        table_name (str): Name of the target table

    Returns:
        str: SQL script, safe to run repeatedly
    """
    column_lines = ',\n'.join(
        f"  {column} {_COLUMN_TYPES.get(column, 'TEXT')}" for column in COLUMNS
    )
    statements = [f"CREATE TABLE IF NOT EXISTS {table_name} (\n{column_lines}\n);"]

    statements.append("")
    statements.append("-- Add indexes for common queries")
    for suffix, column in INDEXES:
        statements.append(
            f"CREATE INDEX IF NOT EXISTS idx_{table_name}_{suffix} ON {table_name}({column});"
        )

    return '\n'.join(statements) + '\n'


def new_product(**fields):
    """Create a product dictionary with every column present, defaulting to None"""
    product = dict.fromkeys(COLUMNS)
    unknown = set(fields) - set(COLUMNS)
    if unknown:
        raise ValueError(f"Unknown product field(s): {', '.join(sorted(unknown))}")
    product.update(fields)
    return product
