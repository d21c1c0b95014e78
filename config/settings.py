# config/settings.py
import os
from pathlib import Path
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent


def load_env():
    """Load environment variables from .env file"""
    env_path = PROJECT_ROOT / '.env'
    load_dotenv(dotenv_path=env_path)


# Database connection settings
def get_db_config():
    """Get database connection configuration from environment variables"""
    return {
        'ssh_host': os.getenv('SSH_HOST'),
        'ssh_port': int(os.getenv('SSH_PORT', 22)),
        'ssh_username': os.getenv('SSH_USERNAME'),
        'ssh_password': os.getenv('SSH_PASSWORD'),
        'postgres_hostname': os.getenv('POSTGRES_HOSTNAME', 'localhost'),
        'postgres_port': int(os.getenv('POSTGRES_PORT', 5432)),
        'db_name': os.getenv('DB_NAME'),
        'db_user': os.getenv('DB_USER'),
        'db_password': os.getenv('DB_PASSWORD'),
        'statement_timeout_ms': int(os.getenv('STATEMENT_TIMEOUT_MS', 30000)),
        'connect_timeout': int(os.getenv('CONNECT_TIMEOUT', 10)),
    }


# Batch generation and import settings
def get_pipeline_config():
    """Get batch sizing, quota and progress settings from environment variables"""
    return {
        'output_dir': Path(os.getenv('OUTPUT_DIR', PROJECT_ROOT / 'sql-imports')),
        'rows_per_insert': int(os.getenv('ROWS_PER_INSERT', 50)),
        'inserts_per_file': int(os.getenv('INSERTS_PER_FILE', 20)),
        'max_files_per_run': int(os.getenv('MAX_FILES_PER_RUN', 50)),
        'progress_interval': float(os.getenv('PROGRESS_INTERVAL', 10)),
    }


# Feed source settings
def get_sftp_config():
    """Get SFTP feed source configuration from environment variables"""
    return {
        'host': os.getenv('CJ_SFTP_HOST'),
        'port': int(os.getenv('CJ_SFTP_PORT', 22)),
        'username': os.getenv('CJ_SFTP_USER'),
        'password': os.getenv('CJ_SFTP_PASS'),
        'remote_path': os.getenv('CJ_SFTP_REMOTE_PATH'),
        'download_dir': Path(os.getenv('DOWNLOAD_DIR', PROJECT_ROOT / 'feed-download')),
    }


# File processing settings
FILE_DELIMITER = '\t'
ENCODING = 'utf-8'
CSV_FIELD_SIZE_LIMIT = 10 * 1024 * 1024  # Product descriptions can be very long

FEED_FILE_PREFIX = 'AllAdvertisersDailyHTTP-shopping-'
FEED_FILE_SUFFIX = '.zip'
FEED_MEMBER_SUFFIX = '-shopping.txt'

# Output artifacts
TABLE_NAME = 'products'
CREATE_TABLE_FILE = '000-create-table.sql'

# Used when neither PRICE nor SALE_PRICE is present
DEFAULT_PRICE = '0 USD'

# Product field -> feed column
FIELD_MAP = {
    'id': 'ID',
    'title': 'TITLE',
    'description': 'DESCRIPTION',
    'link': 'LINK',
    'image_link': 'IMAGE_LINK',
    'availability': 'AVAILABILITY',
    'price': 'PRICE',
    'sale_price': 'SALE_PRICE',
    'brand': 'BRAND',
    'gtin': 'GTIN',
    'mpn': 'MPN',
    'google_product_category': 'GOOGLE_PRODUCT_CATEGORY',
    'google_product_category_name': 'GOOGLE_PRODUCT_CATEGORY_NAME',
    'product_type': 'PRODUCT_TYPE',
    'condition': 'CONDITION',
    'adult': 'ADULT',
    'item_group_id': 'ITEM_GROUP_ID',
    'advertiser_name': 'PROGRAM_NAME',
    'advertiser_url': 'PROGRAM_URL',
    'catalog_name': 'CATALOG_NAME',
    'last_updated_feed': 'LAST_UPDATED',
}

REQUIRED_FIELDS = ['id', 'title', 'link']
