# services/writer.py
import re
import logging
from decimal import Decimal
from pathlib import Path
from config.settings import ENCODING, TABLE_NAME, CREATE_TABLE_FILE
from models.product import COLUMNS, create_table_sql
from services.scheduler import discover_batch_files

logger = logging.getLogger(__name__)

CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')

# Columns left untouched when an existing row is replaced
_KEEP_ON_CONFLICT = {'id', 'created_at'}


class BatchWriteError(Exception):
    """Raised when a batch statement cannot be rendered or written"""


def sql_literal(value):
    """
    Render a value as a SQL literal

    Strings lose their control characters and become escape-string literals
    (E'...') with backslashes and single quotes doubled, so the database reads
    back exactly the original text.

    Args:
        value: str, Decimal, int, float or None

    Returns:
        str: SQL literal
    """
    if value is None:
        return 'NULL'
    if isinstance(value, (Decimal, int, float)) and not isinstance(value, bool):
        return str(value)

    text = CONTROL_CHARS.sub('', str(value))
    text = text.replace('\\', '\\\\').replace("'", "''")
    return f"E'{text}'"


def batch_file_name(index, kind=TABLE_NAME):
    """Name of the index-th data file, e.g. 007-import-products.sql"""
    return f"{index:03d}-import-{kind}.sql"


class BatchWriter:
    """Buffers products and writes them as bounded INSERT statements into numbered files"""

    def __init__(self, output_dir, rows_per_insert, inserts_per_file, table_name=TABLE_NAME):
        if rows_per_insert < 1 or inserts_per_file < 1:
            raise ValueError("rows_per_insert and inserts_per_file must be positive")

        self.output_dir = Path(output_dir)
        self.rows_per_insert = rows_per_insert
        self.inserts_per_file = inserts_per_file
        self.table_name = table_name

        self.buffer = []
        self.current_file = None
        self.current_path = None
        self.current_statements = 0
        self.current_rows = 0
        self._broken_path = None
        self.file_index = 0  # 0 is reserved for the table creation file

        self.files_written = []
        self.statements_written = 0
        self.rows_written = 0

        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._insert_header = self._build_insert_header()
        self._conflict_clause = self._build_conflict_clause()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self.close()
        else:
            self.abort_feed()

    def _build_insert_header(self):
        column_list = ',\n'.join(f"  {column}" for column in COLUMNS)
        return f"INSERT INTO {self.table_name} (\n{column_list}\n) VALUES\n"

    def _build_conflict_clause(self):
        updates = ',\n'.join(
            f"  {column} = EXCLUDED.{column}"
            for column in COLUMNS if column not in _KEEP_ON_CONFLICT
        )
        return f"ON CONFLICT (id) DO UPDATE SET\n{updates}"

    def write_schema(self):
        """
        Write the table and index creation file

        Data files left over from an earlier run are removed first, so the
        directory only ever holds this run's batches.

        Returns:
            Path: Path of the created file
        """
        self.remove_previous_batches()
        path = self.output_dir / CREATE_TABLE_FILE
        path.write_text(create_table_sql(self.table_name), encoding=ENCODING)
        logger.info(f"Wrote table definition to {path}")
        return path

    def remove_previous_batches(self):
        """
        Delete data files from earlier runs

        Returns:
            int: Number of files removed
        """
        stale = [
            path for path in discover_batch_files(self.output_dir, self.table_name)
            if path not in self.files_written
        ]
        for path in stale:
            path.unlink()
        if stale:
            logger.info(f"Removed {len(stale)} batch files from a previous run in {self.output_dir}")
        return len(stale)

    def start_feed(self, source_name):
        """Begin output for a new feed; it never shares a batch file with the previous one"""
        self.end_feed()
        logger.debug(f"Starting batch output for {source_name}")

    def end_feed(self):
        """Write the feed's remaining products and close its last file"""
        self.flush()
        self._close_file()

    def abort_feed(self):
        """
        Stop output for the current feed after a write failure

        Pending products are dropped. A file that failed while being written
        or closed is deleted so a truncated statement is never imported.
        """
        self.discard_pending()

        if self.current_file is not None:
            try:
                self.current_file.close()
            except OSError as e:
                logger.warning(f"Could not close {self.current_path.name}: {str(e)}")
                self._broken_path = self.current_path
            self.current_file = None

        if self._broken_path is not None:
            self._remove_broken_file(self._broken_path)
            self._broken_path = None

    def add(self, product):
        """Buffer one product, writing an INSERT once rows_per_insert are collected"""
        self.buffer.append(product)
        if len(self.buffer) >= self.rows_per_insert:
            self.flush()

    def flush(self):
        """Write the buffered products as one INSERT statement"""
        if not self.buffer:
            return

        try:
            statement = self.render_insert(self.buffer)
        except Exception as e:
            raise BatchWriteError(f"Could not render INSERT statement: {str(e)}") from e

        try:
            if self.current_file is None:
                self._open_next_file()
            self.current_file.write(statement)
        except OSError as e:
            self._broken_path = self.current_path
            raise BatchWriteError(f"Could not write to {self.current_path}: {str(e)}") from e

        self.rows_written += len(self.buffer)
        self.statements_written += 1
        self.current_rows += len(self.buffer)
        self.current_statements += 1
        self.buffer = []

        if self.current_statements >= self.inserts_per_file:
            self._close_file()

    def discard_pending(self):
        """Drop buffered products that were not written yet"""
        if self.buffer:
            logger.warning(f"Discarding {len(self.buffer)} unwritten products")
        self.buffer = []

    def close(self):
        """Write the final (possibly short) statement and close the open file"""
        self.flush()
        self._close_file()

    def render_insert(self, products):
        """
        Render one multi-row upsert statement

        Args:
            products (list): Product dictionaries

        Returns:
            str: SQL statement terminated by a blank line
        """
        rows = []
        for product in products:
            values = ', '.join(sql_literal(product.get(column)) for column in COLUMNS)
            rows.append(f"({values})")

        values_block = ',\n'.join(rows)
        return f"{self._insert_header}{values_block}\n{self._conflict_clause};\n\n"

    def _open_file(self, path):
        return open(path, 'w', encoding=ENCODING, newline='\n')

    def _open_next_file(self):
        self.file_index += 1
        self.current_path = self.output_dir / batch_file_name(self.file_index, self.table_name)
        self.current_statements = 0
        self.current_rows = 0
        logger.info(f"Creating file {self.current_path.name}")
        self.current_file = self._open_file(self.current_path)
        self.files_written.append(self.current_path)

    def _close_file(self):
        if self.current_file is None:
            return

        current_file, self.current_file = self.current_file, None
        try:
            current_file.close()
        except OSError as e:
            self._broken_path = self.current_path
            raise BatchWriteError(f"Could not close {self.current_path}: {str(e)}") from e
        logger.debug(f"Closed {self.current_path.name} ({self.current_statements} statements)")

    def _remove_broken_file(self, path):
        # Only the most recently opened file can be broken
        path.unlink(missing_ok=True)
        logger.warning(f"Removed incomplete batch file {path.name}")

        if path in self.files_written:
            self.files_written.remove(path)
            self.rows_written -= self.current_rows
            self.statements_written -= self.current_statements
        self.file_index -= 1
        self.current_statements = 0
        self.current_rows = 0
