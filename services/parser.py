# services/parser.py
import csv
import codecs
import logging
from pathlib import Path
from config.settings import FILE_DELIMITER, ENCODING, CSV_FIELD_SIZE_LIMIT

logger = logging.getLogger(__name__)


class FeedReader:
    """Streams records out of a tab-delimited product feed"""

    def __init__(self, file_path, delimiter=FILE_DELIMITER):
        self.file_path = Path(file_path)
        self.delimiter = delimiter
        self.columns = []
        csv.field_size_limit(CSV_FIELD_SIZE_LIMIT)

    def detect_encoding(self):
        """
        Pick the text encoding from the byte order mark, if any

        Returns:
            str: Encoding name to open the file with
        """
        with open(self.file_path, 'rb') as f:
            first_bytes = f.read(4)

        if first_bytes.startswith(codecs.BOM_UTF8):
            return 'utf-8-sig'
        if first_bytes.startswith(codecs.BOM_UTF16_LE) or first_bytes.startswith(codecs.BOM_UTF16_BE):
            return 'utf-16'
        return ENCODING

    def __iter__(self):
        return self.records()

    def records(self):
        """
        Yield one record at a time; the whole file is never held in memory

        The header row defines the columns. Short rows read their missing
        trailing columns as empty strings and surplus values are ignored.

        Yields:
            dict: Column name -> raw string value
        """
        encoding = self.detect_encoding()
        logger.debug(f"Reading {self.file_path.name} as {encoding}")

        with open(self.file_path, 'r', encoding=encoding, newline='') as file:
            # Feeds are unquoted; a stray " is part of the value
            reader = csv.DictReader(file, delimiter=self.delimiter, restval='',
                                    quoting=csv.QUOTE_NONE)
            self.columns = [name.strip() for name in (reader.fieldnames or [])]
            reader.fieldnames = self.columns

            for row in reader:
                # Ragged rows put their extra values under the None key
                row.pop(None, None)
                yield row
