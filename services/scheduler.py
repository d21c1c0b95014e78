# services/scheduler.py
import re
import random
import logging
from pathlib import Path
from config.settings import TABLE_NAME, CREATE_TABLE_FILE
from models.stats import ImportSummary

logger = logging.getLogger(__name__)


class ImportAbortedError(Exception):
    """Raised when an import run cannot proceed at all"""


def discover_batch_files(sql_dir, kind=TABLE_NAME):
    """
    List generated data files in import order

    Args:
        sql_dir (str or Path): Directory holding the generated SQL files
        kind (str): Artifact kind in the file name, e.g. "products"

    Returns:
        list: Paths sorted by their numeric prefix
    """
    pattern = re.compile(rf'^(\d{{3,}})-import-{re.escape(kind)}\.sql$')
    matches = []
    for path in Path(sql_dir).iterdir():
        match = pattern.match(path.name)
        if match and path.is_file():
            matches.append((int(match.group(1)), path))

    return [path for _, path in sorted(matches)]


def select_files(candidates, max_files, rng=None):
    """
    Pick a uniformly random subset of candidates

    Every ordering of the candidates is equally likely before the first
    max_files are taken, so repeated runs spread over the whole feed.

    Args:
        candidates (list): Candidate file paths
        max_files (int): Upper bound on the number of files to return
        rng (random.Random, optional): Random source; a fresh one if omitted

    Returns:
        list: Selected paths in execution order
    """
    rng = rng or random.Random()
    shuffled = list(candidates)

    # Fisher-Yates
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]

    return shuffled[:max(max_files, 0)]


class ImportScheduler:
    """Imports the table definition and a bounded random subset of data files"""

    def __init__(self, store, sql_dir, max_files, rng=None, kind=TABLE_NAME):
        self.store = store
        self.sql_dir = Path(sql_dir)
        self.max_files = max_files
        self.rng = rng
        self.kind = kind

    def run(self):
        """
        Run one import

        Returns:
            ImportSummary: Per-file results and totals

        Raises:
            ImportAbortedError: No data files exist or the table could not be created
        """
        if not self.sql_dir.is_dir():
            raise ImportAbortedError(f"SQL directory {self.sql_dir} does not exist")

        candidates = discover_batch_files(self.sql_dir, self.kind)
        if not candidates:
            raise ImportAbortedError(
                f"No import files found in {self.sql_dir}. Run the transform step first."
            )
        logger.info(f"Found {len(candidates)} total import files")

        selected = select_files(candidates, self.max_files, self.rng)
        logger.info(f"Selected {len(selected)} random files for import (quota {self.max_files})")
        summary = ImportSummary(candidates=len(candidates), selected=selected)

        logger.info("Step 1: Creating table and indexes (if they don't exist)")
        result = self.store.execute_sql_file(self.sql_dir / CREATE_TABLE_FILE)
        if not result.success:
            self._log_failure(result)
            raise ImportAbortedError(
                f"Failed to execute {CREATE_TABLE_FILE}, aborting import: {result.error}"
            )
        logger.info(f"Table ready after {result.duration:.1f}s")

        logger.info(f"Step 2: Importing {len(selected)} randomized data files")
        total = len(selected)
        for position, path in enumerate(selected, 1):
            logger.info(f"[{position}/{total}] Attempting import for {path.name}...")
            result = self.store.execute_sql_file(path)
            summary.record(result)

            if result.success:
                logger.info(f"[{position}/{total}] Imported {path.name} in {result.duration:.1f}s")
            else:
                self._log_failure(result)
                logger.warning(f"[{position}/{total}] Skipped file {path.name} due to error")

        logger.info(f"Import summary: {summary.succeeded} succeeded, {summary.failed} failed/skipped")
        return summary

    def _log_failure(self, result):
        logger.error(
            f"Import of {result.file_name} failed after {result.duration:.1f}s "
            f"(status code: {result.status_code}): {result.error}"
        )
