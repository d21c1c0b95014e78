# services/processor.py
import csv
import time
import logging
from pathlib import Path
from models.stats import FeedStats, RunStats
from services.parser import FeedReader
from services.writer import BatchWriteError

logger = logging.getLogger(__name__)


class FeedProcessor:
    """Streams feed files through the transformer into the batch writer"""

    def __init__(self, transformer, writer, progress_interval=10, clock=time.monotonic):
        self.transformer = transformer
        self.writer = writer
        self.progress_interval = progress_interval
        self.clock = clock

    def process_files(self, paths):
        """
        Process feed files one after another

        A file that cannot be read or written is logged and counted; the
        remaining files are still processed.

        Args:
            paths (list): Feed file paths

        Returns:
            RunStats: Per-feed and total counters
        """
        run_stats = RunStats()
        logger.info(f"Starting feed processing for {len(paths)} file(s)")
        self.writer.write_schema()

        for path in paths:
            run_stats.add_feed(self.process_file(path))

        self.writer.close()
        run_stats.files_generated = len(self.writer.files_written)
        run_stats.statements_written = self.writer.statements_written

        logger.info(
            f"Processing complete. {run_stats.accepted} products accepted, "
            f"{run_stats.dropped} dropped out of {run_stats.rows_read} rows"
        )
        logger.info(f"Created {run_stats.files_generated} import files in {self.writer.output_dir}")
        for feed in run_stats.feeds:
            if feed.failed:
                logger.warning(f"Feed with errors: {feed.source_name} ({feed.error})")

        return run_stats

    def process_file(self, path):
        """
        Process a single feed file

        Args:
            path (str or Path): Feed file path

        Returns:
            FeedStats: Counters for this file
        """
        path = Path(path)
        stats = FeedStats(path.name)
        logger.info(f"Processing feed {path.name}")

        try:
            self.writer.start_feed(path.name)
            self._stream(path, stats)
        except BatchWriteError as e:
            self._abort_feed(stats, e)
            return stats
        except (OSError, csv.Error, UnicodeError) as e:
            logger.error(f"Error reading feed {path.name} after {stats.rows_read} rows: {str(e)}")
            stats.mark_failed(e)

        # Products accepted before a read error are still written
        try:
            self.writer.end_feed()
        except BatchWriteError as e:
            self._abort_feed(stats, e)
            return stats

        logger.info(
            f"Finished {path.name}: {stats.accepted} accepted, {stats.dropped} dropped "
            f"of {stats.rows_read} rows"
        )
        return stats

    def _stream(self, path, stats):
        last_report = self.clock()

        for record in FeedReader(path):
            stats.rows_read += 1
            product = self.transformer.transform(record, path.name, stats)
            if product is not None:
                self.writer.add(product)

            now = self.clock()
            if now - last_report >= self.progress_interval:
                logger.info(f"{path.name}: {stats.rows_read} rows read, {stats.accepted} accepted...")
                last_report = now

    def _abort_feed(self, stats, error):
        logger.error(f"Batch generation for {stats.source_name} stopped: {str(error)}")
        stats.mark_failed(error)
        self.writer.abort_feed()
