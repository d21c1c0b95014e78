# Main application script - feed-ingestor.py
import argparse
import random
import sys
import time
from datetime import datetime
from pathlib import Path

from config.settings import load_env, get_pipeline_config
from models.database import DatabaseManager
from services.fetcher import FeedFetcher
from services.processor import FeedProcessor
from services.scheduler import ImportScheduler
from services.transformer import RecordTransformer
from services.writer import BatchWriter
from utils.logger import setup_logger


def _option(value, default):
    """Command line value if given, even when it is 0, else the configured default"""
    return default if value is None else value


def run_fetch(args, config, logger):
    feed_path = FeedFetcher().fetch()
    logger.info(f"Feed ready at {feed_path}")
    return 0


def run_transform(args, config, logger):
    feeds = args.feeds
    if args.fetch:
        feeds = feeds + [FeedFetcher().fetch()]
    if not feeds:
        logger.error("No feed files given")
        return 1

    output_dir = Path(args.output_dir or config['output_dir'])
    writer = BatchWriter(
        output_dir,
        rows_per_insert=_option(args.rows_per_insert, config['rows_per_insert']),
        inserts_per_file=_option(args.inserts_per_file, config['inserts_per_file']),
    )
    processor = FeedProcessor(RecordTransformer(), writer, config['progress_interval'])
    stats = processor.process_files([Path(feed) for feed in feeds])

    logger.info(f"Statistics: {stats.as_dict()}")
    logger.info("To import, run: feed-ingestor.py import")

    # Some feeds failed but whatever was readable has been written
    return 0 if stats.accepted or not stats.failed_feeds else 1


def run_import(args, config, logger):
    sql_dir = Path(args.output_dir or config['output_dir'])
    max_files = _option(args.max_files, config['max_files_per_run'])
    rng = random.Random(args.seed) if args.seed is not None else None

    with DatabaseManager() as db_manager:
        scheduler = ImportScheduler(db_manager, sql_dir, max_files, rng=rng)
        summary = scheduler.run()

    logger.info(f"Statistics: {summary.as_dict()}")
    logger.info("Check the final product count in the database.")
    return 0


def main():
    # Set up argument parser
    parser = argparse.ArgumentParser(description='Product feed ingestion and batch import')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='INFO', help='Set logging level')
    parser.add_argument('--output-dir', help='Directory for generated SQL files')
    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('fetch', help='Download and extract the latest feed archive')

    transform_parser = subparsers.add_parser('transform', help='Convert feed files into SQL batch files')
    transform_parser.add_argument('feeds', nargs='*', help='Tab-delimited feed files')
    transform_parser.add_argument('--fetch', action='store_true',
                                  help='Download the latest feed before transforming')
    transform_parser.add_argument('--rows-per-insert', type=int)
    transform_parser.add_argument('--inserts-per-file', type=int)

    import_parser = subparsers.add_parser('import', help='Import a random subset of SQL batch files')
    import_parser.add_argument('--max-files', type=int, help='Number of data files to import this run')
    import_parser.add_argument('--seed', type=int, help='Seed for reproducible file selection')

    args = parser.parse_args()

    # Load environment variables
    load_env()
    config = get_pipeline_config()

    # Set up logging
    log_file = f"ingestor_{args.command}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"
    logger = setup_logger(args.log_level, log_file)

    commands = {
        'fetch': run_fetch,
        'transform': run_transform,
        'import': run_import,
    }

    logger.info(f"Starting {args.command}")
    start_time = time.time()

    try:
        status = commands[args.command](args, config, logger)
    except Exception as e:
        logger.error(f"{args.command.capitalize()} failed: {str(e)}", exc_info=True)
        return 1

    elapsed_time = time.time() - start_time
    logger.info(f"{args.command.capitalize()} completed in {elapsed_time:.2f} seconds")
    return status


if __name__ == "__main__":
    sys.exit(main())
