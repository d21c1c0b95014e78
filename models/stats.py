# models/stats.py
"""Run context objects passed between pipeline stages instead of global counters"""


class FeedStats:
    """Counters for a single input feed file"""

    def __init__(self, source_name):
        self.source_name = source_name
        self.rows_read = 0
        self.accepted = 0
        self.dropped = 0
        self.failed = False
        self.error = None

    def mark_failed(self, error):
        self.failed = True
        self.error = str(error)

    def as_dict(self):
        return {
            'source': self.source_name,
            'rows_read': self.rows_read,
            'accepted': self.accepted,
            'dropped': self.dropped,
            'failed': self.failed,
            'error': self.error,
        }


class RunStats:
    """Aggregate counters for one transform run"""

    def __init__(self):
        self.feeds = []
        self.files_generated = 0
        self.statements_written = 0

    def add_feed(self, feed_stats):
        self.feeds.append(feed_stats)

    @property
    def rows_read(self):
        return sum(feed.rows_read for feed in self.feeds)

    @property
    def accepted(self):
        return sum(feed.accepted for feed in self.feeds)

    @property
    def dropped(self):
        return sum(feed.dropped for feed in self.feeds)

    @property
    def failed_feeds(self):
        return [feed.source_name for feed in self.feeds if feed.failed]

    def as_dict(self):
        return {
            'feeds': len(self.feeds),
            'failed_feeds': len(self.failed_feeds),
            'rows_read': self.rows_read,
            'accepted': self.accepted,
            'dropped': self.dropped,
            'files_generated': self.files_generated,
            'statements_written': self.statements_written,
        }


class ImportResult:
    """Outcome of executing one SQL file against the remote store"""

    def __init__(self, file_name, success, duration, status_code=None, error=None):
        self.file_name = file_name
        self.success = success
        self.duration = duration
        self.status_code = status_code
        self.error = error

    def __repr__(self):
        state = 'ok' if self.success else f'failed ({self.status_code})'
        return f"<ImportResult {self.file_name} {state} {self.duration:.1f}s>"


class ImportSummary:
    """Totals for one import run"""

    def __init__(self, candidates=0, selected=None):
        self.candidates = candidates
        self.selected = list(selected or [])
        self.results = []

    def record(self, result):
        self.results.append(result)

    @property
    def succeeded(self):
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self):
        return sum(1 for result in self.results if not result.success)

    def as_dict(self):
        return {
            'candidates': self.candidates,
            'selected': len(self.selected),
            'succeeded': self.succeeded,
            'failed': self.failed,
        }
