# models/database.py
import time
import logging
import psycopg2
import sshtunnel
from contextlib import contextmanager
from pathlib import Path
from psycopg2.pool import SimpleConnectionPool

from config.settings import get_db_config, ENCODING
from models.stats import ImportResult

# Configure SSH tunnel timeout
sshtunnel.SSH_TIMEOUT = 30.0
sshtunnel.TUNNEL_TIMEOUT = 30.0

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Executes SQL files against the remote products database"""

    def __init__(self, db_config=None):
        self.db_config = db_config or get_db_config()
        self.pool = None
        self.tunnel = None
        self._setup_connection()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _setup_connection(self):
        """Set up the optional SSH tunnel and the connection pool"""
        try:
            host = self.db_config['postgres_hostname']
            port = self.db_config['postgres_port']

            if self.db_config.get('ssh_username'):
                if not self.db_config.get('ssh_host'):
                    raise ValueError("SSH_HOST must be set when SSH_USERNAME is given")
                self.tunnel = sshtunnel.SSHTunnelForwarder(
                    (self.db_config['ssh_host'], self.db_config['ssh_port']),
                    ssh_username=self.db_config['ssh_username'],
                    ssh_password=self.db_config['ssh_password'],
                    remote_bind_address=(host, port)
                )
                self.tunnel.start()
                logger.info("SSH tunnel established")
                host, port = '127.0.0.1', self.tunnel.local_bind_port

            # Imports run one at a time, so a single connection is enough
            self.pool = SimpleConnectionPool(
                minconn=1,
                maxconn=1,
                user=self.db_config['db_user'],
                password=self.db_config['db_password'],
                host=host,
                port=port,
                database=self.db_config['db_name'],
                connect_timeout=self.db_config['connect_timeout'],
                options=f"-c statement_timeout={self.db_config['statement_timeout_ms']}"
            )
            logger.info("Database connection pool created")

        except Exception as e:
            logger.error(f"Failed to set up database connection: {str(e)}")
            if self.tunnel and self.tunnel.is_active:
                self.tunnel.close()
            raise

    def close(self):
        """Close all connections and tunnel"""
        if self.pool:
            self.pool.closeall()
            logger.info("Closed all database connections")

        if self.tunnel and self.tunnel.is_active:
            self.tunnel.close()
            logger.info("Closed SSH tunnel")

    def _acquire(self, retries, retry_delay):
        for attempt in range(retries):
            try:
                return self.pool.getconn()
            except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
                logger.warning(f"Database connection error (attempt {attempt+1}/{retries}): {str(e)}")
                if attempt == retries - 1:
                    logger.error("Max retries reached. Unable to get database connection.")
                    raise
                time.sleep(retry_delay)

    @contextmanager
    def get_connection(self, retries=3, retry_delay=2):
        """Get a connection from the pool with retry logic"""
        conn = self._acquire(retries, retry_delay)
        try:
            yield conn
        finally:
            # Broken connections are dropped instead of being returned for reuse
            self.pool.putconn(conn, close=bool(conn.closed))

    @contextmanager
    def get_cursor(self, commit=True):
        """Get a database cursor with automatic commit/rollback"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            try:
                yield cursor
                if commit:
                    conn.commit()
            except Exception as e:
                if not conn.closed:
                    conn.rollback()
                logger.debug(f"Database operation failed: {str(e)}")
                raise
            finally:
                if not cursor.closed:
                    cursor.close()

    def execute_sql_file(self, sql_path):
        """
        Execute every statement of a SQL file in a single transaction

        Remote errors are reported in the result, never raised, so that callers
        can keep going with the next file.

        Args:
            sql_path (str or Path): SQL file to execute

        Returns:
            ImportResult: Success flag, duration and error detail
        """
        sql_path = Path(sql_path)
        start_time = time.monotonic()

        try:
            sql = sql_path.read_text(encoding=ENCODING)
            if not sql.strip():
                logger.warning(f"{sql_path.name} is empty, nothing to execute")
            else:
                with self.get_cursor() as cursor:
                    cursor.execute(sql)
        except psycopg2.Error as e:
            detail = (e.pgerror or str(e)).strip()
            return ImportResult(sql_path.name, False, time.monotonic() - start_time,
                                status_code=e.pgcode, error=detail)
        except OSError as e:
            return ImportResult(sql_path.name, False, time.monotonic() - start_time,
                                error=str(e))

        return ImportResult(sql_path.name, True, time.monotonic() - start_time)
