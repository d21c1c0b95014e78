# services/fetcher.py
import stat
import logging
import zipfile
import posixpath
import paramiko
from pathlib import Path
from config.settings import get_sftp_config, FEED_FILE_PREFIX, FEED_FILE_SUFFIX, FEED_MEMBER_SUFFIX

logger = logging.getLogger(__name__)


class FeedFetchError(Exception):
    """Raised when the feed archive cannot be located, downloaded or unpacked"""


def pick_latest_feed(entries, prefix=FEED_FILE_PREFIX, suffix=FEED_FILE_SUFFIX):
    """
    Choose the most recently modified feed archive from a directory listing

    Args:
        entries (list): paramiko.SFTPAttributes from listdir_attr()

    Returns:
        SFTPAttributes or None
    """
    feeds = [
        entry for entry in entries
        if stat.S_ISREG(entry.st_mode or 0)
        and entry.filename.startswith(prefix)
        and entry.filename.endswith(suffix)
    ]
    if not feeds:
        return None
    return max(feeds, key=lambda entry: entry.st_mtime or 0)


def extract_feed(archive_path, extract_dir, member_suffix=FEED_MEMBER_SUFFIX):
    """
    Extract the feed text file from a downloaded archive

    Args:
        archive_path (Path): Zip archive
        extract_dir (Path): Destination directory

    Returns:
        Path: Extracted feed file
    """
    extract_dir = Path(extract_dir)
    extract_dir.mkdir(parents=True, exist_ok=True)

    try:
        with zipfile.ZipFile(archive_path) as archive:
            members = [name for name in archive.namelist() if name.endswith(member_suffix)]
            if not members:
                raise FeedFetchError(
                    f"Could not find a file ending with '{member_suffix}' in {archive_path}"
                )
            extracted = Path(archive.extract(members[0], extract_dir))
    except zipfile.BadZipFile as e:
        raise FeedFetchError(f"{archive_path} is not a valid zip archive: {str(e)}") from e

    logger.info(f"Feed extracted to {extracted}")
    return extracted


class FeedFetcher:
    """Downloads the newest product feed archive over SFTP"""

    def __init__(self, sftp_config=None):
        self.config = sftp_config or get_sftp_config()

    def _check_config(self):
        missing = [key for key in ('host', 'username', 'password', 'remote_path') if not self.config.get(key)]
        if missing:
            raise FeedFetchError(f"Missing SFTP configuration: {', '.join(missing)}")

    def download_latest(self):
        """
        Download the newest feed archive

        Returns:
            Path: Local path of the downloaded archive
        """
        self._check_config()
        download_dir = Path(self.config['download_dir'])
        download_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Connecting to SFTP server {self.config['host']}...")
        transport = paramiko.Transport((self.config['host'], self.config['port']))
        try:
            transport.connect(username=self.config['username'], password=self.config['password'])
            sftp = paramiko.SFTPClient.from_transport(transport)

            remote_dir = self.config['remote_path']
            logger.info(f"Connected. Listing files in {remote_dir}...")
            latest = pick_latest_feed(sftp.listdir_attr(remote_dir))
            if latest is None:
                raise FeedFetchError(
                    f"No feed files matching '{FEED_FILE_PREFIX}*{FEED_FILE_SUFFIX}' found in {remote_dir}"
                )

            local_path = download_dir / latest.filename
            logger.info(f"Found latest feed file: {latest.filename}. Downloading...")
            sftp.get(posixpath.join(remote_dir, latest.filename), str(local_path))
            logger.info(f"Feed downloaded to {local_path}")
            return local_path
        except paramiko.SSHException as e:
            raise FeedFetchError(f"SFTP error: {str(e)}") from e
        finally:
            transport.close()
            logger.info("SFTP connection closed")

    def fetch(self):
        """Download the newest archive and return the path of the extracted feed file"""
        archive_path = self.download_latest()
        return extract_feed(archive_path, archive_path.parent / 'extracted')
