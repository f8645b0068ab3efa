"""
Bill Hicks & Co. FTP Connector
Downloads the MicroBiz catalog and inventory feeds

Author: TM3
Date: 2025-10-17

FTP CONFIGURATION:
- Host: from credentials (ftp_server / ftpServer); may be given as a URL
  (ftp://, ftps://, http(s)://). ftps:// connects with explicit TLS.
- Port: 21 unless ftp_port is set
- Optional base path prepended to the feed paths

FEEDS:
- /MicroBiz/Feeds/MicroBiz_Daily_Catalog.csv  - full catalog, daily
- /MicroBiz/Feeds/MicroBiz_Hourly_Inventory.csv - stock levels, hourly

Downloads retry MAX_RETRIES times with exponential backoff (2s, 4s).
"""
import io
import re
import time
import asyncio
import ftplib
import logging
from typing import Dict, Optional, Tuple
from urllib.parse import urlparse

from bestprice.core.config import settings

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
PROTOCOL_PREFIX = re.compile(r'^(https?|ftps?)://', re.IGNORECASE)


def parse_ftp_host(server: str) -> Tuple[str, bool]:
    """
    Normalize a configured FTP server into (host, secure)

    Examples:
        "ftps://ftp.billhicks.com/" -> ("ftp.billhicks.com", True)
        "ftp.billhicks.com/"        -> ("ftp.billhicks.com", False)
    """
    server = (server or "").strip()
    parsed = urlparse(server)
    if parsed.scheme and parsed.hostname:
        return parsed.hostname, parsed.scheme.lower() == 'ftps'

    host = PROTOCOL_PREFIX.sub('', server)
    host = host.rstrip('/')
    return host, False


class BillHicksFTPConnector:
    """
    Connector for the Bill Hicks FTP feeds

    Credentials accept both snake_case and camelCase keys.
    """

    CATALOG_PATH = "/MicroBiz/Feeds/MicroBiz_Daily_Catalog.csv"
    INVENTORY_PATH = "/MicroBiz/Feeds/MicroBiz_Hourly_Inventory.csv"

    def __init__(self, credentials: Dict[str, str], retry_delay: float = 1.0):
        """
        Initialize Bill Hicks connector

        Args:
            credentials: ftp_server, ftp_username, ftp_password,
                optional ftp_port and ftp_base_path
            retry_delay: base delay; attempt n waits retry_delay * 2**n seconds
        """
        server = credentials.get('ftp_server') or credentials.get('ftpServer') or credentials.get('ftpHost')
        self.username = credentials.get('ftp_username') or credentials.get('ftpUsername')
        self.password = credentials.get('ftp_password') or credentials.get('ftpPassword')

        if not server or not self.username or not self.password:
            raise ValueError("Bill Hicks FTP credentials not configured (server, username and password are required)")

        self.host, self.secure = parse_ftp_host(server)
        port = credentials.get('ftp_port') or credentials.get('ftpPort')
        self.port = int(port) if port else 21
        self.base_path = (credentials.get('ftp_base_path') or credentials.get('ftpBasePath') or '').rstrip('/')
        self.retry_delay = retry_delay
        self.timeout = settings.HTTP_TIMEOUT_SECONDS

    def _connect(self) -> ftplib.FTP:
        ftp = ftplib.FTP_TLS(timeout=self.timeout) if self.secure else ftplib.FTP(timeout=self.timeout)
        ftp.connect(self.host, self.port)
        ftp.login(self.username, self.password)
        if self.secure:
            ftp.prot_p()
        return ftp

    def _full_path(self, path: str) -> str:
        return f"{self.base_path}{path}" if self.base_path else path

    def download(self, path: str) -> str:
        """
        Download a feed file as text

        Raises:
            ConnectionError: when every attempt fails
        """
        remote_path = self._full_path(path)
        last_error: Optional[Exception] = None

        for attempt in range(1, MAX_RETRIES + 1):
            ftp = None
            try:
                logger.info(f"FTP download attempt {attempt}/{MAX_RETRIES}: {self.host}{remote_path} (secure: {self.secure})")
                ftp = self._connect()
                buffer = io.BytesIO()
                ftp.retrbinary(f"RETR {remote_path}", buffer.write)
                content = buffer.getvalue().decode('utf-8-sig', errors='replace')
                logger.info(f"Downloaded {remote_path}: {len(content)} characters")
                return content
            except ftplib.error_perm as e:
                last_error = e
                if str(e).startswith('530'):
                    logger.error(f"FTP authentication failed for {self.host}: {e}")
                elif str(e).startswith('550'):
                    logger.error(f"FTP file not found: {remote_path}")
                else:
                    logger.warning(f"FTP attempt {attempt} failed: {e}")
            except (ftplib.Error, OSError, EOFError) as e:
                last_error = e
                logger.warning(f"FTP attempt {attempt} failed: {e}")
            finally:
                if ftp is not None:
                    try:
                        ftp.quit()
                    except (ftplib.Error, OSError, EOFError):
                        ftp.close()

            if attempt < MAX_RETRIES:
                delay = self.retry_delay * (2 ** attempt)
                logger.info(f"Retrying in {delay:.0f}s...")
                time.sleep(delay)

        raise ConnectionError(f"FTP download failed after {MAX_RETRIES} attempts: {last_error}")

    def download_catalog(self) -> str:
        return self.download(settings.BILL_HICKS_CATALOG_PATH or self.CATALOG_PATH)

    def download_inventory(self) -> str:
        return self.download(settings.BILL_HICKS_INVENTORY_PATH or self.INVENTORY_PATH)

    def _check_connection(self) -> Dict:
        ftp = None
        try:
            ftp = self._connect()
            ftp.pwd()
            return {"success": True, "message": f"Connected to {self.host}"}
        except ftplib.error_perm as e:
            if str(e).startswith('530'):
                return {"success": False, "message": "FTP login failed: check username and password"}
            return {"success": False, "message": f"FTP error: {e}"}
        except (ftplib.Error, OSError, EOFError) as e:
            return {"success": False, "message": f"Could not connect to {self.host}: {e}"}
        finally:
            if ftp is not None:
                ftp.close()

    async def test_connection(self) -> Dict:
        """Log in once without downloading anything"""
        return await asyncio.to_thread(self._check_connection)
