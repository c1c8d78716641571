"""Download service - continuous heart rate export for the trailing 30 days."""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import requests

from polar_toolkit.clients.polar import PolarClient
from polar_toolkit.config import Config, PolarSettings
from polar_toolkit.services.auth import AuthService
from polar_toolkit.services.dates import recent_dates

logger = logging.getLogger(__name__)

# Day status values
DAY_STATUS_ALREADY_PRESENT = "already_present"
DAY_STATUS_DOWNLOADED = "downloaded"
DAY_STATUS_NO_DATA = "no_data"
DAY_STATUS_FAILED = "failed"


@dataclass
class DayResult:
    date_key: str
    status: str
    path: Optional[Path] = None
    http_status: Optional[int] = None
    error: Optional[str] = None


@dataclass
class OutcomeTally:
    """Counts for one run. Skips cover both existing files and empty days."""

    downloaded: int = 0
    already_present: int = 0
    no_data: int = 0
    failed: int = 0
    results: List[DayResult] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return self.already_present + self.no_data

    @property
    def errored(self) -> int:
        return self.failed

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> bool:
        return self.failed == 0

    def add(self, result: DayResult):
        self.results.append(result)
        if result.status == DAY_STATUS_DOWNLOADED:
            self.downloaded += 1
        elif result.status == DAY_STATUS_ALREADY_PRESENT:
            self.already_present += 1
        elif result.status == DAY_STATUS_NO_DATA:
            self.no_data += 1
        else:
            self.failed += 1


class DownloadService:
    """Downloads one JSON file per day into the output directory."""

    def __init__(
        self,
        settings: PolarSettings,
        client: Optional[PolarClient] = None,
        auth_service: Optional[AuthService] = None,
        output_dir: Optional[Path] = None,
        delay: float = Config.REQUEST_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        log: Optional[logging.Logger] = None,
    ):
        self.settings = settings
        self.client = client or PolarClient(settings)
        self.log = log or logger
        self.auth_service = auth_service or AuthService(settings, self.client, self.log)
        self.output_dir = Path(output_dir or Config.OUTPUT_DIR)
        self.delay = delay
        self.sleep = sleep

    def artifact_path(self, date_key: str) -> Path:
        return self.output_dir / f"{date_key}.json"

    def download_day(self, access_token: str, date_key: str) -> DayResult:
        """Download one day unless its file already exists.

        The body goes to ``<date>.json.tmp`` and is renamed into place only on
        HTTP 200, so an existing ``<date>.json`` is always complete.
        """
        save_path = self.artifact_path(date_key)

        # Skip if already exists
        if save_path.exists():
            self.log.info(f"Skipping {date_key} (file already exists)")
            return DayResult(date_key, DAY_STATUS_ALREADY_PRESENT, path=save_path)

        tmp_path = save_path.with_name(f"{save_path.name}.tmp")
        try:
            status_code = self.client.fetch_continuous_heart_rate(access_token, date_key, tmp_path)
        except (requests.RequestException, OSError) as e:
            tmp_path.unlink(missing_ok=True)
            self.log.error(f"Failed to download data for {date_key}: {e}")
            return DayResult(date_key, DAY_STATUS_FAILED, error=str(e))

        if status_code == 200:
            try:
                tmp_path.replace(save_path)
            except OSError as e:
                tmp_path.unlink(missing_ok=True)
                self.log.error(f"Failed to save data for {date_key}: {e}")
                return DayResult(date_key, DAY_STATUS_FAILED, http_status=status_code, error=str(e))
            self.log.info(f"Successfully downloaded data for {date_key}")
            return DayResult(date_key, DAY_STATUS_DOWNLOADED, path=save_path, http_status=status_code)

        tmp_path.unlink(missing_ok=True)
        if status_code == 204:
            self.log.warning(f"No data available for {date_key} (HTTP 204)")
            return DayResult(date_key, DAY_STATUS_NO_DATA, http_status=status_code)

        self.log.error(f"Failed to download data for {date_key} (HTTP {status_code})")
        return DayResult(date_key, DAY_STATUS_FAILED, http_status=status_code)

    def run(
        self,
        auth_code: str,
        dates: Optional[List[str]] = None,
        on_result: Optional[Callable[[DayResult], None]] = None,
    ) -> OutcomeTally:
        """Authenticate once, then download every date in order.

        Configuration and authentication errors propagate; per-day failures
        are only counted.
        """
        self.settings.validate()
        masked = ", ".join(f"{name}: {value}" for name, value in self.settings.masked().items())
        self.log.info(f"Configuration loaded from environment - {masked}")
        self.log.info(f"Starting download process into {self.output_dir}")
        Config.ensure_directories(self.output_dir)

        access_token = self.auth_service.authenticate(auth_code)

        dates = recent_dates() if dates is None else dates
        self.log.info(f"Processing {len(dates)} recent days")

        tally = OutcomeTally()
        for index, date_key in enumerate(dates):
            if not date_key:
                self.log.warning("Skipping empty date")
                continue

            result = self.download_day(access_token, date_key)
            tally.add(result)
            if on_result:
                on_result(result)

            # Rate limiting
            if index < len(dates) - 1:
                self.sleep(self.delay)

        self.log.info(
            f"Download completed. Success: {tally.downloaded}, "
            f"Skipped: {tally.skipped}, Errors: {tally.errored}"
        )
        return tally
