"""Date range for the continuous heart rate download window."""

from datetime import date, timedelta
from typing import List, Optional

from polar_toolkit.config import Config


def recent_dates(today: Optional[date] = None, days: int = Config.DAYS_TO_DOWNLOAD) -> List[str]:
    """Date keys (YYYY-MM-DD) for today and the preceding days, newest first."""
    today = today or date.today()
    return [(today - timedelta(days=offset)).isoformat() for offset in range(days)]
