from datetime import datetime, timedelta
from typing import Optional


def is_due(last_update: Optional[datetime], interval_hours: float, now: datetime) -> bool:
    """
    Return True when a station's weather snapshot should be refreshed.

    A station that was never refreshed is always due. Otherwise the refresh
    is due once `interval_hours` have elapsed since `last_update`. The
    interval is used as given; range checks belong to the settings layer.
    """
    if last_update is None:
        return True
    return now >= last_update + timedelta(hours=interval_hours)
