from __future__ import annotations
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo


def local_date_after(days: int, tz_name: str) -> date:
    # 发货日按业务时区算，不按服务器时区
    return datetime.now(ZoneInfo(tz_name)).date() + timedelta(days=days)
