# =============================================================================
# schedule.py - Off-Day Rules and Timing Jitter
# =============================================================================
# This module decides, per account, whether today's run should be skipped and
# computes the randomized delays inserted before and between accounts.
#
# "Today" is the calendar date in the configured time zone, not the host's
# local zone, and is computed once per run.
#
# Off-day file format (JSON, every key optional):
#   {
#     "time_zone": "Europe/Berlin",
#     "skip_weekends": true,
#     "global_off_dates": ["2026-01-01"],
#     "per_user_off_dates": {"alice": ["2026-03-02"]},
#     "start_delay": {"min": 0, "max": 120},
#     "between_accounts_delay": {"min": 5, "max": 30}
#   }
#
# Main functions:
# - load_off_days(): Reads the off-day file (missing file -> defaults)
# - today_in_zone(): Local calendar date in a given IANA time zone
# - should_skip(): Applies weekend / global / per-user rules in that order
# - random_delay_seconds(): Uniform integer jitter, 0 for disabled ranges
# =============================================================================

import json
import random
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Dict, FrozenSet, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .accounts import Account
from .config import DEFAULT_TIME_ZONE
from .validation import ConfigurationError


@dataclass(frozen=True)
class DelayRange:
    min: int = 0
    max: int = 0


@dataclass(frozen=True)
class OffDayConfig:
    time_zone: str = DEFAULT_TIME_ZONE
    skip_weekends: bool = False
    global_off_dates: FrozenSet[str] = frozenset()
    per_user_off_dates: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    start_delay: DelayRange = DelayRange()
    between_accounts_delay: DelayRange = DelayRange()


@dataclass(frozen=True)
class SkipDecision:
    reason: str


def _pick(data: dict, *keys):
    for key in keys:
        if key in data:
            return data[key]
    return None


def _seconds(value) -> int:
    try:
        return max(0, int(float(value)))
    except (TypeError, ValueError):
        return 0


def _delay_range(value) -> DelayRange:
    if not isinstance(value, dict):
        return DelayRange()
    return DelayRange(min=_seconds(value.get('min')), max=_seconds(value.get('max')))


def _date_set(values, name: str) -> FrozenSet[str]:
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, (list, tuple)):
        raise ConfigurationError(f"{name} must be a list of ISO dates, got {type(values).__name__}")
    return frozenset(str(v).strip() for v in values)


def parse_off_days(data: dict) -> OffDayConfig:
    if not isinstance(data, dict):
        raise ConfigurationError("Off-day configuration must be a JSON object")

    time_zone = _pick(data, 'time_zone', 'timeZone') or DEFAULT_TIME_ZONE
    per_user = _pick(data, 'per_user_off_dates', 'perUserOffDates') or {}
    if not isinstance(per_user, dict):
        raise ConfigurationError("per_user_off_dates must map account names to date lists")

    return OffDayConfig(
        time_zone=str(time_zone),
        skip_weekends=bool(_pick(data, 'skip_weekends', 'skipWeekends')),
        global_off_dates=_date_set(_pick(data, 'global_off_dates', 'globalOffDates'), 'global_off_dates'),
        per_user_off_dates={
            str(k): _date_set(v, f"per_user_off_dates[{k}]") for k, v in per_user.items()
        },
        start_delay=_delay_range(_pick(data, 'start_delay', 'startDelay')),
        between_accounts_delay=_delay_range(_pick(data, 'between_accounts_delay', 'betweenAccountsDelay')),
    )


def load_off_days(path: str) -> OffDayConfig:
    filepath = Path(path)
    if not filepath.exists():
        return OffDayConfig()
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Off-day file {path} could not be read: {e}")
    return parse_off_days(data)


def today_in_zone(time_zone: str, now: Optional[datetime] = None) -> date:
    try:
        zone = ZoneInfo(time_zone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError(f"Unknown time zone: {time_zone}")
    if now is None:
        return datetime.now(zone).date()
    return now.astimezone(zone).date()


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def should_skip(account: Account, today: date, config: OffDayConfig) -> Optional[SkipDecision]:
    """Return the first matching skip rule for this account, or None to proceed.

    Order: weekend, global off-day, per-user off-day. The per-user table is
    looked up by the raw username and, if that key is absent, by the
    sanitized tag.
    """
    iso = today.isoformat()

    if config.skip_weekends and is_weekend(today):
        return SkipDecision('weekend')

    if iso in config.global_off_dates:
        return SkipDecision('global_off')

    user_dates = config.per_user_off_dates.get(account.username)
    if user_dates is None:
        user_dates = config.per_user_off_dates.get(account.tag, frozenset())
    if iso in user_dates:
        return SkipDecision('user_off')

    return None


def random_delay_seconds(min_seconds: int, max_seconds: int) -> int:
    """
    >>> random_delay_seconds(0, 0)
    0
    >>> random_delay_seconds(10, 5)
    0
    >>> random_delay_seconds(3, 3)
    3
    """
    if max_seconds <= 0 or max_seconds < min_seconds:
        return 0
    return random.randint(max(0, min_seconds), max_seconds)
