"""Expiration classification for credentials.

Every credential view and job classifies expiration dates through these
functions so the thresholds live in one place:

* ``expired``           days < 0 (or a stored ``expired`` status)
* ``expiring_soon``     0 <= days <= 30
* ``renewal_required``  31 <= days <= 90
* ``active``            days > 90
"""

import enum
from datetime import date

EXPIRING_SOON_DAYS = 30
RENEWAL_REQUIRED_DAYS = 90

CRITICAL_NOTICE_DAYS = 7
WARNING_NOTICE_DAYS = 30


class ExpirationStatus(enum.Enum):
    active = "active"
    renewal_required = "renewal_required"
    expiring_soon = "expiring_soon"
    expired = "expired"


class ExpirationSeverity(enum.Enum):
    ok = "ok"
    info = "info"
    warning = "warning"
    critical = "critical"


# Healthiest first; used for monotonic comparisons.
STATUS_RANK = {
    ExpirationStatus.active: 0,
    ExpirationStatus.renewal_required: 1,
    ExpirationStatus.expiring_soon: 2,
    ExpirationStatus.expired: 3,
}

_SEVERITY = {
    ExpirationStatus.active: ExpirationSeverity.ok,
    ExpirationStatus.renewal_required: ExpirationSeverity.info,
    ExpirationStatus.expiring_soon: ExpirationSeverity.warning,
    ExpirationStatus.expired: ExpirationSeverity.critical,
}


def days_until(expiration_date: date, today: date | None = None) -> int:
    today = today or date.today()
    return (expiration_date - today).days


def classify_days(days: int) -> ExpirationStatus:
    if days < 0:
        return ExpirationStatus.expired
    if days <= EXPIRING_SOON_DAYS:
        return ExpirationStatus.expiring_soon
    if days <= RENEWAL_REQUIRED_DAYS:
        return ExpirationStatus.renewal_required
    return ExpirationStatus.active


def classify(
    expiration_date: date | None,
    today: date | None = None,
    stored_status: str | enum.Enum | None = None,
) -> ExpirationStatus | None:
    """Classify an expiration date relative to ``today``.

    A stored ``expired`` status wins over the date arithmetic. Returns None
    when there is no expiration date and no authoritative stored status.
    """
    if isinstance(stored_status, enum.Enum):
        stored_status = stored_status.value
    if stored_status == ExpirationStatus.expired.value:
        return ExpirationStatus.expired
    if expiration_date is None:
        return None
    return classify_days(days_until(expiration_date, today))


def severity_for(status: ExpirationStatus | None) -> ExpirationSeverity | None:
    if status is None:
        return None
    return _SEVERITY[status]


def notification_severity(days: int) -> str:
    """Severity of an expiration notice ``days`` before expiry."""
    if days <= CRITICAL_NOTICE_DAYS:
        return "critical"
    if days <= WARNING_NOTICE_DAYS:
        return "warning"
    return "info"


def notification_interval(days: int, intervals) -> int | None:
    """Tightest configured interval the credential has already crossed."""
    if days < 0:
        return None
    crossed = [interval for interval in intervals if days <= interval]
    if not crossed:
        return None
    return min(crossed)
