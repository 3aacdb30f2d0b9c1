from datetime import date, timedelta

import pytest

from app.models.credential import CredentialStatus
from app.services import expiration
from app.services.expiration import ExpirationSeverity, ExpirationStatus

TODAY = date(2026, 3, 1)


class TestClassifyDays:
    @pytest.mark.parametrize(
        "days,expected",
        [
            (-1, ExpirationStatus.expired),
            (0, ExpirationStatus.expiring_soon),
            (30, ExpirationStatus.expiring_soon),
            (31, ExpirationStatus.renewal_required),
            (90, ExpirationStatus.renewal_required),
            (91, ExpirationStatus.active),
        ],
    )
    def test_boundaries(self, days, expected):
        assert expiration.classify_days(days) == expected

    def test_status_never_improves_as_time_passes(self):
        exp = TODAY + timedelta(days=120)
        ranks = [
            expiration.STATUS_RANK[
                expiration.classify(exp, TODAY + timedelta(days=offset))
            ]
            for offset in range(0, 200)
        ]
        assert ranks == sorted(ranks)


class TestClassify:
    def test_no_expiration_date(self):
        assert expiration.classify(None, TODAY) is None

    def test_stored_expired_status_wins(self):
        future = TODAY + timedelta(days=400)
        assert (
            expiration.classify(future, TODAY, stored_status=CredentialStatus.expired)
            == ExpirationStatus.expired
        )
        assert (
            expiration.classify(None, TODAY, stored_status="expired")
            == ExpirationStatus.expired
        )

    def test_other_stored_status_uses_date(self):
        soon = TODAY + timedelta(days=10)
        assert (
            expiration.classify(soon, TODAY, stored_status=CredentialStatus.active)
            == ExpirationStatus.expiring_soon
        )

    def test_days_until(self):
        assert expiration.days_until(TODAY + timedelta(days=5), TODAY) == 5
        assert expiration.days_until(TODAY - timedelta(days=3), TODAY) == -3


class TestSeverity:
    def test_severity_mapping(self):
        assert expiration.severity_for(ExpirationStatus.active) == ExpirationSeverity.ok
        assert (
            expiration.severity_for(ExpirationStatus.renewal_required)
            == ExpirationSeverity.info
        )
        assert (
            expiration.severity_for(ExpirationStatus.expiring_soon)
            == ExpirationSeverity.warning
        )
        assert (
            expiration.severity_for(ExpirationStatus.expired)
            == ExpirationSeverity.critical
        )
        assert expiration.severity_for(None) is None

    @pytest.mark.parametrize(
        "days,expected",
        [(1, "critical"), (7, "critical"), (8, "warning"), (30, "warning"), (60, "info")],
    )
    def test_notification_severity(self, days, expected):
        assert expiration.notification_severity(days) == expected


class TestNotificationInterval:
    intervals = (1, 7, 30, 60, 90)

    def test_picks_tightest_crossed_interval(self):
        assert expiration.notification_interval(45, self.intervals) == 60
        assert expiration.notification_interval(30, self.intervals) == 30
        assert expiration.notification_interval(0, self.intervals) == 1

    def test_outside_window(self):
        assert expiration.notification_interval(91, self.intervals) is None
        assert expiration.notification_interval(-1, self.intervals) is None


class TestCredentialProperties:
    def test_license_computed_fields(self, db_session, physician):
        from tests.factories import make_license

        license_ = make_license(db_session, physician, days=10)
        assert license_.days_until_expiration == 10
        assert license_.expiration_status == "expiring_soon"
        assert license_.expiration_severity == "warning"
        assert license_.label == "CA medical license #A123456"

    def test_certification_without_expiry(self, db_session, physician):
        from tests.factories import make_certification

        cert = make_certification(db_session, physician, expiration_date=None)
        assert cert.days_until_expiration is None
        assert cert.expiration_status is None
        assert cert.expiration_severity is None
