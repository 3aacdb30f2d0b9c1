"""Read-only aggregates over physicians, credentials, renewals and documents."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone

from sqlalchemy.orm import Session

from app.models.credential import (
    CredentialStatus,
    CsrLicense,
    DeaRegistration,
    PhysicianCertification,
    PhysicianLicense,
    RenewalCycle,
)
from app.models.document import DocumentType, PhysicianDocument
from app.models.physician import Physician, PhysicianCompliance, PhysicianStatus, ProviderRole
from app.models.renewal import RenewalStatus, RenewalWorkflow
from app.services import expiration

logger = logging.getLogger(__name__)

FORECAST_WINDOWS = (30, 60, 90)
TREND_MONTHS = 6

REQUIRED_DOCUMENTS = (
    DocumentType.medical_license,
    DocumentType.dea_certificate,
    DocumentType.board_certification,
    DocumentType.malpractice_insurance,
    DocumentType.cv,
)

_PENDING_RENEWALS = {
    RenewalStatus.not_started,
    RenewalStatus.in_progress,
    RenewalStatus.filed,
    RenewalStatus.under_review,
}
_FAILED_RENEWALS = {RenewalStatus.rejected, RenewalStatus.expired}


def _rate(part: int, whole: int) -> float:
    if not whole:
        return 0.0
    return round(part * 100 / whole, 2)


def _month_start(today: date, months_back: int) -> date:
    year, month = today.year, today.month - months_back
    while month < 1:
        month += 12
        year -= 1
    return date(year, month, 1)


def _next_month(start: date) -> date:
    if start.month == 12:
        return date(start.year + 1, 1, 1)
    return date(start.year, start.month + 1, 1)


def _active_physicians(db: Session) -> list[Physician]:
    return (
        db.query(Physician)
        .filter(Physician.is_active.is_(True))
        .order_by(Physician.full_legal_name.asc())
        .all()
    )


def _compliance_map(db: Session) -> dict:
    return {record.physician_id: record for record in db.query(PhysicianCompliance).all()}


def _is_compliant(compliance_by_physician: dict, physician_id) -> bool:
    record = compliance_by_physician.get(physician_id)
    return record is not None and record.is_compliant


def _rates(groups: dict[str, list[bool]]) -> list[dict]:
    rates = []
    for category, flags in groups.items():
        compliant = sum(1 for flag in flags if flag)
        rates.append(
            {
                "category": category,
                "compliant": compliant,
                "non_compliant": len(flags) - compliant,
                "compliance_rate": _rate(compliant, len(flags)),
            }
        )
    return sorted(rates, key=lambda item: item["category"])


def _distribution(counts: dict[str, int]) -> list[dict]:
    total = sum(counts.values())
    entries = [
        {"category": category, "value": value, "percentage": _rate(value, total)}
        for category, value in counts.items()
    ]
    return sorted(entries, key=lambda item: (-item["value"], item["category"]))


def _active_credentials(db: Session, model) -> list:
    return (
        db.query(model)
        .join(Physician, Physician.id == model.physician_id)
        .filter(Physician.is_active.is_(True))
        .filter(model.is_active.is_(True))
        .all()
    )


def _expiring(credentials: list, today: date, days: int) -> list:
    horizon = today + timedelta(days=days)
    expiring = []
    for credential in credentials:
        if credential.expiration_date is None:
            continue
        if getattr(credential, "status", None) == CredentialStatus.expired:
            continue
        if today <= credential.expiration_date <= horizon:
            expiring.append(credential)
    return expiring


class Analytics:
    @staticmethod
    def compliance(db: Session) -> dict:
        """Compliance rates overall and by department, specialty and role.

        A physician counts as compliant only with a compliance record that
        reports no revocations, investigations, claims or sanctions.
        """
        physicians = _active_physicians(db)
        compliance = _compliance_map(db)
        specialties: dict = {}
        for certification in (
            db.query(PhysicianCertification)
            .filter(PhysicianCertification.is_active.is_(True))
            .order_by(PhysicianCertification.created_at.asc())
            .all()
        ):
            specialties.setdefault(certification.physician_id, certification.specialty)

        by_department: dict[str, list[bool]] = {}
        by_specialty: dict[str, list[bool]] = {}
        by_role: dict[str, list[bool]] = {}
        for physician in physicians:
            flag = _is_compliant(compliance, physician.id)
            by_department.setdefault(physician.practice_name or "Unassigned", []).append(flag)
            by_specialty.setdefault(
                specialties.get(physician.id, "General Practice"), []
            ).append(flag)
            role = (physician.provider_role or ProviderRole.physician).value
            by_role.setdefault(role, []).append(flag)

        compliant = sum(1 for p in physicians if _is_compliant(compliance, p.id))
        return {
            "overall": _rate(compliant, len(physicians)),
            "by_department": _rates(by_department),
            "by_specialty": _rates(by_specialty),
            "by_provider_role": _rates(by_role),
        }

    @staticmethod
    def renewal_trends(db: Session, today: date | None = None) -> list[dict]:
        today = today or date.today()
        workflows = db.query(RenewalWorkflow).all()
        trends = []
        for months_back in range(TREND_MONTHS - 1, -1, -1):
            start = _month_start(today, months_back)
            end = _next_month(start)
            in_month = [
                w for w in workflows if start <= w.created_at.date() < end
            ]
            successful = sum(1 for w in in_month if w.status == RenewalStatus.approved)
            failed = sum(1 for w in in_month if w.status in _FAILED_RENEWALS)
            pending = sum(1 for w in in_month if w.status in _PENDING_RENEWALS)
            trends.append(
                {
                    "period": start.strftime("%b %Y"),
                    "successful": successful,
                    "failed": failed,
                    "pending": pending,
                    "success_rate": _rate(successful, len(in_month)),
                }
            )
        return trends

    @staticmethod
    def expiration_forecast(db: Session, today: date | None = None) -> list[dict]:
        today = today or date.today()
        sources = {
            "licenses": _active_credentials(db, PhysicianLicense),
            "dea_registrations": _active_credentials(db, DeaRegistration),
            "csr_licenses": _active_credentials(db, CsrLicense),
            "certifications": _active_credentials(db, PhysicianCertification),
        }
        forecast = []
        for days in FORECAST_WINDOWS:
            entry = {"period": f"{days} days", "days": days}
            for key, credentials in sources.items():
                entry[key] = len(_expiring(credentials, today, days))
            entry["total"] = sum(entry[key] for key in sources)
            forecast.append(entry)
        return forecast

    @staticmethod
    def license_distribution(db: Session, today: date | None = None) -> dict:
        today = today or date.today()
        by_state: dict[str, int] = {}
        by_type: dict[str, int] = {}
        by_status: dict[str, int] = {}
        for license in _active_credentials(db, PhysicianLicense):
            by_state[license.state] = by_state.get(license.state, 0) + 1
            license_type = license.license_type or "medical"
            by_type[license_type] = by_type.get(license_type, 0) + 1
            status = expiration.classify(license.expiration_date, today).value
            by_status[status] = by_status.get(status, 0) + 1
        return {
            "by_state": _distribution(by_state),
            "by_type": _distribution(by_type),
            "by_status": _distribution(by_status),
        }

    @staticmethod
    def provider_metrics(db: Session, today: date | None = None) -> list[dict]:
        today = today or date.today()
        physicians = _active_physicians(db)
        compliance = _compliance_map(db)
        licenses = _active_credentials(db, PhysicianLicense)
        expiring = _expiring(licenses, today, 30)
        metrics = []
        for role in ProviderRole:
            members = {
                p.id
                for p in physicians
                if (p.provider_role or ProviderRole.physician) == role
            }
            compliant = sum(1 for pid in members if _is_compliant(compliance, pid))
            license_count = sum(1 for item in licenses if item.physician_id in members)
            metrics.append(
                {
                    "role": role.value,
                    "total": len(members),
                    "compliant": compliant,
                    "non_compliant": len(members) - compliant,
                    "compliance_rate": _rate(compliant, len(members)),
                    "avg_licenses_per_provider": (
                        round(license_count / len(members), 2) if members else 0.0
                    ),
                    "expiring_within_30_days": sum(
                        1 for item in expiring if item.physician_id in members
                    ),
                }
            )
        return metrics

    @staticmethod
    def dea_metrics(db: Session, today: date | None = None) -> dict:
        today = today or date.today()
        registrations = _active_credentials(db, DeaRegistration)
        states: dict[str, int] = {}
        for registration in registrations:
            states[registration.state] = states.get(registration.state, 0) + 1
        attested = sum(1 for r in registrations if r.mate_attested)
        return {
            "total_registrations": len(registrations),
            "active_registrations": sum(
                1 for r in registrations if r.status == CredentialStatus.active
            ),
            "expired_registrations": sum(
                1 for r in registrations if r.status == CredentialStatus.expired
            ),
            "expiring_within_30_days": len(_expiring(registrations, today, 30)),
            "mate_training_compliance": _rate(attested, len(registrations)),
            "state_distribution": states,
        }

    @staticmethod
    def csr_metrics(db: Session, today: date | None = None) -> dict:
        today = today or date.today()
        csr_licenses = _active_credentials(db, CsrLicense)
        states: dict[str, int] = {}
        for csr in csr_licenses:
            states[csr.state] = states.get(csr.state, 0) + 1
        return {
            "total_licenses": len(csr_licenses),
            "active_licenses": sum(
                1 for c in csr_licenses if c.status == CredentialStatus.active
            ),
            "expired_licenses": sum(
                1 for c in csr_licenses if c.status == CredentialStatus.expired
            ),
            "expiring_within_30_days": len(_expiring(csr_licenses, today, 30)),
            "renewal_cycle_breakdown": {
                cycle.value: sum(1 for c in csr_licenses if c.renewal_cycle == cycle)
                for cycle in RenewalCycle
            },
            "state_distribution": states,
        }

    @staticmethod
    def document_completeness(db: Session) -> list[dict]:
        uploaded: dict = {}
        for physician_id, document_type in (
            db.query(PhysicianDocument.physician_id, PhysicianDocument.document_type)
            .filter(PhysicianDocument.is_current.is_(True))
            .all()
        ):
            uploaded.setdefault(physician_id, set()).add(document_type)

        report = []
        for physician in _active_physicians(db):
            present = uploaded.get(physician.id, set())
            missing = [doc.value for doc in REQUIRED_DOCUMENTS if doc not in present]
            have = len(REQUIRED_DOCUMENTS) - len(missing)
            report.append(
                {
                    "physician_id": physician.id,
                    "category": physician.full_legal_name,
                    "required": len(REQUIRED_DOCUMENTS),
                    "uploaded": have,
                    "completeness_rate": _rate(have, len(REQUIRED_DOCUMENTS)),
                    "missing_documents": missing,
                }
            )
        return report

    @staticmethod
    def physician_status_summary(db: Session) -> dict:
        physicians = db.query(Physician).all()
        breakdown = {status.value: 0 for status in PhysicianStatus}
        for physician in physicians:
            status = (physician.status or PhysicianStatus.pending).value
            breakdown[status] += 1
        return {"total": len(physicians), "status_breakdown": breakdown}

    @staticmethod
    def license_expiration_report(
        db: Session, days: int = 90, today: date | None = None
    ) -> dict:
        today = today or date.today()
        names = {p.id: p.full_legal_name for p in _active_physicians(db)}
        expired = 0
        entries = []
        for license in _active_credentials(db, PhysicianLicense):
            remaining = expiration.days_until(license.expiration_date, today)
            if remaining < 0:
                expired += 1
            elif remaining <= days:
                entries.append(
                    {
                        "id": license.id,
                        "physician_id": license.physician_id,
                        "physician_name": names.get(license.physician_id, ""),
                        "state": license.state,
                        "license_number": license.license_number,
                        "license_type": license.license_type,
                        "expiration_date": license.expiration_date,
                        "days_until_expiration": remaining,
                    }
                )
        entries.sort(key=lambda entry: entry["days_until_expiration"])
        logger.info(
            "License expiration report: %d expiring within %d days, %d expired",
            len(entries),
            days,
            expired,
        )
        return {
            "days": days,
            "expiring_within_days": len(entries),
            "already_expired": expired,
            "licenses": entries,
            "report_generated_at": datetime.now(timezone.utc),
        }


analytics = Analytics()
