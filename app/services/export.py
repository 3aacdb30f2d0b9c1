"""CSV and JSON exports of physicians and their expiring credentials."""

from __future__ import annotations

import csv
import json
import logging
from datetime import date, datetime, timezone
from io import StringIO

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.models.credential import (
    CsrLicense,
    DeaRegistration,
    PhysicianCertification,
    PhysicianLicense,
)
from app.models.physician import Physician
from app.schemas.physician import mask_identifier
from app.services import expiration

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "json")

PHYSICIAN_FIELDS = [
    "id",
    "full_legal_name",
    "npi",
    "ssn",
    "provider_role",
    "clinician_type",
    "status",
    "email_address",
    "practice_name",
    "malpractice_carrier",
    "malpractice_expiration_date",
]

CREDENTIAL_FIELDS = [
    "credential_type",
    "id",
    "physician_id",
    "physician_name",
    "state",
    "number",
    "expiration_date",
    "days_until_expiration",
    "expiration_status",
]

_CREDENTIAL_SOURCES = (
    ("license", PhysicianLicense, "license_number"),
    ("dea", DeaRegistration, "dea_number"),
    ("csr", CsrLicense, "csr_number"),
    ("certification", PhysicianCertification, "certificate_number"),
)


def _value(value):
    if value is None:
        return None
    if hasattr(value, "value"):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value) if not isinstance(value, (int, float, bool)) else value


def physician_rows(db: Session) -> list[dict]:
    rows = []
    for physician in (
        db.query(Physician)
        .filter(Physician.is_active.is_(True))
        .order_by(Physician.full_legal_name.asc())
        .all()
    ):
        row = {field: _value(getattr(physician, field)) for field in PHYSICIAN_FIELDS}
        row["ssn"] = mask_identifier(physician.ssn)
        rows.append(row)
    return rows


def credential_rows(db: Session, today: date | None = None) -> list[dict]:
    today = today or date.today()
    rows = []
    for credential_type, model, number_field in _CREDENTIAL_SOURCES:
        query = (
            db.query(model, Physician)
            .join(Physician, Physician.id == model.physician_id)
            .filter(Physician.is_active.is_(True))
            .filter(model.is_active.is_(True))
        )
        for credential, physician in query.all():
            status = expiration.classify(
                credential.expiration_date,
                today,
                stored_status=getattr(credential, "status", None),
            )
            days = (
                expiration.days_until(credential.expiration_date, today)
                if credential.expiration_date
                else None
            )
            rows.append(
                {
                    "credential_type": credential_type,
                    "id": str(credential.id),
                    "physician_id": str(physician.id),
                    "physician_name": physician.full_legal_name,
                    "state": getattr(credential, "state", None),
                    "number": getattr(credential, number_field),
                    "expiration_date": _value(credential.expiration_date),
                    "days_until_expiration": days,
                    "expiration_status": status.value if status else None,
                }
            )
    rows.sort(key=lambda row: (row["expiration_date"] is None, row["expiration_date"] or ""))
    return rows


def render(rows: list[dict], fieldnames: list[str], export_format: str) -> str:
    if export_format not in EXPORT_FORMATS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid format. Allowed: {', '.join(EXPORT_FORMATS)}",
        )
    if export_format == "json":
        return json.dumps(rows, indent=2)
    output = StringIO()
    writer = csv.DictWriter(output, fieldnames=fieldnames)
    writer.writeheader()
    writer.writerows(rows)
    return output.getvalue()


def export_file_name(kind: str, export_format: str) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"{kind}_export_{stamp}.{export_format}"


class Exports:
    @staticmethod
    def physicians(db: Session, export_format: str = "csv") -> str:
        rows = physician_rows(db)
        content = render(rows, PHYSICIAN_FIELDS, export_format)
        logger.info("Exported %d physicians as %s", len(rows), export_format)
        return content

    @staticmethod
    def credentials(db: Session, export_format: str = "csv", today: date | None = None) -> str:
        rows = credential_rows(db, today)
        content = render(rows, CREDENTIAL_FIELDS, export_format)
        logger.info("Exported %d credentials as %s", len(rows), export_format)
        return content


exports = Exports()
