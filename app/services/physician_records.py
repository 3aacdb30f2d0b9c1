"""CRUD for records hanging off a physician.

Credentials (licenses, DEA registrations, CSR licenses, certifications) and
background records (education, work history, hospital affiliations) share one
service shape; each table gets its own ``PhysicianRecords`` instance.
Records are never hard-deleted: DELETE clears ``is_active``.
"""

from __future__ import annotations

import enum
import logging
from datetime import date, timedelta

from fastapi import HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.models.credential import (
    CredentialStatus,
    CsrLicense,
    DeaRegistration,
    PhysicianCertification,
    PhysicianLicense,
    RenewalCycle,
)
from app.models.physician import (
    EducationType,
    Physician,
    PhysicianCompliance,
    PhysicianEducation,
    PhysicianHospitalAffiliation,
    PhysicianStatus,
    PhysicianWorkHistory,
)
from app.schemas.physician import ComplianceUpsert
from app.services.common import (
    apply_ordering,
    coerce_uuid,
    get_or_404,
    paginate,
)
from app.services.response import ListResponseMixin
from app.services.validation import validate_enum

logger = logging.getLogger(__name__)


def get_physician(db: Session, physician_id) -> Physician:
    return get_or_404(db, Physician, physician_id, "Physician")


def _check_date_order(start: date | None, end: date | None, start_label: str, end_label: str):
    if start and end and end < start:
        raise HTTPException(
            status_code=400, detail=f"{end_label} must not be before {start_label}"
        )


class PhysicianRecords(ListResponseMixin):
    def __init__(
        self,
        model,
        label: str,
        enum_fields: dict[str, type[enum.Enum]] | None = None,
        date_range: tuple[str, str] | None = None,
        order_columns: tuple[str, ...] = (),
    ):
        self.model = model
        self.label = label
        self.enum_fields = enum_fields or {}
        self.date_range = date_range
        self.order_columns = ("created_at",) + order_columns

    def _coerce(self, data: dict) -> dict:
        for field, enum_cls in self.enum_fields.items():
            if field in data and data[field] is not None:
                data[field] = validate_enum(field, data[field], enum_cls)
        return data

    def _check_dates(self, values: dict) -> None:
        if self.date_range:
            start, end = self.date_range
            _check_date_order(
                values.get(start),
                values.get(end),
                start.replace("_", " "),
                end.replace("_", " ").capitalize(),
            )

    def create(self, db: Session, physician_id: str, payload: BaseModel):
        physician = get_physician(db, physician_id)
        data = self._coerce(payload.model_dump())
        self._check_dates(data)
        record = self.model(physician_id=physician.id, **data)
        db.add(record)
        db.commit()
        db.refresh(record)
        logger.info("Created %s %s", self.label.lower(), record.id)
        return record

    def get(self, db: Session, record_id: str):
        return get_or_404(db, self.model, record_id, self.label)

    def list(
        self,
        db: Session,
        physician_id: str | None,
        is_active: bool | None,
        expiring_within_days: int | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ):
        query = db.query(self.model)
        if physician_id:
            query = query.filter(self.model.physician_id == coerce_uuid(physician_id))
        if is_active is None:
            query = query.filter(self.model.is_active.is_(True))
        else:
            query = query.filter(self.model.is_active == is_active)
        if expiring_within_days is not None:
            if not hasattr(self.model, "expiration_date"):
                raise HTTPException(
                    status_code=400,
                    detail=f"{self.label} records do not expire",
                )
            cutoff = date.today() + timedelta(days=expiring_within_days)
            query = query.filter(self.model.expiration_date.isnot(None)).filter(
                self.model.expiration_date <= cutoff
            )
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {name: getattr(self.model, name) for name in self.order_columns},
        )
        return paginate(query, limit, offset)

    def update(self, db: Session, record_id: str, payload: BaseModel):
        record = self.get(db, record_id)
        data = self._coerce(payload.model_dump(exclude_unset=True))
        if self.date_range:
            current = {name: getattr(record, name) for name in self.date_range}
            self._check_dates({**current, **data})
        for key, value in data.items():
            setattr(record, key, value)
        self._reactivate_on_renewal(record, data)
        db.commit()
        db.refresh(record)
        logger.info("Updated %s %s", self.label.lower(), record.id)
        return record

    @staticmethod
    def _reactivate_on_renewal(record, data: dict) -> None:
        # a renewed expiration date lifts a lapsed stored status
        if "expiration_date" not in data or "status" in data:
            return
        if not isinstance(getattr(record, "status", None), CredentialStatus):
            return
        if record.expiration_date and record.expiration_date >= date.today():
            if record.status != CredentialStatus.active:
                record.status = CredentialStatus.active

    def delete(self, db: Session, record_id: str) -> None:
        record = self.get(db, record_id)
        record.is_active = False
        db.commit()
        logger.info("Deactivated %s %s", self.label.lower(), record.id)


class ComplianceRecords:
    @staticmethod
    def get(db: Session, physician_id: str) -> PhysicianCompliance:
        physician = get_physician(db, physician_id)
        record = (
            db.query(PhysicianCompliance)
            .filter(PhysicianCompliance.physician_id == physician.id)
            .first()
        )
        if not record:
            raise HTTPException(status_code=404, detail="Compliance record not found")
        return record

    @staticmethod
    def upsert(
        db: Session, physician_id: str, payload: ComplianceUpsert
    ) -> PhysicianCompliance:
        physician = get_physician(db, physician_id)
        record = (
            db.query(PhysicianCompliance)
            .filter(PhysicianCompliance.physician_id == physician.id)
            .first()
        )
        if not record:
            record = PhysicianCompliance(physician_id=physician.id)
            db.add(record)
        for key, value in payload.model_dump().items():
            setattr(record, key, value)
        db.commit()
        db.refresh(record)
        logger.info("Saved compliance attestation for physician %s", physician.id)
        return record


licenses = PhysicianRecords(
    PhysicianLicense,
    "License",
    date_range=("issue_date", "expiration_date"),
    order_columns=("expiration_date", "state"),
)
dea_registrations = PhysicianRecords(
    DeaRegistration,
    "DEA registration",
    enum_fields={"status": CredentialStatus},
    date_range=("issue_date", "expiration_date"),
    order_columns=("expiration_date", "state"),
)
csr_licenses = PhysicianRecords(
    CsrLicense,
    "CSR license",
    enum_fields={"status": CredentialStatus, "renewal_cycle": RenewalCycle},
    date_range=("issue_date", "expiration_date"),
    order_columns=("expiration_date", "state"),
)
certifications = PhysicianRecords(
    PhysicianCertification,
    "Certification",
    date_range=("certification_date", "expiration_date"),
    order_columns=("expiration_date", "specialty"),
)
education = PhysicianRecords(
    PhysicianEducation,
    "Education record",
    enum_fields={"education_type": EducationType},
    date_range=("start_date", "completion_date"),
    order_columns=("start_date",),
)
work_history = PhysicianRecords(
    PhysicianWorkHistory,
    "Work history record",
    date_range=("start_date", "end_date"),
    order_columns=("start_date",),
)
hospital_affiliations = PhysicianRecords(
    PhysicianHospitalAffiliation,
    "Hospital affiliation",
    enum_fields={"status": PhysicianStatus},
    date_range=("start_date", "end_date"),
    order_columns=("start_date", "hospital_name"),
)
compliance = ComplianceRecords()
