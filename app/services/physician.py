from __future__ import annotations

import logging

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.physician import (
    ClinicianType,
    Gender,
    Physician,
    PhysicianStatus,
    ProviderRole,
)
from app.schemas.physician import PhysicianCreate, PhysicianUpdate
from app.services.common import (
    apply_ordering,
    coerce_uuid,
    get_or_404,
    paginate,
)
from app.services.response import ListResponseMixin
from app.services.validation import validate_enum

logger = logging.getLogger(__name__)

_ENUM_FIELDS = {
    "gender": Gender,
    "provider_role": ProviderRole,
    "clinician_type": ClinicianType,
    "status": PhysicianStatus,
}


def _coerce_enums(data: dict) -> dict:
    for field, enum_cls in _ENUM_FIELDS.items():
        if field in data and data[field] is not None:
            data[field] = validate_enum(field, data[field], enum_cls)
    return data


def _ensure_npi_available(db: Session, npi: str | None, physician_id=None) -> None:
    if not npi:
        return
    query = db.query(Physician).filter(Physician.npi == npi)
    if physician_id is not None:
        query = query.filter(Physician.id != physician_id)
    if query.first():
        raise HTTPException(status_code=409, detail="NPI already in use")


def _ensure_physician_exists(db: Session, physician_id, label: str) -> None:
    if physician_id and not db.get(Physician, coerce_uuid(physician_id)):
        raise HTTPException(status_code=404, detail=f"{label} not found")


class Physicians(ListResponseMixin):
    @staticmethod
    def create(db: Session, payload: PhysicianCreate, created_by=None) -> Physician:
        data = _coerce_enums(payload.model_dump())
        _ensure_npi_available(db, data.get("npi"))
        _ensure_physician_exists(
            db, data.get("supervising_physician_id"), "Supervising physician"
        )
        _ensure_physician_exists(
            db, data.get("collaboration_physician_id"), "Collaborating physician"
        )
        physician = Physician(**data, created_by=created_by)
        db.add(physician)
        db.commit()
        db.refresh(physician)
        logger.info("Created physician %s", physician.id)
        return physician

    @staticmethod
    def get(db: Session, physician_id: str) -> Physician:
        return get_or_404(db, Physician, physician_id, "Physician")

    @staticmethod
    def list(
        db: Session,
        search: str | None,
        status: str | None,
        provider_role: str | None,
        clinician_type: str | None,
        is_active: bool | None,
        order_by: str,
        order_dir: str,
        limit: int,
        offset: int,
    ) -> list[Physician]:
        query = db.query(Physician)
        if search:
            pattern = f"%{search.strip().lower()}%"
            query = query.filter(
                func.lower(Physician.full_legal_name).like(pattern)
                | (Physician.npi == search.strip())
            )
        if status:
            query = query.filter(
                Physician.status == validate_enum("status", status, PhysicianStatus)
            )
        if provider_role:
            query = query.filter(
                Physician.provider_role
                == validate_enum("provider_role", provider_role, ProviderRole)
            )
        if clinician_type:
            query = query.filter(
                Physician.clinician_type
                == validate_enum("clinician_type", clinician_type, ClinicianType)
            )
        if is_active is None:
            query = query.filter(Physician.is_active.is_(True))
        else:
            query = query.filter(Physician.is_active == is_active)
        query = apply_ordering(
            query,
            order_by,
            order_dir,
            {
                "created_at": Physician.created_at,
                "updated_at": Physician.updated_at,
                "full_legal_name": Physician.full_legal_name,
                "status": Physician.status,
            },
        )
        return paginate(query, limit, offset)

    @staticmethod
    def update(db: Session, physician_id: str, payload: PhysicianUpdate) -> Physician:
        physician = Physicians.get(db, physician_id)
        data = _coerce_enums(payload.model_dump(exclude_unset=True))
        if "npi" in data:
            _ensure_npi_available(db, data["npi"], physician.id)
        for field, label in (
            ("supervising_physician_id", "Supervising physician"),
            ("collaboration_physician_id", "Collaborating physician"),
        ):
            if data.get(field) == physician.id:
                raise HTTPException(
                    status_code=400, detail=f"{label} cannot be the physician itself"
                )
            if field in data:
                _ensure_physician_exists(db, data[field], label)
        for key, value in data.items():
            setattr(physician, key, value)
        db.commit()
        db.refresh(physician)
        logger.info("Updated physician %s", physician.id)
        return physician

    @staticmethod
    def delete(db: Session, physician_id: str) -> None:
        physician = Physicians.get(db, physician_id)
        physician.is_active = False
        physician.status = PhysicianStatus.inactive
        db.commit()
        logger.info("Deactivated physician %s", physician.id)


physicians = Physicians()
