"""Credential and background sub-records owned by a physician.

Each record kind gets the same route set: create and list nested under
``/physicians/{physician_id}``, and get/patch/delete/list at the top level.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.db import get_db
from app.models.credential import CredentialStatus, RenewalCycle
from app.models.physician import EducationType, PhysicianStatus
from app.schemas.common import ListResponse
from app.schemas.credential import (
    CertificationCreate,
    CertificationRead,
    CertificationUpdate,
    CsrLicenseCreate,
    CsrLicenseRead,
    CsrLicenseUpdate,
    DeaRegistrationCreate,
    DeaRegistrationRead,
    DeaRegistrationUpdate,
    LicenseCreate,
    LicenseRead,
    LicenseUpdate,
)
from app.schemas.physician import (
    ComplianceRead,
    ComplianceUpsert,
    EducationCreate,
    EducationRead,
    EducationUpdate,
    HospitalAffiliationCreate,
    HospitalAffiliationRead,
    HospitalAffiliationUpdate,
    WorkHistoryCreate,
    WorkHistoryRead,
    WorkHistoryUpdate,
)
from app.services import physician_records as records_service
from app.services.validation import enum_field

router = APIRouter(tags=["physician-records"])


def _record_routes(
    tag: str,
    service,
    create_schema,
    update_schema,
    read_schema,
    default_order: str,
    body_enums: dict | None = None,
):
    enum_deps = [
        Depends(enum_field(field, enum_cls))
        for field, enum_cls in (body_enums or {}).items()
    ]

    @router.post(
        f"/physicians/{{physician_id}}/{tag}",
        response_model=read_schema,
        status_code=status.HTTP_201_CREATED,
        dependencies=enum_deps,
        tags=[tag],
        name=f"create_{tag}",
    )
    def create_record(
        physician_id: str, payload: create_schema, db: Session = Depends(get_db)
    ):
        return service.create(db, physician_id, payload)

    @router.get(
        f"/physicians/{{physician_id}}/{tag}",
        response_model=ListResponse[read_schema],
        tags=[tag],
        name=f"list_physician_{tag}",
    )
    def list_physician_records(
        physician_id: str,
        is_active: bool | None = None,
        expiring_within_days: int | None = Query(default=None, ge=0, le=3650),
        order_by: str = Query(default=default_order),
        order_dir: str = Query(default="asc", pattern="^(asc|desc)$"),
        limit: int = Query(default=50, ge=1, le=200),
        offset: int = Query(default=0, ge=0),
        db: Session = Depends(get_db),
    ):
        records_service.get_physician(db, physician_id)
        return service.list_response(
            db,
            physician_id,
            is_active,
            expiring_within_days,
            order_by,
            order_dir,
            limit,
            offset,
        )

    @router.get(
        f"/{tag}",
        response_model=ListResponse[read_schema],
        tags=[tag],
        name=f"list_{tag}",
    )
    def list_records(
        physician_id: str | None = None,
        is_active: bool | None = None,
        expiring_within_days: int | None = Query(default=None, ge=0, le=3650),
        order_by: str = Query(default=default_order),
        order_dir: str = Query(default="asc", pattern="^(asc|desc)$"),
        limit: int = Query(default=50, ge=1, le=200),
        offset: int = Query(default=0, ge=0),
        db: Session = Depends(get_db),
    ):
        return service.list_response(
            db,
            physician_id,
            is_active,
            expiring_within_days,
            order_by,
            order_dir,
            limit,
            offset,
        )

    @router.get(
        f"/{tag}/{{record_id}}",
        response_model=read_schema,
        tags=[tag],
        name=f"get_{tag}",
    )
    def get_record(record_id: str, db: Session = Depends(get_db)):
        return service.get(db, record_id)

    @router.patch(
        f"/{tag}/{{record_id}}",
        response_model=read_schema,
        dependencies=enum_deps,
        tags=[tag],
        name=f"update_{tag}",
    )
    def update_record(
        record_id: str, payload: update_schema, db: Session = Depends(get_db)
    ):
        return service.update(db, record_id, payload)

    @router.delete(
        f"/{tag}/{{record_id}}",
        status_code=status.HTTP_204_NO_CONTENT,
        tags=[tag],
        name=f"delete_{tag}",
    )
    def delete_record(record_id: str, db: Session = Depends(get_db)):
        service.delete(db, record_id)


# ------------------------------------------------------------------
# Credentials
# ------------------------------------------------------------------

_record_routes(
    "licenses",
    records_service.licenses,
    LicenseCreate,
    LicenseUpdate,
    LicenseRead,
    "expiration_date",
)
_record_routes(
    "dea-registrations",
    records_service.dea_registrations,
    DeaRegistrationCreate,
    DeaRegistrationUpdate,
    DeaRegistrationRead,
    "expiration_date",
    {"status": CredentialStatus},
)
_record_routes(
    "csr-licenses",
    records_service.csr_licenses,
    CsrLicenseCreate,
    CsrLicenseUpdate,
    CsrLicenseRead,
    "expiration_date",
    {"status": CredentialStatus, "renewal_cycle": RenewalCycle},
)
_record_routes(
    "certifications",
    records_service.certifications,
    CertificationCreate,
    CertificationUpdate,
    CertificationRead,
    "expiration_date",
)

# ------------------------------------------------------------------
# Background records
# ------------------------------------------------------------------

_record_routes(
    "education",
    records_service.education,
    EducationCreate,
    EducationUpdate,
    EducationRead,
    "start_date",
    {"education_type": EducationType},
)
_record_routes(
    "work-history",
    records_service.work_history,
    WorkHistoryCreate,
    WorkHistoryUpdate,
    WorkHistoryRead,
    "start_date",
)
_record_routes(
    "hospital-affiliations",
    records_service.hospital_affiliations,
    HospitalAffiliationCreate,
    HospitalAffiliationUpdate,
    HospitalAffiliationRead,
    "start_date",
    {"status": PhysicianStatus},
)


@router.get(
    "/physicians/{physician_id}/compliance",
    response_model=ComplianceRead,
    tags=["compliance"],
)
def get_compliance(physician_id: str, db: Session = Depends(get_db)):
    return records_service.compliance.get(db, physician_id)


@router.put(
    "/physicians/{physician_id}/compliance",
    response_model=ComplianceRead,
    tags=["compliance"],
)
def upsert_compliance(
    physician_id: str, payload: ComplianceUpsert, db: Session = Depends(get_db)
):
    return records_service.compliance.upsert(db, physician_id, payload)
