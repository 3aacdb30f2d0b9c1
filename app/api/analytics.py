from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas.analytics import (
    ComplianceSummary,
    CsrMetrics,
    DeaMetrics,
    DocumentCompleteness,
    ExpirationForecast,
    LicenseDistribution,
    LicenseExpirationReport,
    PhysicianStatusSummary,
    ProviderMetrics,
    RenewalTrend,
)
from app.services.analytics import analytics

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/compliance", response_model=ComplianceSummary)
def compliance_rates(db: Session = Depends(get_db)):
    return analytics.compliance(db)


@router.get("/renewal-trends", response_model=list[RenewalTrend])
def renewal_trends(db: Session = Depends(get_db)):
    return analytics.renewal_trends(db)


@router.get("/expiration-forecast", response_model=list[ExpirationForecast])
def expiration_forecast(db: Session = Depends(get_db)):
    return analytics.expiration_forecast(db)


@router.get("/license-distribution", response_model=LicenseDistribution)
def license_distribution(db: Session = Depends(get_db)):
    return analytics.license_distribution(db)


@router.get("/provider-metrics", response_model=list[ProviderMetrics])
def provider_metrics(db: Session = Depends(get_db)):
    return analytics.provider_metrics(db)


@router.get("/dea-metrics", response_model=DeaMetrics)
def dea_metrics(db: Session = Depends(get_db)):
    return analytics.dea_metrics(db)


@router.get("/csr-metrics", response_model=CsrMetrics)
def csr_metrics(db: Session = Depends(get_db)):
    return analytics.csr_metrics(db)


@router.get("/document-completeness", response_model=list[DocumentCompleteness])
def document_completeness(db: Session = Depends(get_db)):
    return analytics.document_completeness(db)


@router.get("/physicians/status-summary", response_model=PhysicianStatusSummary)
def physician_status_summary(db: Session = Depends(get_db)):
    return analytics.physician_status_summary(db)


@router.get("/licenses/expiration-report", response_model=LicenseExpirationReport)
def license_expiration_report(
    days: int = Query(default=90, ge=1, le=365), db: Session = Depends(get_db)
):
    return analytics.license_expiration_report(db, days)
