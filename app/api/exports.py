from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from starlette.responses import Response

from app.db import get_db
from app.services.export import export_file_name, exports

router = APIRouter(prefix="/exports", tags=["exports"])

_MEDIA_TYPES = {"csv": "text/csv", "json": "application/json"}


def _download(content: str, kind: str, export_format: str) -> Response:
    return Response(
        content=content,
        media_type=_MEDIA_TYPES[export_format],
        headers={
            "Content-Disposition": (
                f'attachment; filename="{export_file_name(kind, export_format)}"'
            )
        },
    )


@router.get("/physicians")
def export_physicians(
    export_format: str = Query(default="csv", alias="format", pattern="^(csv|json)$"),
    db: Session = Depends(get_db),
):
    return _download(exports.physicians(db, export_format), "physicians", export_format)


@router.get("/credentials")
def export_credentials(
    export_format: str = Query(default="csv", alias="format", pattern="^(csv|json)$"),
    db: Session = Depends(get_db),
):
    return _download(
        exports.credentials(db, export_format), "credentials", export_format
    )
