import uuid

from fastapi import HTTPException


def coerce_uuid(value):
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid identifier: {value}")


def apply_ordering(query, order_by, order_dir, allowed_columns):
    if order_by not in allowed_columns:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid order_by. Allowed: {', '.join(sorted(allowed_columns))}",
        )
    column = allowed_columns[order_by]
    if order_dir == "desc":
        return query.order_by(column.desc())
    return query.order_by(column.asc())


def apply_pagination(query, limit, offset):
    return query.limit(limit).offset(offset)


class Page(list):
    """One page of results; ``total`` counts every row matching the filters."""

    total: int = 0


def paginate(query, limit, offset) -> Page:
    page = Page(apply_pagination(query, limit, offset).all())
    page.total = query.order_by(None).count()
    return page


def get_or_404(db, model, entity_id, label: str):
    instance = db.get(model, coerce_uuid(entity_id))
    if not instance:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return instance
