import uuid

from fastapi import HTTPException
from sqlalchemy.orm import Session


def coerce_uuid(value):
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Invalid id: {value}") from exc


def get_or_404(db: Session, model, value, label: str):
    """Load ``model`` by primary key or raise a 404 naming ``label``."""
    instance = db.get(model, coerce_uuid(value))
    if instance is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return instance


def apply_ordering(stmt, order_by, order_dir, allowed_columns):
    if order_by not in allowed_columns:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid order_by. Allowed: {', '.join(sorted(allowed_columns))}",
        )
    if order_dir not in ("asc", "desc"):
        raise HTTPException(status_code=400, detail="Invalid order_dir")
    column = allowed_columns[order_by]
    if order_dir == "desc":
        return stmt.order_by(column.desc())
    return stmt.order_by(column.asc())


def apply_pagination(stmt, limit, offset):
    if limit < 1 or offset < 0:
        raise HTTPException(status_code=400, detail="Invalid limit or offset")
    return stmt.limit(limit).offset(offset)
