import logging
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

def get_or_404(db: Session, model, object_id: int, label: str = None):
    """Fetch a row by primary key or raise a 404 naming the entity."""
    instance = db.get(model, object_id)
    if instance is None:
        label = label or model.__name__
        logger.warning(f"{label} with ID {object_id} not found")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} with ID {object_id} not found"
        )
    return instance

def commit_or_conflict(db: Session, detail: str):
    """Commit the session, turning unique-constraint violations into a 409."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error on commit: {str(e.orig)}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail
        )

def apply_changes(instance, changes: dict):
    """Copy update fields onto a row; a null sent for a NOT NULL column leaves it as it was."""
    columns = instance.__table__.columns
    for field, value in changes.items():
        if value is None and field in columns and not columns[field].nullable:
            continue
        setattr(instance, field, value)
