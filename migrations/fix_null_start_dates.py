import os
import sys
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from sqlalchemy.orm import Session
from database import SessionLocal
from models import Project

logger = logging.getLogger(__name__)

def fix_null_start_dates(db: Session) -> int:
    """Give projects without a start_date the date they were created. Returns the number of rows fixed."""
    projects = db.query(Project).filter(Project.start_date.is_(None)).all()
    for project in projects:
        project.start_date = project.created_at.date() if project.created_at else None
    db.commit()
    return sum(1 for project in projects if project.start_date is not None)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    db = SessionLocal()
    try:
        fixed = fix_null_start_dates(db)
        logger.info(f"Updated null start dates on {fixed} projects")
    except Exception as e:
        logger.error(f"Error updating start dates: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()
