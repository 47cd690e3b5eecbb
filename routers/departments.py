from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
import logging

from database import get_db
from models import Department, User
from schemas import DepartmentCreate, DepartmentUpdate, DepartmentResponse, UserResponse, MessageResponse
from auth import get_current_user, get_current_admin
from routers.common import get_or_404, commit_or_conflict, apply_changes

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/departments",
    tags=["departments"]
)

@router.post("", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
def create_department(
    department: DepartmentCreate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    logger.info(f"Creating new department: {department.name}")
    db_department = Department(**department.model_dump())
    db.add(db_department)
    commit_or_conflict(db, f"Department '{department.name}' already exists")
    db.refresh(db_department)
    return db_department

@router.get("", response_model=List[DepartmentResponse])
def list_departments(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    departments = db.query(Department).order_by(Department.name).all()
    logger.info(f"Found {len(departments)} departments")
    return departments

@router.get("/{department_id}", response_model=DepartmentResponse)
def get_department(
    department_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_or_404(db, Department, department_id)

@router.get("/{department_id}/users", response_model=List[UserResponse])
def list_department_users(
    department_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_or_404(db, Department, department_id)
    return db.query(User).filter(User.department_id == department_id).order_by(User.name).all()

@router.patch("/{department_id}", response_model=DepartmentResponse)
def update_department(
    department_id: int,
    department_update: DepartmentUpdate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    logger.info(f"Updating department with ID: {department_id}")
    db_department = get_or_404(db, Department, department_id)
    apply_changes(db_department, department_update.model_dump(exclude_unset=True))
    commit_or_conflict(db, f"Department '{db_department.name}' already exists")
    db.refresh(db_department)
    return db_department

@router.delete("/{department_id}", response_model=MessageResponse)
def delete_department(
    department_id: int,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    logger.info(f"Removing department with ID: {department_id}")
    db_department = get_or_404(db, Department, department_id)
    for user in db_department.users:
        user.department_id = None
    for project in db_department.projects:
        project.department_id = None
    db.delete(db_department)
    db.commit()
    return {"message": "Department deleted successfully"}
