from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
import logging

from database import get_db
from models import Role, User
from schemas import RoleCreate, RoleUpdate, RoleResponse, MessageResponse
from auth import get_current_user, get_current_admin
from routers.common import get_or_404, commit_or_conflict, apply_changes

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/roles",
    tags=["roles"]
)

@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
def create_role(
    role: RoleCreate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    logger.info(f"Creating new role: {role.name}")
    db_role = Role(**role.model_dump())
    db.add(db_role)
    commit_or_conflict(db, f"Role '{role.name}' already exists")
    db.refresh(db_role)
    return db_role

@router.get("", response_model=List[RoleResponse])
def list_roles(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    roles = db.query(Role).order_by(Role.name).all()
    logger.info(f"Found {len(roles)} roles")
    return roles

@router.get("/{role_id}", response_model=RoleResponse)
def get_role(
    role_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_or_404(db, Role, role_id)

@router.patch("/{role_id}", response_model=RoleResponse)
def update_role(
    role_id: int,
    role_update: RoleUpdate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    logger.info(f"Updating role with ID: {role_id}")
    db_role = get_or_404(db, Role, role_id)
    apply_changes(db_role, role_update.model_dump(exclude_unset=True))
    commit_or_conflict(db, f"Role '{db_role.name}' already exists")
    db.refresh(db_role)
    return db_role

@router.delete("/{role_id}", response_model=MessageResponse)
def delete_role(
    role_id: int,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    logger.info(f"Removing role with ID: {role_id}")
    db_role = get_or_404(db, Role, role_id)
    # Users keep their account but lose the role
    for user in db_role.users:
        user.role_id = None
    db.delete(db_role)
    db.commit()
    return {"message": "Role deleted successfully"}
