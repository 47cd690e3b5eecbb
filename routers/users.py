from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from models import User, Role, Department
from schemas import UserCreate, UserUpdate, UserResponse, UserUpdateResponse, MessageResponse
from auth import get_current_user, get_current_admin, get_password_hash
from routers.common import get_or_404, commit_or_conflict, apply_changes

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["users"]
)

def check_references(db: Session, role_id: Optional[int], department_id: Optional[int]):
    if role_id is not None:
        get_or_404(db, Role, role_id)
    if department_id is not None:
        get_or_404(db, Department, department_id)

@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user: UserCreate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    logger.info(f"Creating user: {user.email}")
    check_references(db, user.role_id, user.department_id)

    data = user.model_dump(exclude={"password"})
    db_user = User(**data, hashed_password=get_password_hash(user.password))
    db.add(db_user)
    commit_or_conflict(db, f"User with email {user.email} already exists")
    db.refresh(db_user)
    return db_user

@router.get("", response_model=List[UserResponse])
def list_users(
    department_id: Optional[int] = None,
    role_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(User)
    if department_id is not None:
        query = query.filter(User.department_id == department_id)
    if role_id is not None:
        query = query.filter(User.role_id == role_id)
    return query.order_by(User.name).all()

@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_or_404(db, User, user_id)

@router.patch("/{user_id}", response_model=UserUpdateResponse)
def update_user(
    user_id: int,
    user_update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not current_user.is_admin and current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only update your own profile"
        )

    db_user = get_or_404(db, User, user_id)
    changes = user_update.model_dump(exclude_unset=True)

    if not current_user.is_admin and ({"role_id", "department_id"} & changes.keys()):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can change roles or departments"
        )
    check_references(db, changes.get("role_id"), changes.get("department_id"))

    password = changes.pop("password", None)
    if password:
        db_user.hashed_password = get_password_hash(password)
    apply_changes(db_user, changes)

    db.commit()
    db.refresh(db_user)
    logger.info(f"Updated user {user_id}")
    return {"message": "User updated successfully", "user": db_user}

@router.delete("/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    if admin.id == user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account"
        )
    db_user = get_or_404(db, User, user_id)
    db.delete(db_user)
    db.commit()
    logger.info(f"Deleted user {user_id}")
    return {"message": "User deleted successfully"}
