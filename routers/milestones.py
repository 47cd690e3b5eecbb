from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
import logging

from database import get_db
from models import Milestone, Project, User
from schemas import MilestoneCreate, MilestoneUpdate, MilestoneResponse, MessageResponse
from auth import get_current_user, get_current_admin
from constants.enums import MilestoneStatus
from constants.task_status import TaskStatus
from routers.common import get_or_404, apply_changes
from datetime_utils import to_naive_utc

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/milestones",
    tags=["milestones"]
)

def derive_milestone_status(task_statuses, current_status: str) -> str:
    """Milestone status implied by the statuses of its tasks.

    A milestone without tasks keeps whatever status it has.
    """
    task_statuses = list(task_statuses)
    if not task_statuses:
        return current_status

    completed = sum(1 for task_status in task_statuses if task_status == TaskStatus.DONE.value)
    if completed == 0:
        return MilestoneStatus.NOT_STARTED.value
    if completed == len(task_statuses):
        return MilestoneStatus.COMPLETED.value
    return MilestoneStatus.IN_PROGRESS.value

@router.get("", response_model=List[MilestoneResponse])
def list_milestones(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return db.query(Milestone).order_by(Milestone.project_id, Milestone.id).all()

@router.get("/project/{project_id}", response_model=List[MilestoneResponse])
def list_project_milestones(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_or_404(db, Project, project_id)
    milestones = db.query(Milestone).filter(Milestone.project_id == project_id).all()
    # Milestones without a deadline go last
    return sorted(milestones, key=lambda m: (m.deadline is None, m.deadline or m.created_at))

@router.get("/{milestone_id}", response_model=MilestoneResponse)
def get_milestone(
    milestone_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_or_404(db, Milestone, milestone_id)

@router.post("", response_model=MilestoneResponse, status_code=status.HTTP_201_CREATED)
def create_milestone(
    milestone: MilestoneCreate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    get_or_404(db, Project, milestone.project_id)
    data = milestone.model_dump()
    data["deadline"] = to_naive_utc(data["deadline"])
    db_milestone = Milestone(**data)
    db.add(db_milestone)
    db.commit()
    db.refresh(db_milestone)
    logger.info(f"Created milestone {db_milestone.id} for project {milestone.project_id}")
    return db_milestone

@router.put("/{milestone_id}", response_model=MilestoneResponse)
def update_milestone(
    milestone_id: int,
    milestone_update: MilestoneUpdate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    db_milestone = get_or_404(db, Milestone, milestone_id)
    changes = milestone_update.model_dump(exclude_unset=True)

    if changes.get("project_id") and changes["project_id"] != db_milestone.project_id:
        get_or_404(db, Project, changes["project_id"])
    elif "project_id" in changes and changes["project_id"] is None:
        changes.pop("project_id")
    if "deadline" in changes:
        changes["deadline"] = to_naive_utc(changes["deadline"])

    apply_changes(db_milestone, changes)
    db.commit()
    db.refresh(db_milestone)
    return db_milestone

@router.delete("/{milestone_id}", response_model=MessageResponse)
def delete_milestone(
    milestone_id: int,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    db_milestone = get_or_404(db, Milestone, milestone_id)
    db.delete(db_milestone)
    db.commit()
    return {"message": "Milestone deleted successfully"}

@router.put("/{milestone_id}/update-status", response_model=MilestoneResponse)
def update_milestone_status(
    milestone_id: int,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    db_milestone = get_or_404(db, Milestone, milestone_id)
    new_status = derive_milestone_status((task.status for task in db_milestone.tasks), db_milestone.status)

    if new_status != db_milestone.status:
        logger.info(f"Milestone {milestone_id} status {db_milestone.status} -> {new_status}")
        db_milestone.status = new_status
        db.commit()
        db.refresh(db_milestone)
    return db_milestone
