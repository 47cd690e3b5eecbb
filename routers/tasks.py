from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
import logging

from database import get_db
from models import Task, User, Project, Milestone
from schemas import TaskCreate, TaskUpdate, TaskResponse, TaskUpdateResponse, TaskStatusUpdate, MessageResponse
from auth import get_current_user, get_current_admin
from constants.task_status import TaskStatus
from routers.common import get_or_404, apply_changes
from notifications import send_task_assignment_notification
from datetime_utils import utcnow, to_naive_utc

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"]
)

def apply_status_change(task: Task, new_status: str, now=None):
    """Set the task status, stamping completed_at on the way into done and clearing it on the way out."""
    if new_status == TaskStatus.DONE.value and task.status != TaskStatus.DONE.value:
        task.completed_at = now or utcnow()
    elif new_status != TaskStatus.DONE.value:
        task.completed_at = None
    task.status = new_status

def visible_tasks(db: Session, current_user: User):
    """Admins see every task, everyone else only what is assigned to them."""
    query = db.query(Task).options(joinedload(Task.assignee))
    if not current_user.is_admin:
        query = query.filter(Task.assignee_id == current_user.id)
    return query

def get_visible_task(db: Session, task_id: int, current_user: User) -> Task:
    task = get_or_404(db, Task, task_id)
    if not current_user.is_admin and task.assignee_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not authorized to access this task"
        )
    return task

def notify_assignee(background_tasks: BackgroundTasks, assignee: User, task: Task):
    background_tasks.add_task(
        send_task_assignment_notification,
        assignee.name,
        assignee.email,
        task.id,
        task.title,
        task.description,
        task.due_date,
    )

def check_task_references(db: Session, project_id: Optional[int], milestone_id: Optional[int]):
    if project_id is not None:
        get_or_404(db, Project, project_id)
    if milestone_id is not None:
        milestone = get_or_404(db, Milestone, milestone_id)
        if project_id is not None and milestone.project_id != project_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Milestone {milestone_id} does not belong to project {project_id}"
            )

@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task: TaskCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    logger.info(f"Creating new task: {task.title}")
    if not current_user.is_admin and task.assignee_id not in (None, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can assign tasks to other users"
        )
    check_task_references(db, task.project_id, task.milestone_id)

    data = task.model_dump()
    data["due_date"] = to_naive_utc(data["due_date"])
    if not current_user.is_admin:
        data["assignee_id"] = current_user.id

    assignee = None
    if data["assignee_id"] is not None:
        assignee = get_or_404(db, User, data["assignee_id"])

    status_value = data.pop("status")
    db_task = Task(**data)
    apply_status_change(db_task, status_value)
    db.add(db_task)
    db.commit()
    db.refresh(db_task)

    if assignee is not None and assignee.id != current_user.id:
        notify_assignee(background_tasks, assignee, db_task)
    return db_task

@router.get("", response_model=List[TaskResponse])
def list_tasks(
    skip: int = 0,
    limit: int = 100,
    status: Optional[str] = None,
    priority: Optional[str] = None,
    project_id: Optional[int] = None,
    assignee_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = visible_tasks(db, current_user)

    if status and status.lower() != 'all':
        if not TaskStatus.has_value(status):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid status. Must be one of: {TaskStatus.values() + ['all']}"
            )
        query = query.filter(Task.status == status)
    if priority:
        query = query.filter(Task.priority == priority)
    if project_id is not None:
        query = query.filter(Task.project_id == project_id)
    if assignee_id is not None:
        query = query.filter(Task.assignee_id == assignee_id)

    return (
        query
        .order_by(Task.created_at.desc(), Task.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

@router.get("/status/{task_status}", response_model=List[TaskResponse])
def list_tasks_by_status(
    task_status: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not TaskStatus.has_value(task_status):
        raise HTTPException(
            status_code=400,
            detail=f"Invalid status. Must be one of: {TaskStatus.values()}"
        )
    return visible_tasks(db, current_user).filter(Task.status == task_status).all()

@router.get("/assignee/{user_id}", response_model=List[TaskResponse])
def list_tasks_by_assignee(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not current_user.is_admin and current_user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not authorized to view these tasks"
        )
    get_or_404(db, User, user_id)
    return db.query(Task).filter(Task.assignee_id == user_id).all()

@router.get("/project/{project_id}", response_model=List[TaskResponse])
def list_tasks_by_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_or_404(db, Project, project_id)
    return visible_tasks(db, current_user).filter(Task.project_id == project_id).all()

@router.get("/overdue", response_model=List[TaskResponse])
def list_overdue_tasks(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return (
        visible_tasks(db, current_user)
        .filter(
            Task.due_date < utcnow(),
            Task.status != TaskStatus.DONE.value
        )
        .order_by(Task.due_date.asc())
        .all()
    )

@router.get("/my-tasks", response_model=List[TaskResponse])
def list_my_tasks(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return db.query(Task).filter(Task.assignee_id == current_user.id).order_by(Task.created_at.desc()).all()

@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_visible_task(db, task_id, current_user)

@router.patch("/{task_id}", response_model=TaskUpdateResponse)
def update_task(
    task_id: int,
    task_update: TaskUpdate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    logger.info(f"Updating task with ID: {task_id}")
    task = get_visible_task(db, task_id, current_user)
    changes = task_update.model_dump(exclude_unset=True)

    if "assignee_id" in changes and changes["assignee_id"] != task.assignee_id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can reassign tasks"
        )
    if "project_id" in changes and changes["project_id"] != task.project_id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only admins can change the project of a task"
        )
    check_task_references(db, changes.get("project_id", task.project_id), changes.get("milestone_id"))

    new_assignee = None
    if changes.get("assignee_id") is not None and changes["assignee_id"] != task.assignee_id:
        new_assignee = get_or_404(db, User, changes["assignee_id"])

    if "status" in changes:
        new_status = changes.pop("status")
        if new_status is not None:
            apply_status_change(task, new_status)
    if "due_date" in changes:
        changes["due_date"] = to_naive_utc(changes["due_date"])
    apply_changes(task, changes)

    db.commit()
    db.refresh(task)

    if new_assignee is not None:
        notify_assignee(background_tasks, new_assignee, task)
    return {"message": "Task updated successfully", "task": task}

@router.patch("/{task_id}/status", response_model=dict)
def update_task_status(
    task_id: int,
    status_update: TaskStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update the status of a task."""
    task = get_visible_task(db, task_id, current_user)
    apply_status_change(task, status_update.status)
    db.commit()
    db.refresh(task)

    return {
        "id": task.id,
        "title": task.title,
        "status": task.status,
        "completed_at": task.completed_at,
        "message": "Task status updated successfully"
    }

@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: int,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    task = get_or_404(db, Task, task_id)
    db.delete(task)
    db.commit()
    logger.info(f"Deleted task {task_id}")
    return {"message": "Task deleted successfully"}
