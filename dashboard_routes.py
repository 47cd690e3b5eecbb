from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session
from datetime import datetime
from typing import List, Dict
import logging
from database import get_db
from models import Task, User
from auth import get_current_user
from constants.task_status import TaskStatus
from datetime_utils import utcnow
from dashboard_schemas import (
    DashboardStats, AssigneeInfo, UserActivityInfo,
    LongOpenTask, OverdueTask
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"])

OVERDUE_HIGH_PRIORITY_DAYS = 7

def calculate_days_difference(date: datetime, now: datetime = None) -> int:
    if not date:
        return 0
    return ((now or utcnow()) - date).days

def display_name(user: User) -> str:
    return user.name or user.email or f"User {user.id}"

def get_task_stats(db: Session) -> Dict:
    # Get counts for each status
    status_counts = {task_status: 0 for task_status in TaskStatus.values()}
    status_counts.update(
        db.query(Task.status, func.count(Task.id))
        .group_by(Task.status)
        .all()
    )

    # Add overdue count
    overdue_count = db.query(func.count(Task.id)).filter(
        Task.due_date < utcnow(),
        Task.status != TaskStatus.DONE.value
    ).scalar()

    status_counts['overdue'] = overdue_count or 0

    # Calculate completion rates
    total_tasks = sum(count for task_status, count in status_counts.items() if task_status != 'overdue')
    if total_tasks > 0:
        completion_rate = {
            task_status: round((status_counts[task_status] / total_tasks) * 100, 2)
            for task_status in TaskStatus.values()
        }
    else:
        completion_rate = {task_status: 0 for task_status in TaskStatus.values()}

    return {
        'status_counts': status_counts,
        'completion_rate': completion_rate
    }

def get_user_activity(db: Session) -> Dict[str, List[UserActivityInfo]]:
    user_stats = (
        db.query(
            User,
            func.count(Task.id).label('task_count'),
            func.max(Task.updated_at).label('last_active')
        )
        .outerjoin(Task, Task.assignee_id == User.id)
        .group_by(User.id)
        .all()
    )

    # Busiest first
    user_stats.sort(key=lambda x: (x[1], x[2] or datetime.min), reverse=True)

    def create_user_activity(user_stat) -> UserActivityInfo:
        user, task_count, last_active = user_stat
        return UserActivityInfo(
            id=user.id,
            name=display_name(user),
            task_count=task_count,
            last_active=last_active or user.created_at
        )

    return {
        'most_active_users': [create_user_activity(stat) for stat in user_stats[:3]],
        'inactive_users': [create_user_activity(stat) for stat in user_stats[-3:]]
    }

def get_longest_open_tasks(db: Session) -> List[LongOpenTask]:
    tasks = (
        db.query(Task, User)
        .join(User, Task.assignee_id == User.id)
        .filter(Task.status != TaskStatus.DONE.value)
        .order_by(Task.created_at.asc())
        .limit(5)
        .all()
    )

    return [
        LongOpenTask(
            id=task.id,
            title=task.title,
            assignee=AssigneeInfo(id=user.id, name=display_name(user)),
            created_at=task.created_at,
            days_open=calculate_days_difference(task.created_at),
            status=task.status
        ) for task, user in tasks
    ]

def get_overdue_tasks(db: Session) -> List[OverdueTask]:
    current_time = utcnow()
    tasks = (
        db.query(Task, User)
        .join(User, Task.assignee_id == User.id)
        .filter(
            Task.due_date < current_time,
            Task.status != TaskStatus.DONE.value
        )
        .order_by(Task.due_date.asc())
        .limit(10)
        .all()
    )

    overdue = []
    for task, user in tasks:
        days_overdue = calculate_days_difference(task.due_date, current_time)
        overdue.append(OverdueTask(
            id=task.id,
            title=task.title,
            assignee=AssigneeInfo(id=user.id, name=display_name(user)),
            due_date=task.due_date,
            days_overdue=days_overdue,
            priority="high" if days_overdue > OVERDUE_HIGH_PRIORITY_DAYS else "medium"
        ))
    return overdue

@router.get("/dashboard/stats", response_model=DashboardStats)
def get_dashboard_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get comprehensive dashboard statistics including:
    - Task status counts and completion rates
    - User activity metrics
    - Longest open tasks
    - Overdue tasks
    """
    try:
        task_stats = get_task_stats(db)
        user_activity = get_user_activity(db)

        return DashboardStats(
            status_counts=task_stats['status_counts'],
            completion_rate=task_stats['completion_rate'],
            most_active_users=user_activity['most_active_users'],
            inactive_users=user_activity['inactive_users'],
            longest_open_tasks=get_longest_open_tasks(db),
            overdue_tasks=get_overdue_tasks(db)
        )
    except Exception as e:
        logger.error(f"Error retrieving dashboard statistics: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Error retrieving dashboard statistics: {str(e)}"
        )
