from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
import logging

from database import get_db
from models import Project, ProjectTeamMember, User, Department
from schemas import (
    ProjectCreate, ProjectUpdate, ProjectResponse, ProjectUpdateResponse,
    TeamMemberCreate, TeamMemberResponse, BudgetUpdate, BudgetSummary, MessageResponse
)
from auth import get_current_user, get_current_admin
from constants.enums import BudgetStatus
from routers.common import get_or_404, commit_or_conflict, apply_changes

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/projects",
    tags=["projects"]
)

BUDGET_WARNING_THRESHOLD = 80

def calculate_budget_summary(project: Project) -> dict:
    """Budget usage for a project.

    Spending comes from the project's own budget_spent when it is recorded,
    otherwise from the money spent on its tasks.
    """
    if project.budget_spent is not None:
        spent = project.budget_spent
    else:
        spent = sum(task.money_spent or 0 for task in project.tasks)

    budget = project.budget
    if not budget:
        return {
            "project_id": project.id,
            "budget": budget,
            "spent": spent,
            "remaining": None,
            "currency": project.budget_currency or "USD",
            "utilization": 0,
            "status": BudgetStatus.NONE.value,
        }

    percentage = spent / budget * 100
    if percentage > 100:
        budget_status = BudgetStatus.OVER_BUDGET
    elif percentage > BUDGET_WARNING_THRESHOLD:
        budget_status = BudgetStatus.WARNING
    else:
        budget_status = BudgetStatus.ON_TRACK

    return {
        "project_id": project.id,
        "budget": budget,
        "spent": spent,
        "remaining": budget - spent,
        "currency": project.budget_currency or "USD",
        "utilization": round(min(percentage, 100), 1),
        "status": budget_status.value,
    }

def check_references(db: Session, manager_id: Optional[int], department_id: Optional[int]):
    if manager_id is not None:
        get_or_404(db, User, manager_id)
    if department_id is not None:
        get_or_404(db, Department, department_id)

@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    project: ProjectCreate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    logger.info(f"Creating project: {project.name}")
    check_references(db, project.manager_id, project.department_id)
    db_project = Project(**project.model_dump())
    db.add(db_project)
    db.commit()
    db.refresh(db_project)
    return db_project

@router.get("", response_model=List[ProjectResponse])
def list_projects(
    status: Optional[str] = None,
    department_id: Optional[int] = None,
    manager_id: Optional[int] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    query = db.query(Project)
    if status:
        query = query.filter(Project.status == status)
    if department_id is not None:
        query = query.filter(Project.department_id == department_id)
    if manager_id is not None:
        query = query.filter(Project.manager_id == manager_id)
    return query.order_by(Project.created_at.desc()).all()

@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_or_404(db, Project, project_id)

@router.patch("/{project_id}", response_model=ProjectUpdateResponse)
def update_project(
    project_id: int,
    project_update: ProjectUpdate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    logger.info(f"Updating project with ID: {project_id}")
    db_project = get_or_404(db, Project, project_id)
    changes = project_update.model_dump(exclude_unset=True)
    check_references(db, changes.get("manager_id"), changes.get("department_id"))

    start_date = changes.get("start_date", db_project.start_date)
    end_date = changes.get("end_date", db_project.end_date)
    if start_date and end_date and end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="end_date cannot be before start_date"
        )

    apply_changes(db_project, changes)
    db.commit()
    db.refresh(db_project)
    return {"message": "Project updated successfully", "project": db_project}

@router.delete("/{project_id}", response_model=MessageResponse)
def delete_project(
    project_id: int,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    logger.info(f"Removing project with ID: {project_id}")
    db_project = get_or_404(db, Project, project_id)
    db.delete(db_project)
    db.commit()
    return {"message": "Project deleted successfully"}

# Team members

@router.get("/{project_id}/team", response_model=List[TeamMemberResponse])
def get_project_team(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    get_or_404(db, Project, project_id)
    return (
        db.query(ProjectTeamMember)
        .options(joinedload(ProjectTeamMember.user))
        .filter(ProjectTeamMember.project_id == project_id)
        .order_by(ProjectTeamMember.joined_at)
        .all()
    )

@router.post("/{project_id}/team", response_model=TeamMemberResponse, status_code=status.HTTP_201_CREATED)
def add_team_member(
    project_id: int,
    member: TeamMemberCreate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    get_or_404(db, Project, project_id)
    get_or_404(db, User, member.user_id)

    existing_membership = (
        db.query(ProjectTeamMember)
        .filter(
            ProjectTeamMember.project_id == project_id,
            ProjectTeamMember.user_id == member.user_id
        )
        .first()
    )
    if existing_membership:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"User {member.user_id} is already a member of this project"
        )

    team_member = ProjectTeamMember(project_id=project_id, user_id=member.user_id, role=member.role)
    db.add(team_member)
    commit_or_conflict(db, f"User {member.user_id} is already a member of this project")
    db.refresh(team_member)
    logger.info(f"Added user {member.user_id} to project {project_id} as {member.role}")
    return team_member

@router.delete("/{project_id}/team/{user_id}", response_model=MessageResponse)
def remove_team_member(
    project_id: int,
    user_id: int,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    team_member = (
        db.query(ProjectTeamMember)
        .filter(
            ProjectTeamMember.project_id == project_id,
            ProjectTeamMember.user_id == user_id
        )
        .first()
    )
    if not team_member:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User {user_id} is not a member of project {project_id}"
        )
    db.delete(team_member)
    db.commit()
    return {"message": "Team member removed successfully"}

# Budget

@router.get("/{project_id}/budget", response_model=BudgetSummary)
def get_project_budget(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return calculate_budget_summary(get_or_404(db, Project, project_id))

@router.put("/{project_id}/budget", response_model=BudgetSummary)
def set_project_budget(
    project_id: int,
    budget: BudgetUpdate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    db_project = get_or_404(db, Project, project_id)
    db_project.budget = budget.budget
    db_project.budget_spent = budget.budget_spent
    db_project.budget_currency = budget.budget_currency.upper()
    db.commit()
    db.refresh(db_project)
    return calculate_budget_summary(db_project)

@router.delete("/{project_id}/budget", response_model=BudgetSummary)
def clear_project_budget(
    project_id: int,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    db_project = get_or_404(db, Project, project_id)
    db_project.budget = None
    db_project.budget_spent = None
    db_project.budget_currency = None
    db.commit()
    db.refresh(db_project)
    return calculate_budget_summary(db_project)
