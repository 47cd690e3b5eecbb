from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import date, datetime, time
from typing import List, Optional
import logging

from database import get_db
from models import AccuracyRating, Task, User
from auth import get_current_user, get_current_admin
from routers.common import get_or_404
import analytics
from analytics import AnalyticsFilter, DateRange
from analytics_schemas import (
    DashboardMetrics, TaskCompletionMetrics, TimeMetrics, CategoryShare,
    DailyActivity, EfficiencyMetrics, OverdueMetrics, TeamMemberPerformance,
    MonthlyTrend, UserTaskStatistics, ProjectStatistics, RateTaskRequest,
    AccuracyRatingResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/analytics",
    tags=["analytics"]
)

def get_analytics_filter(
    user_id: Optional[int] = None,
    department_id: Optional[int] = None,
    project_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(get_current_user)
) -> AnalyticsFilter:
    """Query parameters shared by the dashboard metrics.

    The date range only applies when both ends are given and covers the whole
    end day.
    """
    if user_id is not None and user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only view analytics for yourself"
        )

    date_range = None
    if start_date and end_date:
        if end_date < start_date:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="end_date cannot be before start_date"
            )
        date_range = DateRange(datetime.combine(start_date, time.min), datetime.combine(end_date, time.max))

    return AnalyticsFilter(
        user_id=user_id,
        department_id=department_id,
        project_id=project_id,
        date_range=date_range,
    )

# Per-user and per-project statistics

@router.get("", response_model=List[UserTaskStatistics])
def get_all_user_analytics(
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return analytics.get_all_user_statistics(db)

@router.get("/current-user", response_model=UserTaskStatistics)
def get_current_user_analytics(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return analytics.get_user_task_statistics(db, current_user)

@router.get("/user/{user_id}", response_model=UserTaskStatistics)
def get_user_analytics(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if user_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only view analytics for yourself"
        )
    user = get_or_404(db, User, user_id)
    return analytics.get_user_task_statistics(db, user)

@router.get("/projects", response_model=List[ProjectStatistics])
def get_project_analytics(
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return analytics.get_project_statistics(db)

@router.post("/rate-task", response_model=AccuracyRatingResponse, status_code=status.HTTP_201_CREATED)
def rate_task(
    rating: RateTaskRequest,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    get_or_404(db, Task, rating.task_id)
    get_or_404(db, User, rating.user_id)

    db_rating = AccuracyRating(admin_id=admin.id, **rating.model_dump())
    db.add(db_rating)
    db.commit()
    db.refresh(db_rating)
    logger.info(f"Task {rating.task_id} rated for user {rating.user_id} by admin {admin.id}")
    return db_rating

# Dashboard metrics

@router.get("/dashboard", response_model=DashboardMetrics)
def get_dashboard(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    db: Session = Depends(get_db)
):
    return analytics.get_dashboard_metrics(db, filters)

@router.get("/task-completion", response_model=TaskCompletionMetrics)
def get_task_completion(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    db: Session = Depends(get_db)
):
    return analytics.get_metric(db, filters, "task_completion")

@router.get("/time-metrics", response_model=TimeMetrics)
def get_time_metrics(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    db: Session = Depends(get_db)
):
    return analytics.get_metric(db, filters, "time_metrics")

@router.get("/category-distribution", response_model=List[CategoryShare])
def get_category_distribution(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    db: Session = Depends(get_db)
):
    return analytics.get_metric(db, filters, "category_distribution")

@router.get("/weekly-activity", response_model=List[DailyActivity])
def get_weekly_activity(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    db: Session = Depends(get_db)
):
    return analytics.get_metric(db, filters, "weekly_activity")

@router.get("/efficiency", response_model=EfficiencyMetrics)
def get_efficiency(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    db: Session = Depends(get_db)
):
    return analytics.get_metric(db, filters, "efficiency")

@router.get("/overdue", response_model=OverdueMetrics)
def get_overdue(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    db: Session = Depends(get_db)
):
    return analytics.get_metric(db, filters, "overdue")

@router.get("/team-performance", response_model=List[TeamMemberPerformance])
def get_team_performance(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    db: Session = Depends(get_db)
):
    return analytics.get_team_performance(db, filters)

@router.get("/monthly-trends", response_model=List[MonthlyTrend])
def get_monthly_trends(
    filters: AnalyticsFilter = Depends(get_analytics_filter),
    db: Session = Depends(get_db)
):
    return analytics.get_monthly_trends(db, filters)
