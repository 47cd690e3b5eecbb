"""Dashboard analytics.

Rows are fetched once per request with the caller's filters applied and every
metric is plain counting over those rows. The calculation functions take
already-loaded tasks so they can be used (and tested) without a database; the
``get_*`` functions wrap them with loading and the log-and-default error
handling the dashboard relies on.
"""
import logging
from collections import namedtuple
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from constants.enums import PRIORITY_HOURS, HOURS_PER_COMPLETED_TASK
from constants.task_status import TaskStatus
from datetime_utils import utcnow
from models import Task, User, Project, AccuracyRating

logger = logging.getLogger(__name__)

DateRange = namedtuple("DateRange", ["start", "end"])
ComparisonRanges = namedtuple("ComparisonRanges", ["current", "previous"])

WEEKDAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
TREND_MONTHS = 6
MAX_TIME_EFFICIENCY = 200

@dataclass
class AnalyticsFilter:
    user_id: Optional[int] = None
    department_id: Optional[int] = None
    project_id: Optional[int] = None
    date_range: Optional[DateRange] = None

# Helpers

def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round like a dashboard expects (2.5 -> 3), not banker's rounding."""
    exponent = Decimal(1).scaleb(-ndigits)
    # + 0.0 turns a rounded -0.0 into 0.0
    return float(Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)) + 0.0

def percentage(part: float, whole: float) -> float:
    return part / whole * 100 if whole > 0 else 0

def in_range(timestamp: Optional[datetime], date_range: DateRange, end_exclusive: bool = False) -> bool:
    if timestamp is None:
        return False
    if end_exclusive:
        return date_range.start <= timestamp < date_range.end
    return date_range.start <= timestamp <= date_range.end

def is_done(task) -> bool:
    return task.status == TaskStatus.DONE.value

def completion_timestamp(task) -> Optional[datetime]:
    """When a done task was finished; rows completed before completed_at existed fall back to updated_at."""
    return task.completed_at or task.updated_at

def get_comparison_date_ranges(custom_range: Optional[DateRange] = None, now: Optional[datetime] = None) -> ComparisonRanges:
    """Current window and the window of equal length right before it.

    Without a custom range the current window is the last month.
    """
    if custom_range:
        length = custom_range.end - custom_range.start
        return ComparisonRanges(
            current=custom_range,
            previous=DateRange(custom_range.start - length, custom_range.start),
        )

    now = now or utcnow()
    last_month = now - relativedelta(months=1)
    two_months_ago = now - relativedelta(months=2)
    return ComparisonRanges(
        current=DateRange(last_month, now),
        previous=DateRange(two_months_ago, last_month),
    )

def current_population(tasks, custom_range: Optional[DateRange]) -> list:
    """Tasks counted in the current period: all of them, or those created in the custom range."""
    if custom_range is None:
        return list(tasks)
    return [task for task in tasks if in_range(task.created_at, custom_range)]

# Calculations

def task_completion_metrics(tasks, ranges: ComparisonRanges) -> dict:
    done_tasks = [task for task in tasks if is_done(task)]
    current_completed = sum(1 for task in done_tasks if in_range(completion_timestamp(task), ranges.current))
    previous_completed = sum(
        1 for task in done_tasks
        if in_range(completion_timestamp(task), ranges.previous, end_exclusive=True)
    )

    percent_change = 0
    if previous_completed > 0:
        percent_change = (current_completed - previous_completed) / previous_completed * 100

    return {
        "completed": current_completed,
        "percent_change": round_half_up(percent_change, 1),
        "previous_completed": previous_completed,
    }

def average_completion_days(tasks) -> Tuple[float, int]:
    total_days = 0.0
    count = 0
    for task in tasks:
        finished = completion_timestamp(task)
        if task.created_at and finished:
            total_days += (finished - task.created_at).total_seconds() / 86400
            count += 1
    return (total_days / count if count else 0.0), count

def time_metrics(tasks, ranges: ComparisonRanges) -> dict:
    done_tasks = [task for task in tasks if is_done(task)]
    current = [task for task in done_tasks if in_range(completion_timestamp(task), ranges.current)]
    previous = [task for task in done_tasks if in_range(completion_timestamp(task), ranges.previous)]

    current_average, _ = average_completion_days(current)
    previous_average, _ = average_completion_days(previous)

    return {
        "average_days": round_half_up(current_average, 1),
        "days_change": round_half_up(current_average - previous_average, 1),
        "tasks_analyzed": len(current),
    }

def split_tags(tags: Optional[str]) -> List[str]:
    if not tags:
        return []
    return [tag.strip().lower() for tag in tags.split(",") if tag.strip()]

def category_distribution(tasks) -> List[dict]:
    categories: Dict[str, int] = {}
    for task in tasks:
        for tag in split_tags(task.tags):
            categories[tag] = categories.get(tag, 0) + 1

    total_tags = sum(categories.values())
    return [
        {
            "name": name[:1].upper() + name[1:],
            "value": value,
            "percentage": round_half_up(percentage(value, total_tags), 1),
        }
        for name, value in categories.items()
    ]

def start_of_week(now: datetime) -> datetime:
    return (now - timedelta(days=now.weekday())).replace(hour=0, minute=0, second=0, microsecond=0)

def empty_week() -> List[dict]:
    return [{"day": label, "tasks": 0, "hours": 0} for label in WEEKDAY_LABELS]

def weekly_activity(tasks, now: Optional[datetime] = None) -> List[dict]:
    """Tasks touched during the current Monday-to-Sunday week, per day, with estimated hours."""
    monday = start_of_week(now or utcnow())
    week = DateRange(monday, monday + timedelta(days=7))
    results = empty_week()

    for task in tasks:
        if not in_range(task.updated_at, week, end_exclusive=True):
            continue
        bucket = results[task.updated_at.weekday()]
        bucket["tasks"] += 1
        bucket["hours"] += PRIORITY_HOURS.get(task.priority, 1)
    return results

def efficiency_metrics(tasks, ranges: ComparisonRanges, custom_range: Optional[DateRange] = None) -> dict:
    population = current_population(tasks, custom_range)
    completed = sum(1 for task in population if is_done(task))
    efficiency = percentage(completed, len(population))

    previous_population = [task for task in tasks if in_range(task.created_at, ranges.previous)]
    previous_completed = sum(
        1 for task in previous_population
        if is_done(task) and in_range(completion_timestamp(task), ranges.previous)
    )
    previous_efficiency = percentage(previous_completed, len(previous_population))

    return {
        "efficiency": int(round_half_up(efficiency)),
        "efficiency_change": round_half_up(efficiency - previous_efficiency, 1),
        "total_tasks": len(population),
        "completed_tasks": completed,
    }

def is_overdue(task, as_of: datetime) -> bool:
    return not is_done(task) and task.due_date is not None and task.due_date < as_of

def overdue_metrics(tasks, ranges: ComparisonRanges, custom_range: Optional[DateRange] = None,
                    now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    population = current_population(tasks, custom_range)
    overdue = sum(1 for task in population if is_overdue(task, now))
    overdue_rate = percentage(overdue, len(population))

    previous_population = [task for task in tasks if in_range(task.created_at, ranges.previous)]
    previous_overdue = sum(
        1 for task in previous_population
        if not is_done(task) and task.due_date is not None and task.due_date <= ranges.previous.end
    )
    previous_rate = percentage(previous_overdue, len(previous_population))

    return {
        "overdue_rate": int(round_half_up(overdue_rate)),
        "overdue_change": round_half_up(overdue_rate - previous_rate, 1),
        "overdue_tasks": overdue,
        "total_tasks": len(population),
    }

def team_performance(users, tasks) -> List[dict]:
    counts = {user.id: {"total": 0, "completed": 0} for user in users}
    for task in tasks:
        stats = counts.get(task.assignee_id)
        if stats is None:
            continue
        stats["total"] += 1
        if is_done(task):
            stats["completed"] += 1

    results = []
    for user in users:
        stats = counts[user.id]
        results.append({
            "user_id": user.id,
            "name": user.name,
            "tasks": stats["completed"],
            "hours": stats["completed"] * HOURS_PER_COMPLETED_TASK,
            "efficiency": int(round_half_up(percentage(stats["completed"], stats["total"]))),
        })
    return sorted(results, key=lambda item: item["tasks"], reverse=True)

def month_windows(now: datetime, months: int = TREND_MONTHS) -> List[DateRange]:
    """Calendar months ending with the current one, oldest first."""
    this_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    windows = []
    for offset in range(months - 1, -1, -1):
        start = this_month - relativedelta(months=offset)
        windows.append(DateRange(start, start + relativedelta(months=1)))
    return windows

def monthly_trends(tasks, now: Optional[datetime] = None) -> List[dict]:
    results = []
    for window in month_windows(now or utcnow()):
        month_tasks = [task for task in tasks if in_range(task.created_at, window, end_exclusive=True)]
        completed = sum(1 for task in month_tasks if is_done(task))
        results.append({
            "month": window.start.strftime("%b"),
            "year": window.start.year,
            "tasks": completed,
            "hours": completed * HOURS_PER_COMPLETED_TASK,
            "efficiency": int(round_half_up(percentage(completed, len(month_tasks)))),
        })
    return results

def user_time_metrics(completed_tasks) -> dict:
    """Completion speed and punctuality over a user's done tasks.

    avg_completion_time is in hours. time_efficiency compares the time that was
    available before the due date with the time actually used: 100 means done
    exactly on the due date, more means early (capped at 200).
    """
    if not completed_tasks:
        return {"avg_completion_time": 0, "time_efficiency": 0, "on_time_completion_rate": 0}

    total_hours = 0.0
    timed = 0
    with_deadline = 0
    on_time = 0
    efficiencies = []

    for task in completed_tasks:
        if task.created_at and task.completed_at:
            total_hours += (task.completed_at - task.created_at).total_seconds() / 3600
            timed += 1
        if task.due_date and task.completed_at:
            with_deadline += 1
            if task.completed_at <= task.due_date:
                on_time += 1
            if task.created_at:
                available = (task.due_date - task.created_at).total_seconds()
                used = (task.completed_at - task.created_at).total_seconds()
                if available > 0:
                    efficiency = available / used * 100 if used > 0 else MAX_TIME_EFFICIENCY
                    efficiencies.append(min(efficiency, MAX_TIME_EFFICIENCY))

    return {
        "avg_completion_time": round_half_up(total_hours / timed, 1) if timed else 0,
        "time_efficiency": int(round_half_up(sum(efficiencies) / len(efficiencies))) if efficiencies else 0,
        "on_time_completion_rate": round_half_up(on_time / with_deadline, 2) if with_deadline else 0,
    }

def accuracy_metrics(ratings) -> dict:
    ratings = list(ratings)
    if not ratings:
        return {"accuracy_score": 0, "quality_rating": 0}
    return {
        "accuracy_score": int(round_half_up(sum(r.accuracy_score for r in ratings) / len(ratings))),
        "quality_rating": round_half_up(sum(r.quality_rating for r in ratings) / len(ratings), 1),
    }

def status_breakdown(tasks) -> dict:
    tasks = list(tasks)
    total = len(tasks)
    completed = sum(1 for task in tasks if task.status == TaskStatus.DONE.value)
    return {
        "total": total,
        "completed": completed,
        "in_progress": sum(1 for task in tasks if task.status == TaskStatus.IN_PROGRESS.value),
        "open": sum(1 for task in tasks if task.status == TaskStatus.TODO.value),
        "completion_rate": completed / total if total else 0,
    }

def user_task_statistics(user, tasks, ratings) -> dict:
    tasks = list(tasks)
    breakdown = status_breakdown(tasks)
    stats = {
        "user_id": user.id,
        "user_name": user.name,
        "user_email": user.email,
        "total_tasks": breakdown["total"],
        "tasks_completed": breakdown["completed"],
        "tasks_in_progress": breakdown["in_progress"],
        "tasks_open": breakdown["open"],
        "completion_rate": breakdown["completion_rate"],
    }
    stats.update(user_time_metrics([task for task in tasks if is_done(task)]))
    stats.update(accuracy_metrics(ratings))
    return stats

def project_statistics(project, tasks) -> dict:
    breakdown = status_breakdown(tasks)
    return {
        "project_id": project.id,
        "project_name": project.name,
        "total_tasks": breakdown["total"],
        "completed_tasks": breakdown["completed"],
        "in_progress_tasks": breakdown["in_progress"],
        "open_tasks": breakdown["open"],
        "completion_rate": breakdown["completion_rate"],
    }

# Loading and error handling

def apply_task_filters(query, filters: AnalyticsFilter, include_date_range: bool = False):
    if filters.user_id is not None:
        query = query.filter(Task.assignee_id == filters.user_id)
    if filters.department_id is not None:
        query = query.join(User, Task.assignee_id == User.id).filter(User.department_id == filters.department_id)
    if filters.project_id is not None:
        query = query.filter(Task.project_id == filters.project_id)
    if include_date_range and filters.date_range:
        query = query.filter(Task.created_at.between(filters.date_range.start, filters.date_range.end))
    return query

def run_safely(label: str, default: Callable, func: Callable, *args, db: Session = None):
    """Run one metric; on failure log it and hand back the metric's default value."""
    try:
        return func(*args)
    except Exception as e:
        logger.error(f"Error calculating {label}: {str(e)}", exc_info=True)
        if db is not None:
            db.rollback()
        return default()

def load_tasks(db: Session, filters: AnalyticsFilter) -> List[Task]:
    return run_safely(
        "task rows", list,
        lambda: apply_task_filters(db.query(Task), filters).all(),
        db=db,
    )

METRICS = {
    "task_completion": (
        "task completion metrics",
        lambda: {"completed": 0, "percent_change": 0.0, "previous_completed": 0},
        lambda tasks, ranges, filters, now: task_completion_metrics(tasks, ranges),
    ),
    "time_metrics": (
        "time metrics",
        lambda: {"average_days": 0.0, "days_change": 0.0, "tasks_analyzed": 0},
        lambda tasks, ranges, filters, now: time_metrics(current_population(tasks, filters.date_range), ranges),
    ),
    "category_distribution": (
        "category distribution",
        list,
        lambda tasks, ranges, filters, now: category_distribution(
            current_population(tasks, filters.date_range)
        ),
    ),
    "weekly_activity": (
        "weekly activity",
        empty_week,
        lambda tasks, ranges, filters, now: weekly_activity(current_population(tasks, filters.date_range), now),
    ),
    "efficiency": (
        "efficiency metrics",
        lambda: {"efficiency": 0, "efficiency_change": 0.0, "total_tasks": 0, "completed_tasks": 0},
        lambda tasks, ranges, filters, now: efficiency_metrics(tasks, ranges, filters.date_range),
    ),
    "overdue": (
        "overdue metrics",
        lambda: {"overdue_rate": 0, "overdue_change": 0.0, "overdue_tasks": 0, "total_tasks": 0},
        lambda tasks, ranges, filters, now: overdue_metrics(tasks, ranges, filters.date_range, now),
    ),
}

def compute_metrics(tasks, filters: AnalyticsFilter, names: Iterable[str], now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    ranges = get_comparison_date_ranges(filters.date_range, now)
    results = {}
    for name in names:
        label, default, calculate = METRICS[name]
        results[name] = run_safely(label, default, calculate, tasks, ranges, filters, now)
    return results

def get_metric(db: Session, filters: AnalyticsFilter, name: str, now: Optional[datetime] = None):
    return compute_metrics(load_tasks(db, filters), filters, [name], now)[name]

def get_dashboard_metrics(db: Session, filters: AnalyticsFilter, now: Optional[datetime] = None) -> dict:
    """All core metrics from a single fetch of the filtered tasks."""
    return compute_metrics(load_tasks(db, filters), filters, METRICS.keys(), now)

def get_team_performance(db: Session, filters: AnalyticsFilter) -> List[dict]:
    def calculate():
        user_query = db.query(User)
        if filters.department_id is not None:
            user_query = user_query.filter(User.department_id == filters.department_id)
        users = user_query.order_by(User.id).all()
        if not users:
            return []

        task_query = db.query(Task).filter(Task.assignee_id.in_([user.id for user in users]))
        if filters.project_id is not None:
            task_query = task_query.filter(Task.project_id == filters.project_id)
        if filters.date_range:
            task_query = task_query.filter(Task.created_at.between(filters.date_range.start, filters.date_range.end))
        return team_performance(users, task_query.all())

    return run_safely("team performance", list, calculate, db=db)

def get_monthly_trends(db: Session, filters: AnalyticsFilter, now: Optional[datetime] = None) -> List[dict]:
    now = now or utcnow()

    def calculate():
        oldest = month_windows(now)[0].start
        query = apply_task_filters(db.query(Task), filters).filter(Task.created_at >= oldest)
        return monthly_trends(query.all(), now)

    return run_safely("monthly trends", list, calculate, db=db)

def get_user_task_statistics(db: Session, user: User) -> dict:
    tasks = db.query(Task).filter(Task.assignee_id == user.id).all()
    ratings = run_safely(
        "accuracy ratings", list,
        lambda: db.query(AccuracyRating).filter(AccuracyRating.user_id == user.id).all(),
        db=db,
    )
    return user_task_statistics(user, tasks, ratings)

def get_all_user_statistics(db: Session) -> List[dict]:
    return [get_user_task_statistics(db, user) for user in db.query(User).order_by(User.id).all()]

def get_project_statistics(db: Session) -> List[dict]:
    projects = db.query(Project).order_by(Project.id).all()
    tasks_by_project: Dict[int, list] = {}
    for task in db.query(Task).filter(Task.project_id.isnot(None)).all():
        tasks_by_project.setdefault(task.project_id, []).append(task)
    return [project_statistics(project, tasks_by_project.get(project.id, [])) for project in projects]
