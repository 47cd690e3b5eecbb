from datetime import date, timedelta
from sqlalchemy.orm import Session
import logging

from database import SessionLocal, init_db
from models import Role, Department, User, Project, ProjectTeamMember, Task
from auth import get_password_hash
from constants.task_status import TaskStatus
from datetime_utils import utcnow

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password123"

def seed_database(db: Session) -> bool:
    """Insert demo roles, departments, users, projects and tasks.

    Does nothing when the users table already has rows. Returns True when data
    was inserted.
    """
    if db.query(User).count() > 0:
        logger.info("Database already has data. Skipping seed operation.")
        return False

    logger.info("Creating roles...")
    admin_role = Role(name="Admin", description="Administrator with full access", is_admin=True)
    manager_role = Role(name="Manager", description="Project manager with team management access")
    member_role = Role(name="Team Member", description="Regular team member")

    logger.info("Creating departments...")
    engineering = Department(name="Engineering", description="Software development team", manager="Engineering Manager")
    marketing = Department(name="Marketing", description="Marketing and promotion team", manager="Marketing Director")
    design = Department(name="Design", description="Design and UX team", manager="Design Lead")

    logger.info("Creating users...")
    password_hash = get_password_hash(DEMO_PASSWORD)
    admin = User(
        name="Admin User", email="admin@example.com", hashed_password=password_hash,
        role=admin_role, department=engineering,
        bio="System administrator", phone="555-1234", skills="Administration, Security",
    )
    manager = User(
        name="Project Manager", email="manager@example.com", hashed_password=password_hash,
        role=manager_role, department=engineering,
        bio="Experienced project manager", phone="555-5678", skills="Project Management, Agile, Scrum",
    )
    developer = User(
        name="Team Member 1", email="user1@example.com", hashed_password=password_hash,
        role=member_role, department=engineering,
        bio="Frontend developer", phone="555-9012", skills="React, TypeScript, CSS",
    )
    designer = User(
        name="Team Member 2", email="user2@example.com", hashed_password=password_hash,
        role=member_role, department=design,
        bio="UI/UX designer", phone="555-3456", skills="Figma, Sketch, User Research",
    )

    logger.info("Creating projects...")
    today = date.today()
    website = Project(
        name="Website Redesign",
        description="Redesign the company website with a modern look and feel",
        start_date=today, end_date=today + timedelta(days=30),
        status="active", priority="high",
        manager=manager, department=design,
        budget=25000, budget_currency="USD", tags="design,frontend,website",
    )
    mobile_app = Project(
        name="Mobile App Development",
        description="Create a mobile app for our customers",
        start_date=today, end_date=today + timedelta(days=60),
        status="planning", priority="medium",
        manager=manager, department=engineering,
        budget=50000, budget_currency="USD", tags="mobile,app,development",
    )
    campaign = Project(
        name="Launch Campaign",
        description="Marketing campaign for the product launch",
        start_date=today, end_date=today + timedelta(days=45),
        status="planning", priority="low",
        department=marketing, tags="marketing,launch",
    )
    website.team_members = [
        ProjectTeamMember(user=manager, role="manager"),
        ProjectTeamMember(user=designer, role="designer"),
        ProjectTeamMember(user=developer, role="developer"),
    ]
    mobile_app.team_members = [
        ProjectTeamMember(user=manager, role="manager"),
        ProjectTeamMember(user=developer, role="developer"),
    ]

    logger.info("Creating tasks...")
    now = utcnow()
    tasks = [
        Task(
            title="Create wireframes", description="Wireframes for the new home page",
            priority="high", status=TaskStatus.DONE.value, tags="design,ux",
            assignee=designer, project=website, estimated_hours=8,
            created_at=now - timedelta(days=10), due_date=now - timedelta(days=3),
            completed_at=now - timedelta(days=4),
        ),
        Task(
            title="Implement landing page", description="Build the landing page from the approved design",
            priority="high", status=TaskStatus.IN_PROGRESS.value, tags="frontend,website",
            assignee=developer, project=website, estimated_hours=16,
            created_at=now - timedelta(days=6), due_date=now + timedelta(days=5),
        ),
        Task(
            title="Set up CI pipeline", description="Automated builds and tests for the app",
            priority="medium", status=TaskStatus.TODO.value, tags="devops",
            assignee=developer, project=mobile_app, estimated_hours=4,
            created_at=now - timedelta(days=2), due_date=now - timedelta(days=1),
        ),
        Task(
            title="Write app requirements", description="Collect requirements from stakeholders",
            priority="medium", status=TaskStatus.DONE.value, tags="planning,documentation",
            assignee=manager, project=mobile_app, estimated_hours=6,
            created_at=now - timedelta(days=20), due_date=now - timedelta(days=12),
            completed_at=now - timedelta(days=14),
        ),
        Task(
            title="Review brand guidelines", priority="low", status=TaskStatus.TODO.value,
            tags="design", assignee=designer, created_at=now - timedelta(days=1),
        ),
    ]

    db.add_all([admin_role, manager_role, member_role, engineering, marketing, design,
                admin, manager, developer, designer, website, mobile_app, campaign])
    db.add_all(tasks)
    db.commit()

    logger.info(f"Seeded {db.query(User).count()} users, {db.query(Project).count()} projects "
                f"and {db.query(Task).count()} tasks")
    return True

if __name__ == "__main__":
    init_db()
    db = SessionLocal()
    try:
        seed_database(db)
    finally:
        db.close()
