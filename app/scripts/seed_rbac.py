"""
Seed demo users and the default access rules

Run with: python -m app.scripts.seed_rbac
Existing users (matched by email) are left untouched.
"""

from sqlmodel import Session, select
import structlog

from app.core.auth import hash_password
from app.core.database import engine, init_db
from app.core.log_config import configure_logging
from app.core.permissions import Role
from app.models.user import User
from app.services.access_rules import AccessRuleStore

logger = structlog.get_logger(__name__)

DEMO_USERS = [
    {
        "name": "Admin User",
        "email": "admin@cnevents.com",
        "password": "password123",
        "role": Role.ADMIN.value,
        "job_title": "System Administrator",
    },
    {
        "name": "Peter Parker",
        "email": "peter@cnevents.com",
        "password": "peter@123",
        "role": Role.ASSISTANT.value,
        "job_title": "Sales Assistant",
    },
    {
        "name": "John Doe",
        "email": "jhon@cnevents.com",
        "password": "jhon@123",
        "role": Role.LEAD_PLANNER.value,
        "job_title": "Senior Planner",
    },
]


def seed_users(session: Session) -> int:
    """Create missing demo users and return how many were added"""
    created = 0
    for data in DEMO_USERS:
        exists = session.exec(select(User).where(User.email == data["email"])).first()
        if exists:
            continue

        user = User(
            name=data["name"],
            email=data["email"],
            password_hash=hash_password(data["password"]),
            role=data["role"],
            job_title=data["job_title"],
        )
        session.add(user)
        created += 1
        logger.info(f"Created user: {data['email']} ({data['role']})")

    session.commit()
    return created


def main():
    configure_logging()
    init_db()
    with Session(engine) as session:
        users = seed_users(session)
        rules = AccessRuleStore(session).seed_defaults()
    logger.info(f"RBAC seed complete: {users} users, {rules} access rules")


if __name__ == "__main__":
    main()
