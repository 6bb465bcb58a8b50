import logging

from sqlalchemy.orm import Session

from app.core.roles import Role
from app.models.user import User


logger = logging.getLogger(__name__)

DEMO_USERNAME = "admin"


def seed_demo(db: Session) -> User:
    """Make sure a demo admin exists to open and close the register with."""
    user = db.query(User).filter(User.username == DEMO_USERNAME).first()
    if user:
        return user
    user = User(username=DEMO_USERNAME, full_name="Demo Admin", role=Role.admin.value)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Seeded demo user %s (%s)", user.username, user.id)
    return user
