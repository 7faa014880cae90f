from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String

from universe.database import Base
from universe.utils.clock import utcnow


class PendingSignup(Base):
    """Unconfirmed registration staged for one browser session."""

    __tablename__ = "pending_signups"

    id = Column(Integer, primary_key=True, index=True)
    # Opaque handle kept in the session cookie as ``signup_token``
    token = Column(String, unique=True, nullable=False, index=True)

    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=True)
    dob = Column(String, nullable=True)
    pin = Column(String, nullable=False)

    code = Column(String, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    last_sent_at = Column(DateTime, default=utcnow, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or utcnow()) >= self.expires_at
