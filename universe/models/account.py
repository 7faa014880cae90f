from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from universe.database import Base
from universe.utils.clock import utcnow


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)

    # Registration fields
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, nullable=True)
    dob = Column(String, nullable=True)       # store YYYY-MM-DD

    # Emailed back verbatim by PIN recovery, so kept as entered
    pin = Column(String, nullable=False)

    email_verified = Column(Boolean, default=False, nullable=False)
    profile_created = Column("profile_created_status", Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    profile = relationship("Profile", back_populates="account", uselist=False)
