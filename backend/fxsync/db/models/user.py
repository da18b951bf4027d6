"""
fxsync - User Models

Owned by the account management side of the application. Only the
columns the rate engines read are declared here.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from fxsync.db.database import Base


class User(Base):
    """Application user."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    preference = relationship("UserPreference", back_populates="user", uselist=False)
    accounts = relationship("Account", back_populates="user")

    def __repr__(self):
        return f"<User {self.email}>"


class UserPreference(Base):
    """Per-user preferences."""

    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False, index=True)
    default_currency = Column(String(3), nullable=True)  # Falls back to settings.DEFAULT_CURRENCY

    user = relationship("User", back_populates="preference")

    def __repr__(self):
        return f"<UserPreference user={self.user_id} currency={self.default_currency}>"
