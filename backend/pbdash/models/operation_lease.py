"""
Single-flight operation leases.

One row per (user_id, operation) while an operation runs. A lease past
its expires_at is considered abandoned and may be taken over.
"""

from datetime import datetime

from sqlalchemy import Column, String, DateTime, Integer, UniqueConstraint

from pbdash.models.base import Base


class OperationLease(Base):
    """Short-lived lock record for one athlete and operation."""

    __tablename__ = "operation_leases"
    __table_args__ = (
        UniqueConstraint("user_id", "operation", name="uq_operation_leases_user_operation"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, index=True)
    operation = Column(String(50), nullable=False)
    holder = Column(String(36), nullable=False)

    acquired_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.utcnow()) >= self.expires_at

    def __repr__(self):
        return f"<OperationLease {self.operation} user_id={self.user_id} holder={self.holder}>"
