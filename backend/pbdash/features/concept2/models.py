"""
Concept2-related database models.

Models:
- Concept2Token: OAuth tokens and sync bookkeeping for an athlete
- WorkoutResult: Synchronized Logbook result (immutable once stored)
"""

from datetime import datetime

from sqlalchemy import (
    Column, String, DateTime, Integer, BigInteger, Text, Boolean, JSON,
    UniqueConstraint,
)

from pbdash.models.base import Base
from .schemas import TokenSet


class Concept2Token(Base):
    """
    Concept2 OAuth token storage.

    One row per athlete. deleted_at is a soft-delete marker: once set,
    the athlete has to go through the authorization grant again.
    """

    __tablename__ = "concept2_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), unique=True, nullable=False, index=True)

    # OAuth tokens (should be encrypted in production)
    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=False)
    token_type = Column(String(20), nullable=True)
    expires_in = Column(Integer, nullable=True)  # seconds
    issued_at = Column(BigInteger, nullable=True)  # epoch ms, stamped on receipt
    scope = Column(String(255), nullable=True)

    # Sync bookkeeping
    last_sync_at = Column(DateTime, nullable=True)
    deleted_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None

    def to_token_set(self) -> TokenSet:
        return TokenSet(
            access_token=self.access_token,
            refresh_token=self.refresh_token,
            expires_in=self.expires_in,
            issued_at=self.issued_at,
            scope=self.scope,
            token_type=self.token_type,
        )

    def apply_token_set(self, tokens: TokenSet) -> None:
        self.access_token = tokens.access_token
        self.refresh_token = tokens.refresh_token
        self.expires_in = tokens.expires_in
        self.issued_at = tokens.issued_at
        self.scope = tokens.scope
        self.token_type = tokens.token_type
        self.updated_at = datetime.utcnow()

    def __repr__(self):
        return f"<Concept2Token user_id={self.user_id} deleted={not self.is_active}>"


class WorkoutResult(Base):
    """
    Concept2 Logbook result.

    Identity is the Logbook result id, unique per athlete.
    Never updated after insert.
    """

    __tablename__ = "workout_results"
    __table_args__ = (
        UniqueConstraint("user_id", "result_id", name="uq_workout_results_user_result"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, index=True)

    # Logbook identifiers
    result_id = Column(BigInteger, nullable=False)

    # Core metrics
    sport = Column(String(20), nullable=False)  # rower, skierg, bikeerg
    distance = Column(Integer, nullable=False)  # meters
    time = Column(Integer, nullable=False)  # tenths of a second
    achieved_at = Column(DateTime, nullable=False, index=True)
    pace_per_500m = Column(Integer, nullable=True)  # tenths of a second

    # Descriptive fields as returned by the Logbook
    date_utc = Column(DateTime, nullable=True)
    timezone = Column(String(64), nullable=True)
    workout_type = Column(String(50), nullable=True)
    source = Column(String(100), nullable=True)
    weight_class = Column(String(10), nullable=True)
    verified = Column(Boolean, nullable=True)
    ranked = Column(Boolean, nullable=True)

    raw_data = Column(JSON, nullable=True)

    # Sync metadata
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<WorkoutResult {self.result_id} {self.sport} {self.distance}m {self.time}>"
