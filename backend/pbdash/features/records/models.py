"""
Personal-record database models.

Models:
- PRTypeTemplate: Global record definition, copied into new catalogs
- PRType: Athlete's own (customizable) record definition
- PREvent: A result that qualified for a record definition
"""

from datetime import datetime

from sqlalchemy import (
    Column, String, DateTime, Integer, BigInteger, Boolean, JSON,
    UniqueConstraint,
)

from pbdash.models.base import Base


class _DefinitionColumns:
    """Columns shared by templates and per-athlete definitions."""

    activity_key = Column(String(64), nullable=False)
    activity_name = Column(String(128), nullable=False)
    sport = Column(String(20), nullable=False)
    metric_type = Column(String(20), nullable=False)  # time, distance

    # Exactly one is set, depending on metric_type
    target_distance = Column(Integer, nullable=True)  # meters
    target_time = Column(Integer, nullable=True)  # tenths of a second

    display_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)


class PRTypeTemplate(_DefinitionColumns, Base):
    """Global template a new athlete catalog is seeded from."""

    __tablename__ = "pr_type_templates"
    __table_args__ = (
        UniqueConstraint("activity_key", name="uq_pr_type_templates_key"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<PRTypeTemplate {self.activity_key}>"


class PRType(_DefinitionColumns, Base):
    """
    Per-athlete record definition.

    Seeded by copy from PRTypeTemplate; the athlete may then toggle
    is_active or reorder without the template overwriting it.
    """

    __tablename__ = "pr_types"
    __table_args__ = (
        UniqueConstraint("user_id", "activity_key", name="uq_pr_types_user_key"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<PRType {self.user_id}/{self.activity_key} active={self.is_active}>"


class PREvent(Base):
    """
    A result that matched a record definition.

    Identity is (results_id, activity_key) per athlete. Everything except
    pr_scope is fixed at creation; pr_scope is overwritten by every
    scope-assignment pass.
    """

    __tablename__ = "pr_events"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "results_id", "activity_key",
            name="uq_pr_events_user_result_key",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, index=True)

    results_id = Column(BigInteger, nullable=False, index=True)
    activity_key = Column(String(64), nullable=False, index=True)

    sport = Column(String(20), nullable=False)
    metric_type = Column(String(20), nullable=False)
    metric_value = Column(Integer, nullable=False)  # tenths of a second or meters
    achieved_at = Column(DateTime, nullable=False)
    season_identifier = Column(String(8), nullable=False)
    pace_per_500m = Column(Integer, nullable=True)

    # Scope labels won by this event: all-time, season-{id}, year-{yyyy}
    pr_scope = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<PREvent {self.results_id}/{self.activity_key} {self.pr_scope}>"
