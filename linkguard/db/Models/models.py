from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey
from sqlalchemy.orm import declarative_base
from datetime import datetime, timezone

Base = declarative_base()


def utcnow() -> datetime:
    # naive UTC, the form every timestamp column stores
    return datetime.now(timezone.utc).replace(tzinfo=None)


class UrlMapping(Base):
    __tablename__ = "url_mappings"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Uniqueness is enforced here, not by a read-then-write in the service
    short_code = Column(String(10), unique=True, index=True, nullable=False)
    original_url = Column(Text, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    intended_live_date = Column(DateTime, nullable=True)
    intended_expiry_date = Column(DateTime, nullable=True)
    last_checked_at = Column(DateTime, default=utcnow, nullable=False)

    # pending | live | inactive | expired
    status = Column(String(20), default="pending", nullable=False)
    check_interval = Column(Integer, default=24, nullable=False)  # hours


class MaliciousLog(Base):
    __tablename__ = "malicious_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(Text, nullable=False)
    user_agent = Column(String(512), nullable=True)
    ip_address = Column(String(45), nullable=True)
    risk_score = Column(Integer, nullable=False)
    details = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)


class ScheduledCheck(Base):
    __tablename__ = "scheduled_checks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # at most one deferred re-check per mapping
    url_mapping_id = Column(Integer, ForeignKey("url_mappings.id"), unique=True, index=True, nullable=False)
    fire_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
