"""SQLAlchemy ORM models for learned classification patterns"""

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class ClassificationPattern(Base):
    """Signature -> category association confirmed by a user"""

    __tablename__ = "classification_pattern"
    __table_args__ = (
        UniqueConstraint("user_id", "signature", "category_id", name="uq_pattern_user_signature_category"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Text, nullable=False, index=True)
    signature = Column(String(500), nullable=False, index=True)
    category_id = Column(Integer, nullable=False)
    amount_cents = Column(Integer, nullable=False, default=0)
    hit_count = Column(Integer, nullable=False, default=1)
    source = Column(Text, nullable=False, default="manual")
    last_seen_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
