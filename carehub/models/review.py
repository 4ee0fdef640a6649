from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Text,
    Enum as SQLEnum, UniqueConstraint, CheckConstraint, Index,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base
from ..core.security import UserRole

class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        # One review per patient per target
        UniqueConstraint("patient_id", "target_role", "target_id", name="uq_review_patient_target"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
        Index("ix_reviews_target_created", "target_role", "target_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)

    # Polymorphic reference: target_id points into the table of target_role
    target_id = Column(Integer, nullable=False, index=True)
    target_role = Column(SQLEnum(UserRole), nullable=False, index=True)

    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)

    # Reply from the reviewed provider
    reply_message = Column(Text, nullable=True)
    replied_by = Column(Integer, nullable=True)
    replied_by_role = Column(SQLEnum(UserRole), nullable=True)
    replied_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient", back_populates="reviews")

    @property
    def has_reply(self) -> bool:
        return bool(self.reply_message)

    def clear_reply(self):
        self.reply_message = None
        self.replied_by = None
        self.replied_by_role = None
        self.replied_at = None

    def __repr__(self):
        return f"<Review(id={self.id}, target={self.target_role}:{self.target_id}, rating={self.rating})>"
