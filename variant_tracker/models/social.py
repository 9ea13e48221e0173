"""Collaboration models: users, saved analyses, history, splicing results, comments and share links."""

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from variant_tracker.models.clinical import _new_id, _utcnow
from variant_tracker.models.database import Base, JSONType


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    analyses = relationship("Analysis", back_populates="user", lazy="selectin")


class Analysis(Base):
    __tablename__ = "analyses"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    gene = Column(String(64), nullable=False)
    variant = Column(String(255), nullable=False)
    analysis_type = Column(String(64), nullable=True)
    results = Column(JSONType, nullable=True)
    summary = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    user = relationship("User", back_populates="analyses")
    history_records = relationship("HistoryRecord", back_populates="analysis", lazy="selectin")
    splicing_analyses = relationship("SplicingAnalysis", back_populates="analysis", lazy="selectin")

    __table_args__ = (Index("ix_analyses_user", "user_id"),)


class HistoryRecord(Base):
    __tablename__ = "history_records"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    analysis_id = Column(String(36), ForeignKey("analyses.id"), nullable=True)
    gene = Column(String(64), nullable=False)
    variant = Column(String(255), nullable=False)
    details = Column(JSONType, nullable=True)
    timestamp = Column(DateTime, default=_utcnow, nullable=False)

    analysis = relationship("Analysis", back_populates="history_records")

    __table_args__ = (Index("ix_history_user_timestamp", "user_id", "timestamp"),)


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=_new_id)
    analysis_id = Column(String(36), ForeignKey("analyses.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    parent_id = Column(String(36), ForeignKey("comments.id"), nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    user = relationship("User", lazy="selectin")
    replies = relationship(
        "Comment",
        lazy="selectin",
        order_by="Comment.created_at",
        back_populates="parent",
    )
    parent = relationship("Comment", remote_side=[id], back_populates="replies")


class SharedAccess(Base):
    __tablename__ = "shared_access"

    id = Column(String(36), primary_key=True, default=_new_id)
    analysis_id = Column(String(36), ForeignKey("analyses.id"), nullable=False)
    shared_by_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    shared_with_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    share_token = Column(String(64), unique=True, nullable=False)
    permission_type = Column(String(16), default="view", nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class SplicingAnalysis(Base):
    """A splice-impact prediction saved for a gene/variant, optionally tied to an analysis."""

    __tablename__ = "splicing_analyses"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    analysis_id = Column(String(36), ForeignKey("analyses.id"), nullable=True)
    gene = Column(String(64), nullable=False)
    variant = Column(String(255), nullable=False)
    clinical_severity = Column(String(16), nullable=True)
    confidence = Column(Float, nullable=True)
    results = Column(JSONType, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    analysis = relationship("Analysis", back_populates="splicing_analyses")

    __table_args__ = (Index("ix_splicing_analysis", "analysis_id"),)
