"""Persisted HTTP request log model."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, Index, Integer, Text

from .base import Base


class HttpLogEntry(Base):
    """One observed HTTP transaction, immutable once written."""

    __tablename__ = "httplog"

    id = Column(Text, primary_key=True)
    url = Column(Text, nullable=False)
    method = Column(Text, nullable=False)
    time_in = Column(DateTime(timezone=True), nullable=False)
    time_out = Column(DateTime(timezone=True), nullable=False)
    duration = Column(Integer, nullable=False)
    return_code = Column(Integer, nullable=False)
    username = Column(Text, nullable=False)
    userole = Column(Text, nullable=False)
    org_id = Column(Text, nullable=False)
    user_agent = Column(Text, nullable=False)
    error_msg = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_httplog_url_time_in", url, time_in.desc()),
        Index("idx_httplog_username_time_in", username, time_in.desc()),
        Index("idx_httplog_time_in", time_in.desc()),
    )


__all__ = ["HttpLogEntry"]
