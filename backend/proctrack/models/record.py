"""Procurement record model."""

from sqlalchemy import Column, Index, String, Text, Integer, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func
from ..database import Base


class Record(Base):
    """A tracked procurement document sitting in (or borrowed from) a folder."""

    __tablename__ = "records"
    __table_args__ = (
        Index("ix_records_folder_id", "folder_id"),
        Index("ix_records_status", "status"),
        Index("ix_records_pr_number", "pr_number"),
    )

    id = Column(String(50), primary_key=True)
    pr_number = Column(String(100), nullable=False)  # always upper-case
    description = Column(Text, nullable=False)

    # Placement. The triple must agree with the location tree.
    shelf_id = Column(String(50), ForeignKey("shelves.id"), nullable=False)
    cabinet_id = Column(String(50), ForeignKey("cabinets.id"), nullable=False)
    folder_id = Column(String(50), ForeignKey("folders.id"), nullable=False)

    # "archived" (in its folder) or "borrowed" (checked out)
    status = Column(String(20), nullable=False, default="archived")
    urgency_level = Column(String(20), nullable=False, default="medium")
    date_added = Column(DateTime(timezone=True), nullable=False)

    # Set iff status == "archived"; 1-based position within the folder.
    stack_number = Column(Integer, nullable=True)

    # Borrow / return bookkeeping
    borrowed_by = Column(String(255), nullable=True)
    division = Column(String(255), nullable=True)
    borrowed_date = Column(DateTime(timezone=True), nullable=True)
    return_date = Column(DateTime(timezone=True), nullable=True)

    # Authorship
    created_by = Column(String(255), nullable=False)
    created_by_name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    edited_by = Column(String(255), nullable=True)
    edited_by_name = Column(String(255), nullable=True)
    last_edited_at = Column(DateTime(timezone=True), nullable=True)

    tags = Column(JSON, default=list)
    notes = Column(Text, nullable=True)
