"""Storage location models: Shelf, Cabinet, Folder.

Three-tier tree. A shelf holds cabinets, a cabinet holds folders, and a
folder holds procurement records. Each child references exactly one parent.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..database import Base


class Shelf(Base):
    """Top tier of the storage hierarchy."""

    __tablename__ = "shelves"

    id = Column(String(50), primary_key=True)
    code = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    cabinets = relationship("Cabinet", back_populates="shelf")


class Cabinet(Base):
    """Mid tier: a cabinet standing on one shelf."""

    __tablename__ = "cabinets"
    __table_args__ = (
        Index("ix_cabinets_shelf_id", "shelf_id"),
    )

    id = Column(String(50), primary_key=True)
    code = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    shelf_id = Column(String(50), ForeignKey("shelves.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    shelf = relationship("Shelf", back_populates="cabinets")
    folders = relationship("Folder", back_populates="cabinet")


class Folder(Base):
    """Leaf container. Records are stacked inside a folder."""

    __tablename__ = "folders"
    __table_args__ = (
        Index("ix_folders_cabinet_id", "cabinet_id"),
    )

    id = Column(String(50), primary_key=True)
    code = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    color = Column(String(20), nullable=True)  # hex, e.g. "#FF6B6B"
    cabinet_id = Column(String(50), ForeignKey("cabinets.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    cabinet = relationship("Cabinet", back_populates="folders")
