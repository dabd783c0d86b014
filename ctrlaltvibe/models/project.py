from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Table, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ctrlaltvibe.core.database import Base

project_tags_association = Table(
    "project_tags",
    Base.metadata,
    Column("project_id", Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False, index=True)

    projects = relationship("Project", secondary=project_tags_association, back_populates="tags")

class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    long_description = Column(Text, nullable=True)
    project_url = Column(String, nullable=False)
    image_url = Column(String, nullable=False)
    vibe_coding_tool = Column(String, nullable=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    views_count = Column(Integer, default=0, nullable=False)
    shares_count = Column(Integer, default=0, nullable=False)
    featured = Column(Boolean, default=False, nullable=False)
    is_private = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    author = relationship("User", back_populates="projects")
    tags = relationship("Tag", secondary=project_tags_association, back_populates="projects")
    comments = relationship("Comment", back_populates="project", cascade="all, delete-orphan")
    monthly_views = relationship("ProjectView", back_populates="project", cascade="all, delete-orphan")

class ProjectView(Base):
    """Views per project per calendar month, used by the trending score."""
    __tablename__ = "project_views"
    __table_args__ = (UniqueConstraint("project_id", "year", "month", name="uq_project_views_month"),)

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    views_count = Column(Integer, default=0, nullable=False)

    project = relationship("Project", back_populates="monthly_views")
