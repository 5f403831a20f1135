# models.py
"""SQLAlchemy database models for the project tracker tables the assistant uses."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from pm_assistant.core import settings

Base = declarative_base()


class ProjectModel(Base):
    """SQLAlchemy model for projects"""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, unique=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    releases = relationship("ReleaseModel", back_populates="project", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<ProjectModel(id={self.id}, name='{self.name}')>"


class ReleaseModel(Base):
    """SQLAlchemy model for releases"""

    __tablename__ = "releases"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    release_date = Column(String(10), nullable=False)  # YYYY-MM-DD format
    is_current = Column(Boolean, default=False)

    project = relationship("ProjectModel", back_populates="releases")

    __table_args__ = (
        UniqueConstraint("project_id", "name", name="uq_releases_project_name"),
        Index("idx_releases_project", "project_id"),
    )


class RequirementModel(Base):
    """SQLAlchemy model for requirement activity rows.

    Every status change adds a row; rows of one requirement share
    ``requirement_group_id`` and only the newest has ``is_current`` set.
    """

    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    requirement_group_id = Column(Integer, nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(500), nullable=False)
    status = Column(String(50), nullable=False)
    status_date = Column(String(10), nullable=False)
    sprint = Column(String(100), nullable=True)
    is_current = Column(Boolean, default=False)
    release_id = Column(Integer, ForeignKey("releases.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("ProjectModel")
    release = relationship("ReleaseModel")

    __table_args__ = (
        Index("idx_activities_group_current", "requirement_group_id", "is_current"),
        Index("idx_activities_project", "project_id"),
    )


class DefectModel(Base):
    """SQLAlchemy model for defects"""

    __tablename__ = "defects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    area = Column(String(100), nullable=False)
    status = Column(String(50), nullable=False)
    created_date = Column(String(10), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("ProjectModel")

    __table_args__ = (
        CheckConstraint(
            "status IN ('Assigned to Developer', 'Assigned to Tester', 'Done', 'Closed')",
            name="ck_defects_status",
        ),
        Index("idx_defects_project_status", "project_id", "status"),
    )


class NoteModel(Base):
    """SQLAlchemy model for daily project notes"""

    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    note_date = Column(String(10), nullable=False)
    note_text = Column(Text, nullable=True)

    project = relationship("ProjectModel")

    __table_args__ = (UniqueConstraint("project_id", "note_date", name="uq_notes_project_date"),)


class RetrospectiveItemModel(Base):
    """SQLAlchemy model for retrospective board items"""

    __tablename__ = "retrospective_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    column_type = Column(String(20), nullable=False)
    description = Column(Text, nullable=False)
    details = Column(Text, nullable=False, default="")
    item_date = Column(String(10), nullable=False)

    project = relationship("ProjectModel")

    __table_args__ = (
        CheckConstraint("column_type IN ('well', 'wrong', 'improve')", name="ck_retro_column"),
    )


class DefectRequirementLinkModel(Base):
    """Many-to-many link between defects and requirement groups"""

    __tablename__ = "defect_requirement_links"

    defect_id = Column(Integer, ForeignKey("defects.id", ondelete="CASCADE"), primary_key=True)
    requirement_group_id = Column(Integer, primary_key=True)


class AppSettingModel(Base):
    """Key/value application settings (e.g. default weather location)"""

    __tablename__ = "app_settings"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=True)


class DatabaseManager:
    """Manages database connections and sessions"""

    def __init__(self, database_url: str = None):
        self.database_url = database_url or settings.DATABASE_URL
        self.engine = None
        self.SessionLocal = None
        self._initialize()

    def _initialize(self):
        """Initialize database engine and session factory"""
        connect_args = {}
        if "sqlite" in self.database_url:
            connect_args = {
                "check_same_thread": False,  # Sessions are used from worker threads
                "timeout": 20,
            }

        self.engine = create_engine(
            self.database_url,
            connect_args=connect_args,
            pool_pre_ping=True,
            pool_recycle=3600,
        )

        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
        )

    def create_tables(self):
        """Create all tables with indexes"""
        Base.metadata.create_all(bind=self.engine)

    def get_session(self):
        """Get a database session"""
        return self.SessionLocal()

    def drop_tables(self):
        """Drop all tables - USE WITH CAUTION"""
        Base.metadata.drop_all(bind=self.engine)

    def get_table_stats(self):
        """Get database statistics for monitoring"""
        with self.get_session() as session:
            return {
                "projects": session.query(ProjectModel).count(),
                "requirements": session.query(RequirementModel)
                .filter(RequirementModel.is_current.is_(True))
                .count(),
                "defects": session.query(DefectModel).count(),
                "notes": session.query(NoteModel).count(),
                "releases": session.query(ReleaseModel).count(),
                "database_url": self.database_url.split("@")[-1],
            }


# Global database manager instance
db_manager = DatabaseManager()
