# sqlalchemy_repository.py
"""SQLAlchemy-based repository for the tracker tables."""

from contextlib import contextmanager
from datetime import date
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from pm_assistant.core.config import Config, DefectStatus
from pm_assistant.core.exceptions import DatabaseError
from .base_repository import BaseProjectRepository
from .models import (
    AppSettingModel,
    DatabaseManager,
    DefectModel,
    DefectRequirementLinkModel,
    NoteModel,
    ProjectModel,
    ReleaseModel,
    RequirementModel,
    RetrospectiveItemModel,
    db_manager as default_db_manager,
)


class SQLAlchemyProjectRepository(BaseProjectRepository):
    """Repository over the tracker tables.

    Every call opens its own short-lived session, so independent reads can
    run concurrently from worker threads.
    """

    def __init__(self, manager: Optional[DatabaseManager] = None):
        self.manager = manager or default_db_manager

    @contextmanager
    def _session_scope(self):
        session = self.manager.get_session()
        try:
            yield session
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()

    def get_project_names(self) -> List[str]:
        try:
            with self._session_scope() as session:
                rows = session.query(ProjectModel.name).order_by(ProjectModel.id).all()
                return [row.name for row in rows]
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to load project names: {str(e)}") from e

    def get_project_id(self, project_name: str) -> Optional[int]:
        try:
            with self._session_scope() as session:
                project = (
                    session.query(ProjectModel)
                    .filter(ProjectModel.name == project_name)
                    .first()
                )
                return project.id if project else None
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to look up project {project_name}: {str(e)}") from e

    def get_current_requirements(self) -> List[Dict[str, Any]]:
        try:
            with self._session_scope() as session:
                rows = (
                    session.query(
                        RequirementModel.id,
                        RequirementModel.requirement_group_id,
                        RequirementModel.title,
                        RequirementModel.status,
                        RequirementModel.sprint,
                        ProjectModel.name.label("project"),
                        ReleaseModel.name.label("release_name"),
                        ReleaseModel.release_date,
                    )
                    .join(ProjectModel, RequirementModel.project_id == ProjectModel.id)
                    .outerjoin(ReleaseModel, RequirementModel.release_id == ReleaseModel.id)
                    .filter(RequirementModel.is_current.is_(True))
                    .order_by(RequirementModel.id)
                    .all()
                )
                return [dict(row._mapping) for row in rows]
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to load requirements: {str(e)}") from e

    def get_defects(self) -> List[Dict[str, Any]]:
        try:
            with self._session_scope() as session:
                rows = (
                    session.query(
                        DefectModel.id,
                        DefectModel.title,
                        DefectModel.status,
                        DefectModel.description,
                        ProjectModel.name.label("project"),
                    )
                    .join(ProjectModel, DefectModel.project_id == ProjectModel.id)
                    .order_by(DefectModel.id)
                    .all()
                )
                return [dict(row._mapping) for row in rows]
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to load defects: {str(e)}") from e

    def get_notes(self) -> List[Dict[str, Any]]:
        try:
            with self._session_scope() as session:
                rows = (
                    session.query(
                        NoteModel.id,
                        NoteModel.note_date,
                        NoteModel.note_text,
                        ProjectModel.name.label("project"),
                    )
                    .join(ProjectModel, NoteModel.project_id == ProjectModel.id)
                    .order_by(NoteModel.id)
                    .all()
                )
                return [dict(row._mapping) for row in rows]
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to load notes: {str(e)}") from e

    def get_retrospective_items(self) -> List[Dict[str, Any]]:
        try:
            with self._session_scope() as session:
                rows = (
                    session.query(
                        RetrospectiveItemModel.id,
                        RetrospectiveItemModel.column_type,
                        RetrospectiveItemModel.description,
                        RetrospectiveItemModel.item_date,
                        ProjectModel.name.label("project"),
                    )
                    .join(ProjectModel, RetrospectiveItemModel.project_id == ProjectModel.id)
                    .order_by(RetrospectiveItemModel.id)
                    .all()
                )
                return [dict(row._mapping) for row in rows]
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to load retrospective items: {str(e)}") from e

    def get_releases(self) -> List[Dict[str, Any]]:
        try:
            with self._session_scope() as session:
                rows = (
                    session.query(
                        ReleaseModel.id,
                        ReleaseModel.name,
                        ReleaseModel.release_date,
                        ReleaseModel.is_current,
                        ProjectModel.name.label("project"),
                    )
                    .join(ProjectModel, ReleaseModel.project_id == ProjectModel.id)
                    .order_by(ReleaseModel.id)
                    .all()
                )
                return [dict(row._mapping) for row in rows]
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to load releases: {str(e)}") from e

    def get_defect_requirement_links(self) -> List[Dict[str, Any]]:
        try:
            with self._session_scope() as session:
                rows = (
                    session.query(
                        DefectRequirementLinkModel.defect_id,
                        DefectRequirementLinkModel.requirement_group_id,
                        DefectModel.title.label("defect_title"),
                        RequirementModel.title.label("req_title"),
                    )
                    .join(DefectModel, DefectRequirementLinkModel.defect_id == DefectModel.id)
                    .join(
                        RequirementModel,
                        DefectRequirementLinkModel.requirement_group_id
                        == RequirementModel.requirement_group_id,
                    )
                    .filter(RequirementModel.is_current.is_(True))
                    .all()
                )
                return [dict(row._mapping) for row in rows]
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to load defect links: {str(e)}") from e

    def create_requirement(self, project_id: int, title: str, sprint: str) -> int:
        """Insert a requirement as its own group and return the group id"""
        try:
            with self._session_scope() as session:
                requirement = RequirementModel(
                    project_id=project_id,
                    title=title,
                    status=Config.NEW_REQUIREMENT_STATUS,
                    status_date=date.today().strftime(Config.DATE_FORMAT),
                    sprint=sprint,
                    is_current=True,
                )
                session.add(requirement)
                session.flush()  # Get the ID without committing
                requirement.requirement_group_id = requirement.id
                session.commit()
                return requirement.id
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to create requirement: {str(e)}") from e

    def create_defect(self, project_id: int, title: str) -> int:
        try:
            with self._session_scope() as session:
                defect = DefectModel(
                    project_id=project_id,
                    title=title,
                    area=Config.NEW_DEFECT_AREA,
                    status=DefectStatus.ASSIGNED_TO_DEVELOPER.value,
                    created_date=date.today().strftime(Config.DATE_FORMAT),
                )
                session.add(defect)
                session.commit()
                return defect.id
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to create defect: {str(e)}") from e

    def get_setting(self, key: str) -> Optional[str]:
        try:
            with self._session_scope() as session:
                setting = session.get(AppSettingModel, key)
                return setting.value if setting else None
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to read setting {key}: {str(e)}") from e
