# base_repository.py
"""Abstract base repository interface for the tracker store."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class BaseProjectRepository(ABC):
    """Abstract base class for project tracker repositories"""

    @abstractmethod
    def get_project_names(self) -> List[str]:
        """Get the canonical list of project names"""
        pass

    @abstractmethod
    def get_project_id(self, project_name: str) -> Optional[int]:
        """Look up a project id by exact name"""
        pass

    @abstractmethod
    def get_current_requirements(self) -> List[Dict[str, Any]]:
        """Current requirement rows joined with project and release"""
        pass

    @abstractmethod
    def get_defects(self) -> List[Dict[str, Any]]:
        """All defects joined with their project"""
        pass

    @abstractmethod
    def get_notes(self) -> List[Dict[str, Any]]:
        """All notes joined with their project"""
        pass

    @abstractmethod
    def get_retrospective_items(self) -> List[Dict[str, Any]]:
        """All retrospective items joined with their project"""
        pass

    @abstractmethod
    def get_releases(self) -> List[Dict[str, Any]]:
        """All releases joined with their project"""
        pass

    @abstractmethod
    def get_defect_requirement_links(self) -> List[Dict[str, Any]]:
        """Defect/requirement links with both titles resolved"""
        pass

    @abstractmethod
    def create_requirement(self, project_id: int, title: str, sprint: str) -> int:
        """Create a requirement and return its group id"""
        pass

    @abstractmethod
    def create_defect(self, project_id: int, title: str) -> int:
        """Create a defect and return its id"""
        pass

    @abstractmethod
    def get_setting(self, key: str) -> Optional[str]:
        """Read an application setting"""
        pass
