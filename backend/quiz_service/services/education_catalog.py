"""Education catalog: quiz configuration and eligibility.

Educations are owned by the education service. This service reads a local
copy of the parts it needs (quiz policy and completions) kept in sync by that
service, behind the ``EducationCatalog`` protocol.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Protocol

from sqlalchemy import func
from sqlalchemy.orm import Session

from quiz_service.models.models import EducationCompletion, EducationQuizPolicy


@dataclass(frozen=True)
class EducationSnapshot:
    """Detached copy of a policy, usable after the session releases its rows."""

    education_id: int
    title: str
    category: Optional[str]
    version: int
    pass_score: Optional[int]
    time_limit_seconds: Optional[int]
    max_attempts: Optional[int]

    @classmethod
    def from_policy(cls, policy: EducationQuizPolicy) -> "EducationSnapshot":
        return cls(
            education_id=policy.education_id,
            title=policy.title,
            category=policy.category,
            version=policy.version,
            pass_score=policy.pass_score,
            time_limit_seconds=policy.time_limit_seconds,
            max_attempts=policy.max_attempts,
        )


class EducationCatalog(Protocol):
    def get_policy(self, education_id: int) -> Optional[EducationQuizPolicy]:
        """Active (non-deleted) policy for an education, or None."""
        ...

    def get_policies(self, education_ids: Iterable[int]) -> Dict[int, EducationQuizPolicy]:
        """Active policies keyed by education id; unknown ids are omitted."""
        ...

    def policies_by_category(self, category: str) -> List[EducationQuizPolicy]:
        """Active policies in a category (case-insensitive), by education id."""
        ...

    def completed_education_ids(self, user_id: str) -> List[int]:
        """Educations the user completed and may take the quiz for."""
        ...

    def eligible_count(
        self, education_id: Optional[int] = None, department: Optional[str] = None
    ) -> int:
        """Distinct users eligible for the quiz (all educations when id is None)."""
        ...

    def eligible_by_department(self) -> Dict[str, int]:
        """Distinct eligible users per department."""
        ...


class SqlEducationCatalog:
    """EducationCatalog over the local ``education_*`` read-model tables."""

    def __init__(self, db: Session):
        self.db = db

    def get_policy(self, education_id: int) -> Optional[EducationQuizPolicy]:
        return (
            self.db.query(EducationQuizPolicy)
            .filter(
                EducationQuizPolicy.education_id == education_id,
                EducationQuizPolicy.deleted_at.is_(None),
            )
            .first()
        )

    def get_policies(self, education_ids: Iterable[int]) -> Dict[int, EducationQuizPolicy]:
        ids = list(set(education_ids))
        if not ids:
            return {}
        rows = (
            self.db.query(EducationQuizPolicy)
            .filter(
                EducationQuizPolicy.education_id.in_(ids),
                EducationQuizPolicy.deleted_at.is_(None),
            )
            .all()
        )
        return {row.education_id: row for row in rows}

    def policies_by_category(self, category: str) -> List[EducationQuizPolicy]:
        return (
            self.db.query(EducationQuizPolicy)
            .filter(
                func.lower(EducationQuizPolicy.category) == category.strip().lower(),
                EducationQuizPolicy.deleted_at.is_(None),
            )
            .order_by(EducationQuizPolicy.education_id)
            .all()
        )

    def completed_education_ids(self, user_id: str) -> List[int]:
        rows = (
            self.db.query(EducationCompletion.education_id)
            .join(
                EducationQuizPolicy,
                EducationQuizPolicy.education_id == EducationCompletion.education_id,
            )
            .filter(
                EducationCompletion.user_id == user_id,
                EducationQuizPolicy.deleted_at.is_(None),
            )
            .order_by(EducationCompletion.completed_at.desc())
            .all()
        )
        return [row.education_id for row in rows]

    def eligible_count(
        self, education_id: Optional[int] = None, department: Optional[str] = None
    ) -> int:
        query = self.db.query(func.count(func.distinct(EducationCompletion.user_id)))
        if education_id is not None:
            query = query.filter(EducationCompletion.education_id == education_id)
        if department:
            query = query.filter(EducationCompletion.department == department)
        return query.scalar() or 0

    def eligible_by_department(self) -> Dict[str, int]:
        rows = (
            self.db.query(
                EducationCompletion.department,
                func.count(func.distinct(EducationCompletion.user_id)),
            )
            .filter(EducationCompletion.department.isnot(None))
            .group_by(EducationCompletion.department)
            .all()
        )
        return {department: count for department, count in rows}
