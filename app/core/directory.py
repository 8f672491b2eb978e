"""
Class/student directory lookups the fee ledger depends on.
Classes and students are registered elsewhere; this module only reads them.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.models import SchoolClass, Student


async def class_exists(db: AsyncSession, class_id: UUID) -> bool:
    found = (
        await db.execute(
            select(SchoolClass.id).where(SchoolClass.id == class_id, SchoolClass.is_active.is_(True))
        )
    ).scalar_one_or_none()
    return found is not None


async def find_student_class(db: AsyncSession, student_id: UUID) -> Optional[UUID]:
    """Return the student's current class id, or None when the student is unknown."""
    return (
        await db.execute(select(Student.class_id).where(Student.id == student_id))
    ).scalar_one_or_none()


async def resolve_student_class(db: AsyncSession, student_id: UUID) -> UUID:
    class_id = await find_student_class(db, student_id)
    if class_id is None:
        raise NotFoundError("Student not found")
    return class_id
