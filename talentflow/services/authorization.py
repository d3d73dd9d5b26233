"""Employer-side authorization.

Roles map to permissions through an immutable table; the pipeline asks the
provider whether an actor holds the least-privileged role granting the
permission an operation needs.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from enum import StrEnum
from types import MappingProxyType

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from talentflow.core.storage import async_session
from talentflow.models import CompanyMember

logger = logging.getLogger(__name__)


class Role(StrEnum):
    VIEWER = "viewer"
    RECRUITER = "recruiter"
    ADMIN = "admin"
    OWNER = "owner"


class Permission(StrEnum):
    VIEW_APPLICATIONS = "application:view"
    UPDATE_APPLICATION_STATUS = "application:update_status"
    REJECT_APPLICATION = "application:reject"
    MANAGE_INTERVIEWS = "interview:manage"
    WRITE_NOTES = "note:write"


# Least privileged first.
ROLE_RANK: Mapping[str, int] = MappingProxyType(
    {role.value: rank for rank, role in enumerate(Role)}
)

_HIRING_TEAM = frozenset(
    {
        Permission.VIEW_APPLICATIONS.value,
        Permission.UPDATE_APPLICATION_STATUS.value,
        Permission.REJECT_APPLICATION.value,
        Permission.MANAGE_INTERVIEWS.value,
        Permission.WRITE_NOTES.value,
    }
)

ROLE_PERMISSIONS: Mapping[str, frozenset[str]] = MappingProxyType(
    {
        Role.VIEWER.value: frozenset({Permission.VIEW_APPLICATIONS.value}),
        Role.RECRUITER.value: _HIRING_TEAM,
        Role.ADMIN.value: _HIRING_TEAM,
        Role.OWNER.value: _HIRING_TEAM,
    }
)


def role_allows(role: str, permission: str) -> bool:
    """Check if a role grants a permission."""
    return permission in ROLE_PERMISSIONS.get(role, frozenset())


def required_role(permission: str) -> str:
    """Return the least-privileged role granting a permission."""
    for role in Role:
        if role_allows(role.value, permission):
            return role.value
    raise ValueError(f"No role grants permission {permission}")


def role_satisfies(held: str, required: str) -> bool:
    """Check if a held role ranks at or above a required one."""
    if held not in ROLE_RANK or required not in ROLE_RANK:
        return False
    return ROLE_RANK[held] >= ROLE_RANK[required]


class AuthorizationProvider(ABC):
    """Answers role questions about employer-side actors."""

    @abstractmethod
    async def has_role(self, actor_id: str, company_id: str, required: str) -> bool:
        """Check if an actor holds at least ``required`` within a company.

        Args:
            actor_id: Acting user
            company_id: Company owning the job the application belongs to
            required: Role name from ``Role``

        Returns:
            True when the actor's membership role ranks at or above it
        """
        pass


class MembershipAuthorizationProvider(AuthorizationProvider):
    """Authorization backed by the company_members table."""

    def __init__(
        self, session_factory: Callable[[], AsyncSession] = async_session
    ):
        self.session_factory = session_factory

    async def has_role(self, actor_id: str, company_id: str, required: str) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(
                select(CompanyMember.role).where(
                    CompanyMember.actor_id == actor_id,
                    CompanyMember.company_id == company_id,
                )
            )
            role = result.scalar_one_or_none()

        if role is None:
            logger.debug(f"Actor {actor_id} is not a member of company {company_id}")
            return False
        return role_satisfies(role, required)
