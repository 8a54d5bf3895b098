"""
The authenticated identity attached to a request.

Database users become a ``Principal`` freshly loaded on every request.
The configured superadmin has no backing row and is represented by the
dedicated ``SuperAdminPrincipal`` type instead of a magic user id.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from lms.core.config import settings
from lms.modules.auth.roles import Role, has_higher_or_equal_role

SUPERADMIN_ID = "superadmin"


@dataclass
class Principal:
    id: str
    email: str
    roles: List[Role]
    default_dashboard: Role
    name: Optional[str] = None
    uid: Optional[str] = None

    @property
    def is_superadmin(self) -> bool:
        return False

    @property
    def user_id(self) -> Optional[str]:
        """Foreign-key value for rows this principal creates"""
        return self.id

    def has_role(self, role: Role) -> bool:
        return role in self.roles

    def satisfies(self, minimum: Role) -> bool:
        return has_higher_or_equal_role(self.roles, minimum)

    @property
    def unscoped(self) -> bool:
        """Sees every department, not only the ones it is dean of"""
        return self.is_superadmin or Role.SUPERADMIN in self.roles

    def to_claims(self) -> dict:
        return {
            "userId": self.id,
            "email": self.email,
            "roles": [r.value for r in self.roles],
            "defaultDashboard": self.default_dashboard.value,
        }

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(
            id=str(user.id),
            email=user.email,
            roles=[Role(r) for r in user.roles],
            default_dashboard=Role(user.default_dashboard),
            name=user.name,
            uid=user.uid,
        )


@dataclass
class SuperAdminPrincipal(Principal):
    """Always ACTIVE, always SUPERADMIN, never stored"""
    id: str = SUPERADMIN_ID
    email: str = field(default_factory=lambda: settings.SUPERADMIN_EMAIL)
    roles: List[Role] = field(default_factory=lambda: [Role.SUPERADMIN])
    default_dashboard: Role = Role.SUPERADMIN
    name: Optional[str] = field(default_factory=lambda: settings.SUPERADMIN_NAME)
    uid: Optional[str] = field(default_factory=lambda: settings.SUPERADMIN_UID)

    @property
    def is_superadmin(self) -> bool:
        return True

    @property
    def user_id(self) -> Optional[str]:
        return None
