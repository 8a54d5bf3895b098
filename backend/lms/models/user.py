from sqlalchemy import Column, String, DateTime, Enum as SQLEnum
from datetime import datetime
import enum

from lms.core.database import Base
from lms.core.types import GUID, JSONType, generate_uuid
from lms.modules.auth.roles import Role, get_highest_role, sort_roles


class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class User(Base):
    """
    Identity record.

    ``roles`` is the global role set, stored highest-first.
    ``default_dashboard`` is always one of them. Users are deactivated,
    never deleted.
    """
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    uid = Column(String(64), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=True)
    password_hash = Column(String(255), nullable=False)

    roles = Column(JSONType, nullable=False, default=lambda: [Role.STUDENT.value])
    is_active = Column(SQLEnum(UserStatus), default=UserStatus.ACTIVE, nullable=False)
    default_dashboard = Column(SQLEnum(Role), default=Role.STUDENT, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def role_set(self) -> set:
        return {Role(r) for r in (self.roles or [])}

    @property
    def active(self) -> bool:
        return self.is_active == UserStatus.ACTIVE

    def has_role(self, role: Role) -> bool:
        return role in self.role_set

    def assign_roles(self, roles) -> None:
        """Replace the role set and point the default dashboard at the highest role"""
        ordered = sort_roles(roles)
        highest = get_highest_role(ordered)
        self.roles = [r.value for r in ordered]
        self.default_dashboard = highest

    def to_claims(self) -> dict:
        return {
            "userId": str(self.id),
            "email": self.email,
            "roles": [Role(r).value for r in self.roles],
            "defaultDashboard": Role(self.default_dashboard).value,
        }

    def __repr__(self):
        return f"<User {self.uid} {self.email}>"
