"""Defines user concepts for the user service."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Iterable, List, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, \
    Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pytz import UTC

from . import config


Email = Annotated[EmailStr, AfterValidator(str.lower)]
"""An e-mail address. Addresses differing only in case are the same."""


class Role(str, Enum):
    """Closed vocabulary of roles that govern authorization."""

    ADMIN = 'ADMIN'
    USER = 'USER'


class DomainModel(BaseModel):
    """Base for domain objects; camelCase on the wire, snake_case in Python."""

    # Validation errors reach callers; they must not echo passwords or hashes.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True,
                              hide_input_in_errors=True)


def _unique(roles: Iterable[Role]) -> List[Role]:
    """Drop repeated roles, keeping the first occurrence of each."""
    seen: List[Role] = []
    for role in roles:
        if role not in seen:
            seen.append(role)
    return seen


def _aware(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class User(DomainModel):
    """A persisted user account."""

    id: UUID
    """Assigned once, at creation. Never changes."""

    name: str
    """Display name."""

    email: Email
    """Unique across live accounts; the alternate lookup key."""

    roles: List[Role] = Field(min_length=1)
    """Roles held by the user. See :mod:`bud.users.auth.roles`."""

    password_hash: bytes = Field(repr=False)
    """Opaque bcrypt hash. Never leaves the service; see :class:`UserView`."""

    department: str = ''
    """Free text."""

    enabled: bool = True
    """Disabled accounts cannot authenticate."""

    date_created: datetime
    date_updated: datetime

    @field_validator('roles')
    @classmethod
    def unique_roles(cls, value: List[Role]) -> List[Role]:
        return _unique(value)

    @field_validator('date_created', 'date_updated')
    @classmethod
    def timezone_aware(cls, value: datetime) -> datetime:
        return _aware(value)

    @model_validator(mode='after')
    def updated_after_created(self) -> 'User':
        if self.date_updated < self.date_created:
            raise ValueError('date_updated precedes date_created')
        return self


class UserView(DomainModel):
    """
    The outward-facing representation of a :class:`User`.

    Has no password hash field at all, so nothing a response carries can
    leak it.
    """

    id: UUID
    name: str
    email: str
    roles: List[Role]
    department: str
    enabled: bool
    date_created: datetime
    date_updated: datetime

    @classmethod
    def from_user(cls, user: User) -> 'UserView':
        """Strip the private fields from a :class:`User`."""
        return cls(**user.model_dump(exclude={'password_hash'}))


class NewUser(DomainModel):
    """Information needed to create a user."""

    name: str = Field(min_length=1)
    email: Email
    roles: List[Role] = Field(min_length=1)
    department: str = ''
    password: str = Field(min_length=1, repr=False)
    password_confirm: str = Field(repr=False)

    @field_validator('roles')
    @classmethod
    def unique_roles(cls, value: List[Role]) -> List[Role]:
        return _unique(value)

    @model_validator(mode='after')
    def passwords_match(self) -> 'NewUser':
        if self.password != self.password_confirm:
            raise ValueError('passwords do not match')
        return self


class UpdateUser(DomainModel):
    """
    Information needed to update a user.

    Only fields that are set are applied; ``None`` leaves the stored value
    unchanged.
    """

    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[Email] = None
    roles: Optional[List[Role]] = Field(default=None, min_length=1)
    department: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=1, repr=False)
    password_confirm: Optional[str] = Field(default=None, repr=False)
    enabled: Optional[bool] = None

    @field_validator('roles')
    @classmethod
    def unique_roles(cls, value: Optional[List[Role]]) \
            -> Optional[List[Role]]:
        return None if value is None else _unique(value)

    @model_validator(mode='after')
    def passwords_match(self) -> 'UpdateUser':
        if self.password != self.password_confirm:
            raise ValueError('passwords do not match')
        return self


class Claims(DomainModel):
    """
    Verified identity of a caller.

    Provided by the (external) authentication layer, and returned by
    :meth:`bud.users.service.UserService.authenticate`. An anonymous caller
    has an empty ``user_id`` and no roles.
    """

    user_id: str = ''
    roles: List[str] = []

    def has_any_role(self, roles: Iterable[Any]) -> bool:
        """Check whether the caller holds at least one of ``roles``."""
        held = set(self.roles)
        return any(_role_name(role) in held for role in roles)

    @property
    def is_admin(self) -> bool:
        """Whether the caller holds the administrator role."""
        return Role.ADMIN.value in self.roles


def _role_name(role: Any) -> str:
    return role.value if isinstance(role, Role) else str(role)


class UserQuery(DomainModel):
    """Filter and page for listing users. Unset filters match everything."""

    enabled: Optional[bool] = None
    department: Optional[str] = None
    role: Optional[Role] = None
    page: int = Field(default=1, ge=1)
    rows_per_page: int = Field(default=config.DEFAULT_ROWS_PER_PAGE, ge=1,
                               le=config.MAX_ROWS_PER_PAGE)

    @property
    def offset(self) -> int:
        """Number of matching users that precede this page."""
        return (self.page - 1) * self.rows_per_page

    def matches(self, user: User) -> bool:
        """Determine whether ``user`` satisfies every set filter."""
        if self.enabled is not None and user.enabled != self.enabled:
            return False
        if self.department is not None \
                and user.department != self.department:
            return False
        if self.role is not None and self.role not in user.roles:
            return False
        return True
