"""Database models for user accounts."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, \
    LargeBinary, String
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class DBUser(Base):  # type: ignore
    """
    User accounts.

    +---------------+--------------+------+-----+
    | Field         | Type         | Null | Key |
    +---------------+--------------+------+-----+
    | user_id       | varchar(36)  | NO   | PRI |
    | name          | varchar(255) | NO   |     |
    | email         | varchar(255) | NO   | UNI |
    | password_hash | blob         | NO   |     |
    | department    | varchar(255) | NO   | MUL |
    | enabled       | bool         | NO   |     |
    | date_created  | datetime     | NO   | MUL |
    | date_updated  | datetime     | NO   |     |
    +---------------+--------------+------+-----+
    """

    __tablename__ = 'users'

    user_id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(LargeBinary, nullable=False)
    department = Column(String(255), nullable=False, index=True, default='')
    enabled = Column(Boolean, nullable=False, default=True)
    date_created = Column(DateTime(timezone=True), nullable=False, index=True)
    date_updated = Column(DateTime(timezone=True), nullable=False)

    roles = relationship('DBUserRole', back_populates='user',
                         cascade='all, delete-orphan', lazy='selectin',
                         order_by='DBUserRole.position')


class DBUserRole(Base):  # type: ignore
    """Roles held by a user, one row per role."""

    __tablename__ = 'user_roles'

    user_id = Column(ForeignKey('users.user_id', ondelete='CASCADE'),
                     primary_key=True)
    role = Column(String(16), primary_key=True)
    position = Column(Integer, nullable=False, default=0)

    user = relationship('DBUser', back_populates='roles')
