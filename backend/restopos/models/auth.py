from __future__ import annotations

from sqlalchemy import event, func, select

from ..errors import ConflictError
from ..extensions import db
from ..permissions.roles import ROLE_VALUES, Role
from ..time_utils import to_utc_z, utcnow
from .types import new_id

_ROLE_CHECK = "role IN ({})".format(", ".join(f"'{value}'" for value in ROLE_VALUES))


class User(db.Model):
    """
    Staff account.

    MULTI-TENANT: users belong to exactly one restaurant, but email is unique
    across the whole table so a login identifies a single account.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint(_ROLE_CHECK, name="ck_users_role"),
        db.Index("ix_users_restaurant_role", "restaurant_id", "role"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    restaurant_id = db.Column(
        db.String(36),
        db.ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    restaurant = db.relationship("Restaurant", back_populates="users")
    sessions = db.relationship("SessionToken", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }


@event.listens_for(User, "before_delete")
def _refuse_last_superadmin_delete(mapper, connection, target):
    """Storage-level backstop: the final superadmin row is never deleted."""
    if target.role != Role.SUPERADMIN.value:
        return
    users = User.__table__
    remaining = connection.execute(
        select(func.count()).select_from(users).where(users.c.role == Role.SUPERADMIN.value)
    ).scalar_one()
    if remaining <= 1:
        raise ConflictError("Cannot delete the last superadmin in the system")


class SessionToken(db.Model):
    """
    Login session.

    Only the SHA-256 hash of the bearer token is stored. active_restaurant_id
    is the tenant the user is currently viewing; NULL means "all tenants" and
    is only honored for superadmins.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)
    active_restaurant_id = db.Column(
        db.String(36),
        db.ForeignKey("restaurants.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(128), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)

    user = db.relationship("User", back_populates="sessions")

    def revoke(self, reason: str) -> None:
        self.is_revoked = True
        self.revoked_at = utcnow()
        self.revoked_reason = reason

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "active_restaurant_id": self.active_restaurant_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
