from __future__ import annotations

from ..extensions import db
from portaria.time_utils import to_utc_z, utcnow


USER_ROLES = ("user", "admin")


class User(db.Model):
    """
    Operator accounts.

    Rows are created by the first successful login (PIN or OAuth) and
    updated on every later login. Users are never hard-deleted: audit
    entries keep pointing at them.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    # Identity from the login provider ("admin-local" for PIN logins)
    open_id = db.Column(db.String(64), nullable=False, unique=True, index=True)

    name = db.Column(db.Text, nullable=True)
    email = db.Column(db.String(320), nullable=True)
    login_method = db.Column(db.String(64), nullable=True)

    role = db.Column(db.String(16), nullable=False, default="user")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, server_default=db.func.now())
    last_signed_in = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "openId": self.open_id,
            "name": self.name,
            "email": self.email,
            "loginMethod": self.login_method,
            "role": self.role,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "lastSignedIn": to_utc_z(self.last_signed_in),
        }
