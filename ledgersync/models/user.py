from flask import session
from flask_login import UserMixin
from ..extensions import login_manager

# Session key holding the signed-in profile (never the token)
SESSION_USER_KEY = "contribution_app_user"


class User(UserMixin):
    def __init__(self, email: str, name: str, photo_url: str | None = None):
        self.email = email
        self.name = name
        self.photo_url = photo_url

    def get_id(self):
        return self.email

    @classmethod
    def from_profile(cls, profile: dict) -> "User":
        """Build from a userinfo response (``email``, ``name``, ``picture``)."""
        email = profile.get("email")
        if not email:
            raise ValueError("userinfo response carries no email")
        return cls(email=email, name=profile.get("name") or email, photo_url=profile.get("picture"))

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(email=data["email"], name=data.get("name") or data["email"], photo_url=data.get("photo_url"))

    def to_dict(self) -> dict:
        return {"email": self.email, "name": self.name, "photo_url": self.photo_url}

    def __repr__(self):
        return f"<User {self.email}>"


@login_manager.user_loader
def load_user(user_id):
    data = session.get(SESSION_USER_KEY)
    if not data or data.get("email") != user_id:
        return None
    return User.from_dict(data)
