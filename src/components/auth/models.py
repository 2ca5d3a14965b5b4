from dataclasses import dataclass

from src.domain.entities import User


@dataclass
class LoginInput:
    login_id: str  # email or username
    password: str


@dataclass
class AuthOutput:
    user: User | None = None
    success: bool = False
    error: str | None = None
