from passlib.context import CryptContext

_pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


class PasslibAuthAdapter:
    """Argon2 password hashing through passlib."""

    def hash_password(self, password: str) -> str:
        hashed: str = _pwd_context.hash(password)
        return hashed

    def verify_password(self, plain: str, hashed: str) -> bool:
        return bool(_pwd_context.verify(plain, hashed))
