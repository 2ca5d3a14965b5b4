from pydantic import BaseModel, ConfigDict, Field


class SignupSettings(BaseModel):
    """
    Snapshot of the signup-related server configuration.

    Passed explicitly into the invitation validator so validation is a pure
    function of (token, settings, clock).
    """

    model_config = ConfigDict(frozen=True)

    enable_sign_up_with_email: bool = True
    enable_user_creation: bool = True
    enable_open_server: bool = True
    invite_salt: str = Field(min_length=1)
    restrict_creation_to_domains: str = ""
    password_min_length: int = Field(default=5, ge=1)
    site_url: str = "http://localhost:8065"


class AuthSettings(BaseModel):
    access_token_expire_minutes: int = Field(default=60 * 24, ge=1)
    cookie_secure: bool = False


class AppConfig(BaseModel):
    signup: SignupSettings
    auth: AuthSettings = Field(default_factory=AuthSettings)
