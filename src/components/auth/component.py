from .models import AuthOutput, LoginInput
from .ports import AuthAdapterPort, UserRepoPort


def run_login(
    inp: LoginInput, user_repo: UserRepoPort, auth_adapter: AuthAdapterPort
) -> AuthOutput:
    login_id = inp.login_id.strip().lower()
    if "@" in login_id:
        user = user_repo.get_by_email(login_id)
    else:
        user = user_repo.get_by_username(login_id)

    if not user:
        return AuthOutput(success=False, error="Invalid credentials")

    if not auth_adapter.verify_password(inp.password, user.password_hash):
        return AuthOutput(success=False, error="Invalid credentials")

    if user.status != "active":
        return AuthOutput(success=False, error="User account is disabled")

    return AuthOutput(user=user, success=True)


def run(
    inp: LoginInput,
    *,
    user_repo: UserRepoPort,
    auth_adapter: AuthAdapterPort,
) -> AuthOutput:
    if isinstance(inp, LoginInput):
        return run_login(inp, user_repo, auth_adapter)

    raise ValueError(f"Unknown input type: {type(inp)}")
