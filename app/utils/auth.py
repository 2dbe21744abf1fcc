import secrets

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    return pwd_context.hash(password)


def generate_session_token() -> str:
    """추측 불가능한 불투명 세션 토큰 생성"""
    return f"session_{secrets.token_urlsafe(32)}"


def generate_invite_code() -> str:
    """8자리 대문자/숫자 초대 코드 생성"""
    alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
    return "".join(secrets.choice(alphabet) for _ in range(8))
