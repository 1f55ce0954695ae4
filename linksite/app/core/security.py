import hashlib
import secrets

from linksite.app.core.config import settings

PBKDF2_ITERATIONS = 100_000


def hash_token(raw_token: str) -> str:
    """Hash a session token using SHA256.

    Tokens are high-entropy random strings, so an unsalted digest is enough
    to avoid storing them in plain text.

    Args:
        raw_token: The raw bearer token

    Returns:
        The SHA256 hex digest of the token
    """
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def generate_token(nbytes: int | None = None) -> str:
    """Generate a new random bearer token.

    Args:
        nbytes: Number of random bytes to use as input entropy.
            Defaults to settings.token_bytes.

    Returns:
        A URL-safe token string.
    """
    return secrets.token_urlsafe(nbytes or settings.token_bytes)


def hash_password(password: str, salt: str | None = None) -> tuple[str, str]:
    """Hash a password using PBKDF2 with SHA256.

    Args:
        password: The plain text password
        salt: Optional salt. If not provided, a random salt will be generated.

    Returns:
        A tuple of (salt, hashed_password)
    """
    if salt is None:
        salt = secrets.token_hex(16)

    hashed = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), PBKDF2_ITERATIONS
    ).hex()

    return salt, hashed


def verify_password(password: str, salt: str, hashed_password: str) -> bool:
    """Verify a plain text password against its stored hash.

    Returns:
        True if the password matches, False otherwise
    """
    _, computed_hash = hash_password(password, salt)
    return secrets.compare_digest(computed_hash, hashed_password)
