import secrets
import string

ID_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
ID_RANDOM_LENGTH = 16


# ---------------- Identifiers ----------------
def generate_id(prefix: str, length: int = ID_RANDOM_LENGTH) -> str:
    """Return ``prefix`` followed by ``length`` uniformly drawn alphanumerics."""
    return prefix + "".join(secrets.choice(ID_ALPHABET) for _ in range(length))
