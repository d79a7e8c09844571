"""Security utilities: password hashing, session tokens, and field encryption."""

import json
from datetime import datetime, timedelta, timezone

from cryptography.fernet import Fernet, InvalidToken
from jose import jwt
from passlib.context import CryptContext

from app.core.config import get_settings
from app.core.errors import DecryptionError

settings = get_settings()

# ── Password hashing (Argon2) ────────────────────────────────

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


# ── Envelope encryption (Fernet) ─────────────────────────────
#
# Each value gets its own data key (DEK). The DEK is wrapped with a master
# key and stored next to the ciphertext together with the master key id, so
# decryption unwraps the original DEK instead of needing a new one.

ENVELOPE_VERSION = 1


def _master_keys() -> dict[str, Fernet]:
    """Active master key plus any previous keys kept for decryption."""
    if not settings.encryption_key:
        raise RuntimeError("ENCRYPTION_KEY is not configured")
    keys = {settings.encryption_key_id: Fernet(settings.encryption_key.encode())}
    for pair in settings.encryption_previous_keys.split(","):
        pair = pair.strip()
        if not pair:
            continue
        key_id, _, key = pair.partition(":")
        keys.setdefault(key_id, Fernet(key.encode()))
    return keys


def encrypt_field(plaintext: str) -> str:
    """Encrypt a string value. Returns a JSON envelope safe to store in a text column."""
    key_id = settings.encryption_key_id
    master = _master_keys()[key_id]
    data_key = Fernet.generate_key()
    envelope = {
        "v": ENVELOPE_VERSION,
        "kid": key_id,
        "dek": master.encrypt(data_key).decode(),
        "ct": Fernet(data_key).encrypt(plaintext.encode()).decode(),
    }
    return json.dumps(envelope)


def decrypt_field(envelope: str) -> str:
    """Open an envelope produced by encrypt_field."""
    try:
        data = json.loads(envelope)
        key_id = data["kid"]
        wrapped_key = data["dek"]
        ciphertext = data["ct"]
    except (ValueError, KeyError, TypeError) as exc:
        raise DecryptionError("Malformed encrypted envelope") from exc

    master = _master_keys().get(key_id)
    if master is None:
        raise DecryptionError(f"Unknown encryption key id '{key_id}'")

    try:
        data_key = master.decrypt(wrapped_key.encode())
        return Fernet(data_key).decrypt(ciphertext.encode()).decode()
    except InvalidToken as exc:
        raise DecryptionError("Encrypted value failed verification") from exc


# ── JWT ───────────────────────────────────────────────────────

def create_jwt(subject: str, expires_delta: timedelta | None = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_expire_minutes)
    )
    payload = {"sub": subject, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

