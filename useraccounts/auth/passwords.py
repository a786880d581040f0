import bcrypt

from useraccounts.core import config
from useraccounts.core.errors import Infrastructure, InvalidInput

# bcrypt only reads the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    def __init__(self, rounds: int | None = None) -> None:
        self.rounds = rounds or config.BCRYPT_ROUNDS

    def hash(self, plaintext: str) -> str:
        encoded = plaintext.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise InvalidInput(f"Password should be at most {MAX_PASSWORD_BYTES} bytes.")
        try:
            digest = bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self.rounds))
        except ValueError as exc:
            raise Infrastructure("Password hashing unavailable.") from exc
        return digest.decode("utf-8")
