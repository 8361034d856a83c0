# votebox/encryption/password_hashing.py

import re

from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError, VerifyMismatchError

from votebox.errors import ValidationError

# Credential hashing and verification using Argon2id


class PasswordHashingService:
    def __init__(self, time_cost=3, memory_cost=65536):
        self.ph = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=4,
            hash_len=32,
            salt_len=16,
        )

    @classmethod
    def from_config(cls, config):
        return cls(
            time_cost=config.get('ARGON2_TIME_COST', 3),
            memory_cost=config.get('ARGON2_MEMORY_COST', 65536),
        )

    def hash_password(self, password: str) -> str:
        if not self.is_strong_password(password):
            raise ValidationError(
                "Password must be at least 12 characters and mix three of: "
                "uppercase, lowercase, digits, symbols"
            )
        try:
            return self.ph.hash(password)
        except HashingError as e:
            raise ValidationError(f"Password hashing failed: {str(e)}")

    def verify_password(self, password: str, hash_value: str) -> bool:
        if not isinstance(password, str) or not hash_value:
            return False
        try:
            return self.ph.verify(hash_value, password)
        except VerifyMismatchError:
            return False
        except (VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, hash_value: str) -> bool:
        return self.ph.check_needs_rehash(hash_value)

    def is_strong_password(self, password: str) -> bool:
        if not isinstance(password, str) or len(password) < 12:
            return False
        has_upper = bool(re.search(r'[A-Z]', password))
        has_lower = bool(re.search(r'[a-z]', password))
        has_digit = bool(re.search(r'\d', password))
        has_special = bool(re.search(r'[!@#$%^&*(),.?":{}|<>]', password))
        return sum([has_upper, has_lower, has_digit, has_special]) >= 3
