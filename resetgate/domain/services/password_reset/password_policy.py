"""Password policy applied to new passwords submitted with a reset token."""

import re
from typing import Any

from resetgate.domain.value_objects.password import PolicyResult

LETTER_AND_DIGIT = re.compile(r"^(?=.*[A-Za-z])(?=.*\d).+$", re.DOTALL)


class PasswordPolicy:
    """Stateless length and character-class rules.

    Rules are evaluated in a fixed order (type, minimum length, maximum
    length, character classes) and the first failure wins.
    """

    def __init__(self, min_length: int = 8, max_length: int = 128) -> None:
        if min_length <= 0 or max_length < min_length:
            raise ValueError("Password length bounds must satisfy 0 < min_length <= max_length")
        self.min_length = min_length
        self.max_length = max_length

    def validate(self, candidate: Any) -> PolicyResult:
        """Validate ``candidate`` against the policy.

        Args:
            candidate: Value submitted as the new password.

        Returns:
            PolicyResult: ``valid`` plus the first failing rule's message.
        """
        if not isinstance(candidate, str):
            return PolicyResult.fail("Password must be a string")
        if len(candidate) < self.min_length:
            return PolicyResult.fail(f"Password must be at least {self.min_length} characters")
        if len(candidate) > self.max_length:
            return PolicyResult.fail(f"Password must not exceed {self.max_length} characters")
        if not LETTER_AND_DIGIT.match(candidate):
            return PolicyResult.fail("Password must include at least 1 letter and 1 number")
        return PolicyResult.ok()
