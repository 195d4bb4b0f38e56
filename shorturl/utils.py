import logging
import secrets
import string
from typing import Awaitable, Callable

from .exceptions import StorageFailureError
from .observability import CODE_COLLISIONS_TOTAL
from .validators import RESERVED_CODES

logger = logging.getLogger(__name__)

ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase

def generate_random_code(length: int = 7) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))

class CodeGenerator:
    """Draws random codes until one is free in storage.

    ``secrets`` keeps no per-instance state, so one generator can be shared by
    concurrent requests.
    """

    def __init__(self, length: int = 7, max_attempts: int = 10):
        self.length = length
        self.max_attempts = max_attempts

    async def generate(self, exists: Callable[[str], Awaitable[bool]]) -> str:
        for attempt in range(1, self.max_attempts + 1):
            code = generate_random_code(self.length)
            if code not in RESERVED_CODES and not await exists(code):
                return code
            CODE_COLLISIONS_TOTAL.inc()
            logger.warning(f"Code collision on attempt {attempt}/{self.max_attempts}: {code}")

        raise StorageFailureError(f"Could not generate a unique code after {self.max_attempts} attempts")
