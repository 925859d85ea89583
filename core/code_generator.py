import secrets
import string
import time
from typing import Callable, Optional

from core.log import logger
from models.TicketType import PAIS_CATEGORY

BASE36_ALPHABET = string.digits + string.ascii_uppercase
CODE_SUFFIX_LENGTH = 5


def code_prefix(category: Optional[str]) -> str:
    return "PAIS" if category == PAIS_CATEGORY else "CUST"


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def random_code(category: Optional[str]) -> str:
    suffix = "".join(
        secrets.choice(BASE36_ALPHABET) for _ in range(CODE_SUFFIX_LENGTH)
    )
    return f"{code_prefix(category)}-{suffix}"


def timestamp_code(category: Optional[str], now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{code_prefix(category)}-{to_base36(now_ms)[-CODE_SUFFIX_LENGTH:]}"


def generate_unique_code(
    category: Optional[str],
    code_exists: Callable[[str], bool],
    max_attempts: int = 10,
    now_ms: Optional[int] = None,
) -> str:
    """Generate a catalog-unique ticket code such as ``PAIS-7K2QX``.

    Args:
        category (str): ticket category, "pais" selects the PAIS prefix
        code_exists (Callable): catalog lookup, True when the code is taken
        max_attempts (int): random candidates tried before falling back
        now_ms (int): epoch milliseconds for the fallback code, for testing

    Returns:
        str: a code not reported as taken, or the timestamp fallback which is
        not re-checked
    """
    for attempt in range(1, max_attempts + 1):
        code = random_code(category)
        try:
            if not code_exists(code):
                return code
            logger.debug(f"Code {code} already taken (attempt {attempt})")
        except Exception as e:
            logger.error(f"Error checking code uniqueness for {code}: {e}")
            if attempt == max_attempts:
                return code

    fallback = timestamp_code(category, now_ms=now_ms)
    logger.warning(
        f"All {max_attempts} code candidates collided, using fallback {fallback}"
    )
    return fallback
