import random
import string
from datetime import datetime
from typing import Optional

from config import settings

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
_rng = random.SystemRandom()

def generate_order_number(now: Optional[datetime] = None, prefix: Optional[str] = None) -> str:
    """Human-readable order code, e.g. AN-250314-7QK2 (prefix, YYMMDD, 4 random chars)."""
    now = now or datetime.now()
    prefix = prefix or settings.ORDER_NUMBER_PREFIX
    suffix = "".join(_rng.choice(ORDER_NUMBER_ALPHABET) for _ in range(4))
    return f"{prefix}-{now:%y%m%d}-{suffix}"
