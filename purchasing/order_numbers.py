"""
Purchase order code generation.

Primary path: the table store's sequence procedure returns a ready-to-use
code (OC-YYYYMMDD-NNNN).  If that call fails for any reason the failure is
logged and a local code is synthesised instead:

    OC-<YYYYMMDD>-<4-digit random>

The fallback carries no cross-process uniqueness guarantee; two concurrent
fallbacks on the same day can collide.  Uniqueness, if enforced at all, is
the store's job (the SQLite store has a UNIQUE constraint on code).
"""
import logging
import random
import re
from datetime import date
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

ORDER_CODE_PREFIX = "OC"
FALLBACK_PATTERN = re.compile(r"^OC-\d{8}-\d{4}$")


def fallback_order_code(today: date, rng: Optional[random.Random] = None) -> str:
    """Synthesise OC-YYYYMMDD-NNNN with a zero-padded random suffix in [0, 9999]."""
    suffix = (rng or random).randint(0, 9999)
    return f"{ORDER_CODE_PREFIX}-{today.strftime('%Y%m%d')}-{suffix:04d}"


class OrderNumberGenerator:
    """
    Produces the immutable code assigned to a new purchase order.

    sequence: any object with generate_order_number() -> str (RestStore,
              SqliteStore), or None to always use the local fallback.
    """

    def __init__(
        self,
        sequence: Any = None,
        today: Callable[[], date] = date.today,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.sequence = sequence
        self._today = today
        self._rng = rng

    def generate(self) -> str:
        """Return a non-empty order code.  Never raises for sequence failures."""
        if self.sequence is not None:
            try:
                code = self.sequence.generate_order_number()
                if isinstance(code, str) and code.strip():
                    return code.strip()
                logger.warning("Order number sequence returned an empty value — using local fallback")
            except Exception as exc:
                logger.warning("Order number sequence failed (%s) — using local fallback", exc)

        code = fallback_order_code(self._today(), self._rng)
        logger.info("Generated fallback order code %s", code)
        return code
