"""Per-kiosk stock entries of a ticket type.

Stock lives inside the ticket type record as ``amount[kiosk_id]``. Entries are
stored as ``{"counter": int, "vault": int}``; older records carry the compact
``"<counter>,<vault>"`` string, which :func:`decode` and :func:`encode` still
read and write at the import/export boundary.
"""

import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple


def _to_count(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return 0
        return max(int(value), 0)
    try:
        return max(int(str(value).strip()), 0)
    except (TypeError, ValueError):
        return 0


def decode(encoded: Any) -> Tuple[int, int]:
    """Decode ``"<counter>,<vault>"`` into a pair. Never raises.

    >>> decode("20,30")
    (20, 30)
    >>> decode(None)
    (0, 0)
    >>> decode("abc,7")
    (0, 7)
    """
    if not isinstance(encoded, str) or not encoded:
        return 0, 0
    parts = encoded.split(",")
    counter = _to_count(parts[0])
    vault = _to_count(parts[1]) if len(parts) > 1 else 0
    return counter, vault


def encode(counter: Any, vault: Any) -> str:
    """Encode a pair as ``"<counter>,<vault>"``, coercing missing values to 0."""
    return f"{_to_count(counter)},{_to_count(vault)}"


@dataclass(frozen=True)
class KioskStock:
    counter: int = 0
    vault: int = 0

    @property
    def quantity(self) -> int:
        return self.counter + self.vault

    @classmethod
    def from_raw(cls, value: Any) -> "KioskStock":
        if isinstance(value, Mapping):
            return cls(
                counter=_to_count(value.get("counter")),
                vault=_to_count(value.get("vault")),
            )
        counter, vault = decode(value)
        return cls(counter=counter, vault=vault)

    def to_raw(self) -> dict:
        return {"counter": self.counter, "vault": self.vault}

    def to_encoded(self) -> str:
        return encode(self.counter, self.vault)

    def replace(
        self, counter: Optional[int] = None, vault: Optional[int] = None
    ) -> "KioskStock":
        return KioskStock(
            counter=self.counter if counter is None else counter,
            vault=self.vault if vault is None else vault,
        )


def read_kiosk_stock(
    amount: Optional[Mapping[str, Any]], kiosk_id: Optional[str]
) -> Optional[KioskStock]:
    """Return the kiosk's entry, or None when the kiosk was never stocked."""
    if not amount or kiosk_id is None or kiosk_id not in amount:
        return None
    return KioskStock.from_raw(amount[kiosk_id])


def is_legacy_entry(value: Any) -> bool:
    return isinstance(value, str)
