import io
import random
import re
import time
from typing import Iterable, Optional

import barcode
from barcode.writer import ImageWriter

from .schemas import InventoryItem

BARCODE_LENGTH = 12
BARCODE_PREFIX = "88"
MIN_BARCODE_LENGTH = 6

_WHITESPACE = re.compile(r"\s+")
_NON_DIGIT = re.compile(r"\D")


def generate_barcode_png(data: str) -> bytes:
    code = barcode.get("code128", data, writer=ImageWriter())
    buf = io.BytesIO()
    code.write(buf)
    return buf.getvalue()


def normalize(code: Optional[str]) -> str:
    return _WHITESPACE.sub("", code or "")


def generate(seed: Optional[str] = None) -> str:
    """Build a 12 digit code: "88", seed digits, 8 time digits, 3 random digits."""

    time_part = str(int(time.time() * 1000))[-8:]
    random_part = str(random.randint(100, 999))
    raw = _NON_DIGIT.sub("", f"{normalize(seed)}{time_part}{random_part}")
    return f"{BARCODE_PREFIX}{raw}"[:BARCODE_LENGTH].ljust(BARCODE_LENGTH, "0")


def ensure_barcode(item: InventoryItem, salt: str = "") -> InventoryItem:
    current = normalize(item.barcode)
    if len(current) >= MIN_BARCODE_LENGTH:
        if current == item.barcode:
            return item
        return item.model_copy(update={"barcode": current})
    return item.model_copy(update={"barcode": generate(f"{item.id}{salt}")})


def ensure_inventory_barcodes(items: Iterable[InventoryItem]) -> list[InventoryItem]:
    now = int(time.time() * 1000)
    return [ensure_barcode(item, f"-{idx}-{now}") for idx, item in enumerate(items)]


def find_duplicate(
    inventory: Iterable[InventoryItem],
    code: Optional[str],
    exclude_id: Optional[str] = None,
) -> Optional[InventoryItem]:
    normalized = normalize(code)
    if not normalized:
        return None
    for item in inventory:
        if item.id != exclude_id and normalize(item.barcode) == normalized:
            return item
    return None


def find_by_barcode(inventory: Iterable[InventoryItem], code: Optional[str]) -> Optional[InventoryItem]:
    """Find the item scanned as ``code``.

    Both the stored barcode and the item id are compared whitespace-normalized,
    so a label printed as "ITEM 001" still resolves item ``ITEM001``.
    """

    normalized = normalize(code)
    if not normalized:
        return None
    for item in inventory:
        # legacy items without a barcode are scanned by their id
        if normalize(item.barcode) == normalized or normalize(item.id) == normalized:
            return item
    return None
