"""Domain service: human-readable order numbers.

Format: ``<prefix><YYMMDD>-<sequence:03d>``, e.g. ``ZF-261019-007``.
The sequence restarts every day.  Scanning for the highest number and
adding one is only safe because the number column is unique and order
creation retries on ``ConcurrencyConflict``.
"""

from __future__ import annotations

from datetime import date

from storefront.domain.repository.order_repository import OrderRepository

DEFAULT_PREFIX = "ZF-"
SEQUENCE_WIDTH = 3


class OrderNumberGenerator:

    def __init__(self, order_repo: OrderRepository, prefix: str = DEFAULT_PREFIX) -> None:
        self._order_repo = order_repo
        self._prefix = prefix

    def day_prefix(self, day: date) -> str:
        return f"{self._prefix}{day:%y%m%d}-"

    def next_number(self, day: date) -> str:
        day_prefix = self.day_prefix(day)
        last = self._order_repo.last_number_with_prefix(day_prefix)
        sequence = parse_sequence(last) + 1 if last else 1
        return f"{day_prefix}{sequence:0{SEQUENCE_WIDTH}d}"


def parse_sequence(number: str) -> int:
    """Daily sequence of an order number (the part after the last dash)."""
    return int(number.rsplit("-", 1)[1])
