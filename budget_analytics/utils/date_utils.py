"""Month arithmetic utilities"""

from datetime import date
from typing import List, Tuple


def shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    """Move (year, month) by offset months, forwards or backwards"""
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def add_months(from_date: date, months: int) -> date:
    """First day of the month `months` after from_date's month"""
    year, month = shift_month(from_date.year, from_date.month, months)
    return date(year, month, 1)


def trailing_months(year: int, month: int, count: int) -> List[Tuple[int, int]]:
    """The `count` months ending at (year, month) inclusive, oldest first"""
    return [shift_month(year, month, -i) for i in range(count - 1, -1, -1)]
