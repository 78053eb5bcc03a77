"""Due-date label tests."""

from datetime import date

import pytest

from app.client.labels import due_label

TODAY = date(2025, 3, 10)


@pytest.mark.parametrize(
    "due,expected",
    [
        (date(2025, 3, 10), "Today"),
        (date(2025, 3, 11), "Tomorrow"),
        (date(2025, 3, 9), "Yesterday"),
        (date(2025, 3, 12), "Mar 12, 2025"),
        (date(2024, 12, 31), "Dec 31, 2024"),
    ],
)
def test_due_label(due: date, expected: str):
    assert due_label(due, today=TODAY) == expected


def test_due_label_across_month_boundary():
    assert due_label(date(2025, 4, 1), today=date(2025, 3, 31)) == "Tomorrow"
