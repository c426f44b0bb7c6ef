"""Task categories derived from Todoist labels."""

from collections.abc import Iterable
from enum import Enum


class Category(str, Enum):
    PUTTING_OFF = "putting-off"
    STRATEGY = "strategy"
    TIMELY = "timely"

    @property
    def label(self) -> str:
        return f"@{self.value}"

    @classmethod
    def parse(cls, value: str) -> "Category":
        """Accept 'strategy', '@strategy', 'putting_off' and similar spellings."""
        normalized = value.strip().lower().lstrip("@").replace("_", "-")
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(
                f"Unknown category: {value!r} (expected one of: "
                f"{', '.join(c.value for c in cls)})"
            ) from None


CATEGORY_LABELS = frozenset(c.label for c in Category)


def categorize(labels: Iterable[str]) -> Category:
    """Map a task's labels to its kanban column.

    Tasks without any category label land in TIMELY.
    """
    lowered = [label.lower() for label in labels]
    if any("putting-off" in lb or "putting_off" in lb for lb in lowered):
        return Category.PUTTING_OFF
    if any("strategy" in lb for lb in lowered):
        return Category.STRATEGY
    return Category.TIMELY


def relabel(labels: Iterable[str], category: Category) -> list[str]:
    """Swap the category label, keeping every other label in order."""
    kept = [label for label in labels if label not in CATEGORY_LABELS]
    return list(dict.fromkeys(kept + [category.label]))


def group_by_category(tasks: Iterable) -> dict[Category, list]:
    """Partition tasks into the three columns, preserving input order."""
    columns: dict[Category, list] = {c: [] for c in Category}
    for task in tasks:
        columns[categorize(task.labels)].append(task)
    return columns
