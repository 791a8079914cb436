"""
Inventory rendering for generation prompts.
"""

from datetime import date
from typing import Optional, Sequence

from snacksage.recipes.models import InventoryItem


def expiration_status(expiration_date: Optional[date], today: Optional[date] = None) -> str:
    """
    Short marker describing how soon an item expires.

    Args:
        expiration_date: Best-before date, or None if unknown
        today: Reference date (defaults to today)

    Returns:
        " [EXPIRED]", " [EXPIRES SOON]" (within 2 days),
        " [USE WITHIN WEEK]" (within 7 days) or ""
    """
    if expiration_date is None:
        return ""

    days_left = (expiration_date - (today or date.today())).days
    if days_left < 0:
        return " [EXPIRED]"
    if days_left <= 2:
        return " [EXPIRES SOON]"
    if days_left <= 7:
        return " [USE WITHIN WEEK]"
    return ""


def group_by_category(items: Sequence[InventoryItem]) -> dict[str, list[InventoryItem]]:
    """Group items by category, keeping first-seen category order."""
    grouped: dict[str, list[InventoryItem]] = {}
    for item in items:
        grouped.setdefault(item.category, []).append(item)
    return grouped


def format_inventory_for_prompt(
    items: Sequence[InventoryItem],
    today: Optional[date] = None,
) -> str:
    """
    Render inventory as category sections with expiry markers.

    Example output::

        VEGETABLES:
        - Spinach (200 g) [EXPIRES SOON]
    """
    lines: list[str] = []
    for category, category_items in group_by_category(items).items():
        lines.append(f"\n{category.upper()}:")
        for item in category_items:
            amount = f"{item.quantity.amount:g} {item.quantity.unit}".strip()
            status = expiration_status(item.expiration_date, today)
            lines.append(f"- {item.name} ({amount}){status}")
    return "\n".join(lines) + "\n" if lines else ""
