"""Deterministic text renderings of a gear snapshot."""

from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

from models.gear_item import GearItem
from models.taxonomy import category_label


def group_by_category(items: Iterable[GearItem]) -> Dict[str, List[GearItem]]:
    """Group items by category, keeping first-seen category order."""

    grouped: Dict[str, List[GearItem]] = {}
    for item in items:
        grouped.setdefault(item.category, []).append(item)
    return grouped


def _format_cost(cost: float) -> str:
    return f"{cost:g}"


def bullet_line(item: GearItem) -> str:
    line = f"• {item.brand} {item.model}"
    if item.size:
        line += f" ({item.size})"
    if item.cost:
        line += f" - €{_format_cost(item.cost)}"
    return line


def formatted_listing(items: Sequence[GearItem]) -> str:
    """Categorized bullet list with bold category headings."""

    sections = []
    for category, members in group_by_category(items).items():
        bullets = "\n".join(bullet_line(item) for item in members)
        sections.append(f"**{category_label(category)}**\n{bullets}")
    return "\n\n".join(sections)


def compact_summary(items: Sequence[GearItem]) -> str:
    """One line per category, used to ground the model on owned gear."""

    lines = []
    for category, members in group_by_category(items).items():
        names = ", ".join(
            f"{item.brand} {item.model}" + (f" ({item.size})" if item.size else "") for item in members
        )
        lines.append(f"{category.upper()}: {names}")
    return "\n".join(lines)


def inventory_digest(items: Sequence[GearItem]) -> str:
    """Full reply for a pure listing request."""

    category_count = len(group_by_category(items))
    return (
        f"Here's your complete gear inventory ({len(items)} items):\n\n"
        f"{formatted_listing(items)}\n\n"
        f"Your collection covers {category_count} categories."
    )


def category_breakdown(items: Iterable[GearItem]) -> Dict[str, int]:
    breakdown: Dict[str, int] = {}
    for item in items:
        breakdown[item.category] = breakdown.get(item.category, 0) + 1
    return breakdown


__all__ = [
    "group_by_category",
    "bullet_line",
    "formatted_listing",
    "compact_summary",
    "inventory_digest",
    "category_breakdown",
]
