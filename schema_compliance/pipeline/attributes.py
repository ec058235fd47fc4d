"""Attribute filtering: full attribute set → in-scope custom, prefixed, recent columns."""

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, Field

from schema_compliance.schemas import AttributeDescriptor


class FilteredAttributes(BaseModel):
    """Retained attributes plus the unfiltered list and exclusion counts."""

    retained: list[AttributeDescriptor] = Field(default_factory=list)
    all_attributes: list[AttributeDescriptor] = Field(default_factory=list)
    system_excluded: int = 0
    old_excluded: int = 0


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _cutoff(now: datetime, recent_days: int) -> datetime | None:
    """Oldest creation time still inside the window, or None when nothing is too old."""
    if recent_days <= 0:
        return None
    try:
        return _as_utc(now) - timedelta(days=recent_days)
    except OverflowError:
        # Window reaches past datetime.min
        return None


def filter_attributes(
    attributes: list[AttributeDescriptor],
    publisher_prefix: str,
    recent_days: int,
    now: datetime,
) -> FilteredAttributes:
    """
    Narrow an entity's attributes to the ones the naming rules inspect.

    An attribute is a system column (excluded) when it is not custom or does
    not carry the publisher prefix. Otherwise, when `recent_days` > 0 and the
    creation date is known and older than that many days, it is an old column
    (excluded). Attributes without a creation date are kept.

    Args:
        attributes: Every attribute of the entity.
        publisher_prefix: Required prefix for custom columns.
        recent_days: Age window in days; 0 disables it.
        now: Reference time for the age window.

    Returns:
        FilteredAttributes: Retained list, unfiltered list and exclusion counts.
    """
    cutoff = _cutoff(now, recent_days)
    result = FilteredAttributes(all_attributes=list(attributes))

    for attribute in attributes:
        if not attribute.is_custom_attribute or not attribute.logical_name.startswith(
            publisher_prefix
        ):
            result.system_excluded += 1
            continue

        if (
            cutoff is not None
            and attribute.created_on is not None
            and _as_utc(attribute.created_on) < cutoff
        ):
            result.old_excluded += 1
            continue

        result.retained.append(attribute)

    return result
