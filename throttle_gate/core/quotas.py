"""Quota policies: map a client identifier to its request budget per period.

Overrides are configured as a comma-separated list of ``identifier:quota``
pairs, e.g. ``APP_THROTTLE_QUOTA_OVERRIDES="10.0.0.5:1000,api_key:partner:300"``.
The quota is taken after the last colon so identifiers may contain colons.
"""

from __future__ import annotations

from typing import Callable, Mapping

from throttle_gate.core.errors import ValidationAppError

QuotaFunction = Callable[[str], int]


def parse_quota_overrides(overrides_string: str | None) -> dict[str, int]:
    """Parse ``identifier:quota`` pairs into a dict.

    Args:
        overrides_string: Comma-separated pairs, or None.

    Returns:
        Mapping of identifier to quota. Later duplicates win.

    Raises:
        ValidationAppError: If a pair is malformed or a quota is negative.

    Examples:
        >>> parse_quota_overrides("10.0.0.1:5, 10.0.0.2:100")
        {'10.0.0.1': 5, '10.0.0.2': 100}
        >>> parse_quota_overrides(None)
        {}
    """
    if not overrides_string:
        return {}

    overrides: dict[str, int] = {}
    for raw_pair in overrides_string.split(","):
        pair = raw_pair.strip()
        if not pair:
            continue

        identifier, sep, raw_quota = pair.rpartition(":")
        identifier = identifier.strip()
        if not sep or not identifier:
            raise ValidationAppError(
                code="invalid_quota_override",
                message=f"Quota override must look like 'identifier:quota', got {pair!r}",
                details={"value": pair},
            )

        try:
            quota = int(raw_quota.strip())
        except ValueError as exc:
            raise ValidationAppError(
                code="invalid_quota_override",
                message=f"Quota for {identifier!r} is not an integer",
                details={"value": pair},
            ) from exc

        if quota < 0:
            raise ValidationAppError(
                code="invalid_quota_override",
                message=f"Quota for {identifier!r} must be >= 0",
                details={"value": pair},
            )
        overrides[identifier] = quota

    return overrides


def build_quota_function(
    default_quota: int,
    overrides: Mapping[str, int] | None = None,
) -> QuotaFunction:
    """Build a quota function with per-identifier overrides.

    Args:
        default_quota: Quota for identifiers without an override.
        overrides: Optional identifier -> quota mapping.

    Returns:
        A pure lookup ``identifier -> quota``.
    """
    if default_quota < 0:
        raise ValueError("default_quota must be >= 0")

    table = dict(overrides or {})

    def quota_for(identifier: str) -> int:
        return table.get(identifier, default_quota)

    return quota_for
