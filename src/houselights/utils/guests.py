"""Guest-count arithmetic."""

from decimal import ROUND_CEILING, Decimal


def compute_guests(capacity: int, occupancy_rate: float) -> int:
    """
    Number of seated guests for a showing.

    ``ceil(capacity * occupancy_rate / 100)`` computed in decimal, so a rate
    such as 7.0 never becomes 7.000000001 and rounds up a seat too many. The
    result is clamped to ``[0, capacity]``.

    Args:
        capacity: Seats in the screen (> 0)
        occupancy_rate: Percentage of seats sold, 0-100

    Returns:
        Guest count
    """
    if capacity <= 0:
        raise ValueError(f"capacity must be positive, got {capacity}")

    exact = Decimal(str(occupancy_rate)) * capacity / 100
    guests = int(exact.to_integral_value(rounding=ROUND_CEILING))
    return min(max(guests, 0), capacity)
