"""
Room rate selection.
Resolves the nightly rate charged for a booking from the two-rate model
(base price / alternative price) with optional per-booking overrides.
"""

from utils.errors import ValidationError


def _to_rate(value, field_name: str):
    """Convert a rate candidate to float; None and '' mean 'not provided'."""
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationError(f'{field_name} must be a number')
    try:
        return float(value)
    except (ValueError, TypeError):
        raise ValidationError(f'{field_name} must be a number')


def select_room_rate(
    base_price,
    alternative_price=None,
    room_rate=None,
    alternative_rate=None,
    use_alternative_rate: bool = False
) -> float:
    """
    Select the nightly rate to charge.

    When use_alternative_rate is set and an alternative rate is available
    (the caller's alternative_rate, else the room's alternative_price) that
    rate wins. Otherwise the caller's room_rate is used, falling back to the
    room's base_price.

    Args:
        base_price: Room default rate
        alternative_price: Room default alternative rate (optional)
        room_rate: Caller override of the base rate (optional)
        alternative_rate: Caller override of the alternative rate (optional)
        use_alternative_rate: Prefer the alternative rate when available

    Returns:
        float: Selected rate, rounded to cents

    Raises:
        ValidationError: If a value is not numeric or no positive rate resolves
    """
    base = _to_rate(room_rate, 'room_rate')
    if base is None:
        base = _to_rate(base_price, 'base_price')

    alternative = _to_rate(alternative_rate, 'alternative_rate')
    if alternative is None:
        alternative = _to_rate(alternative_price, 'alternative_price')

    if use_alternative_rate and alternative is not None and alternative > 0:
        return round(alternative, 2)

    if base is None or base <= 0:
        raise ValidationError('Room rate must be a positive number')

    return round(base, 2)


def calculate_total_amount(rate: float, number_of_nights: int, number_of_rooms: int) -> float:
    """Total charged for the stay: rate x nights x units."""
    return round(rate * number_of_nights * number_of_rooms, 2)
