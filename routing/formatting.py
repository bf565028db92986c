"""Human readable distance and duration labels shown to riders and drivers."""

import math


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_distance(meters: float) -> str:
    """
    742 -> "742m", 1000 -> "1km", 3250 -> "3.3km".
    Kilometers keep one decimal, dropped when it is zero.
    """
    if meters < 1000:
        return f"{round_half_up(meters)}m"

    tenths = round_half_up(meters / 100)
    if tenths % 10 == 0:
        return f"{tenths // 10}km"
    return f"{tenths / 10:.1f}km"


def format_duration(seconds: float) -> str:
    """
    Whole minutes, rounded up. 59 -> "1 min", 3600 -> "1h 0min".
    """
    minutes = math.ceil(seconds / 60)
    if minutes < 60:
        return f"{minutes} min"

    hours, remaining = divmod(minutes, 60)
    return f"{hours}h {remaining}min"
