from datetime import date, time


def garage_weekday(d: date) -> int:
    """Weekday with 0 = Sunday .. 6 = Saturday, as stored on garage opening hours."""
    return (d.weekday() + 1) % 7


def time_to_hhmm(t: time) -> str:
    """Format as HH:MM"""
    return t.strftime("%H:%M")


def time_within(t: time, opening: time, closing: time) -> bool:
    """True when ``t`` falls inside the inclusive ``[opening, closing]`` window."""
    return opening <= t <= closing
