"""Calendar helpers: BC/AD display of simulation years."""


def format_year(year: int) -> str:
    """Render a year for display. Zero and negative years are BC."""
    if year <= 0:
        return f"{abs(year)} BC"
    return f"{year} AD"


def years_between(start_year: int, end_year: int) -> int:
    """Elapsed simulated years from start to end."""
    return end_year - start_year
