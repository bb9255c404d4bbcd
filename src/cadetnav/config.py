from dataclasses import dataclass


@dataclass
class CadetNavConfig:
    """Default settings for the cadetnav CLI."""

    grid_precision: int = 3
    location_precision: int = 9
    max_grid_offset: float = 10000.0
    log_level: str = "WARNING"
