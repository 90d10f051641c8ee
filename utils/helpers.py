from typing import Dict


def format_duration(seconds: float) -> str:
    """12345.6 -> '03h:25m:45s'"""
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}h:{minutes:02d}m:{secs:02d}s"


def apply_overrides(config: Dict, **overrides) -> Dict:
    """Copy of ``config`` with every non-None override applied."""
    merged = dict(config)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return merged
