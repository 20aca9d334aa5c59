import os
from typing import Optional


# ---------------- Environment Helpers ----------------
def env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (ValueError, TypeError):
        return default


def env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    # Blank values count as unset
    value = (os.getenv(name) or "").strip()
    return value or default
