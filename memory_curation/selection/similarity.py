from datetime import datetime
from typing import Optional

import imagehash


def phash_distance(a: Optional[str], b: Optional[str]) -> Optional[int]:
    """
    Hamming distance between two hex-encoded perceptual hashes.
    Returns None when either hash is missing or cannot be parsed.
    """
    if not a or not b:
        return None

    try:
        return int(imagehash.hex_to_hash(a) - imagehash.hex_to_hash(b))
    except (ValueError, TypeError):
        # Unparsable or mismatched hash sizes
        return None


def seconds_between(a: datetime, b: datetime) -> float:
    return abs((a - b).total_seconds())
