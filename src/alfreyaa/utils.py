"""Utilities for saving generated results."""

import base64
import binascii
import logging
import re
from datetime import datetime
from pathlib import Path

from .config import settings

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:image/(?P<ext>[a-z0-9.+-]+);base64,(?P<data>.+)$", re.IGNORECASE | re.DOTALL)


def save_image_result(data_uri: str, prefix: str = "image", results_dir: Path | None = None) -> Path:
    """Decode a base64 image data URI into the results directory.

    Args:
        data_uri: ``data:image/<type>;base64,...`` reference from an image result.
        prefix: Filename prefix.
        results_dir: Target directory. Defaults to the configured results directory.

    Returns:
        Path to the saved file.

    Raises:
        ValueError: If ``data_uri`` is not a base64 image data URI.
    """
    match = _DATA_URI.match(data_uri)
    if not match:
        raise ValueError("Not a base64 image data URI")
    try:
        image_bytes = base64.b64decode(match.group("data"), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 image data: {e}") from e

    ext = "jpg" if match.group("ext").lower() == "jpeg" else match.group("ext").lower()
    if results_dir is None:
        results_dir = settings.get_results_dir()
    results_dir.mkdir(parents=True, exist_ok=True)

    # Include microseconds to avoid collisions when called multiple times per second.
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    safe_prefix = re.sub(r"[^\w\-]", "_", prefix)[:30]
    base = f"{timestamp}_{safe_prefix}"
    file_path = results_dir / f"{base}.{ext}"
    if file_path.exists():
        for i in range(1, 10_000):
            candidate = results_dir / f"{base}_{i}.{ext}"
            if not candidate.exists():
                file_path = candidate
                break
        else:
            raise RuntimeError("Failed to allocate a unique image filename after 10,000 attempts")

    file_path.write_bytes(image_bytes)
    logger.info(f"Saved image to {file_path}")
    return file_path
