"""
JSON export of search results.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

from mapfit.search.engine import SearchResult

logger = logging.getLogger(__name__)


def export_result(
    result: SearchResult,
    output_path: Union[str, Path],
    extra: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Write a search result to a JSON file.

    Args:
        result: Result of a search
        output_path: Destination path
        extra: Additional top-level entries (e.g. configuration, evaluation)

    Returns:
        Path to the saved file
    """
    output_path = os.path.abspath(str(output_path))
    os.makedirs(os.path.dirname(output_path), exist_ok=True)

    payload = result.to_dict()
    if extra:
        payload.update(extra)

    with open(output_path, "w") as f:
        json.dump(payload, f, indent=2)

    logger.info(f"Search result exported to {output_path}")
    return output_path
