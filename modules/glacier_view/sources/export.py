"""Snapshot Export

Writes a published snapshot to a vector file. The file is written under a
temporary name in the target directory and moved into place with
``os.replace``, so file readers see either the previous export or the new one.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Union

from src.exceptions import ERGIProcessingError
from ..materialize import ViewSnapshot

logger = logging.getLogger(__name__)

DEFAULT_LAYER = "ergi_mat_view"


def export_snapshot(snapshot: ViewSnapshot, path: Union[str, Path],
                    layer: str = DEFAULT_LAYER, driver: str = "GPKG") -> Path:
    """Export a snapshot to ``path``.

    Args:
        snapshot: Snapshot to write
        path: Destination file
        layer: Layer name inside the destination file
        driver: OGR driver name

    Returns:
        The destination path

    Raises:
        ERGIProcessingError: If writing or moving the file fails
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(f".{path.stem}.{uuid.uuid4().hex}{path.suffix}")

    try:
        snapshot.to_geodataframe().to_file(temp_path, layer=layer, driver=driver)
        os.replace(temp_path, path)
    except Exception as e:
        if temp_path.exists():
            temp_path.unlink()
        raise ERGIProcessingError(
            f"Failed to export snapshot to {path}",
            {"version": snapshot.version, "error": str(e)}
        ) from e

    logger.info(f"Exported snapshot version {snapshot.version} ({len(snapshot)} rows) to {path}")
    return path
