"""Flat JSON snapshot persistence.

The snapshot is the only artifact of a run and is fully overwritten each
time. Writes go to a temporary sibling first and are swapped in with
os.replace() so readers never observe a half-written file.
"""

import json
import os
import tempfile
from pathlib import Path

from uniswap_volume.exceptions import SnapshotError
from uniswap_volume.logging import get_logger
from uniswap_volume.models import PipelineResult

logger = get_logger(__name__)


def write_snapshot(result: PipelineResult, path: str | Path, indent: int = 2) -> Path:
    """Serialize ``result`` to ``path``, creating parent directories.

    Raises:
        SnapshotError: The directory or file could not be written.
    """
    target = Path(path)
    payload = json.dumps(result.to_dict(), indent=indent)

    tmp_name: str | None = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
        os.replace(tmp_name, target)
    except OSError as exc:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise SnapshotError(f"Failed to write snapshot {target}: {exc}") from exc

    logger.info(
        "snapshot_written",
        path=str(target),
        chains=len(result.chains),
        bytes=len(payload),
    )
    return target


def read_snapshot(path: str | Path) -> dict:
    """Load a snapshot written by write_snapshot().

    Raises:
        SnapshotError: Missing file, invalid JSON, or not a snapshot object.
    """
    source = Path(path)
    try:
        with source.open(encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError as exc:
        raise SnapshotError(f"Snapshot not found: {source}") from exc
    except (OSError, ValueError) as exc:
        raise SnapshotError(f"Unreadable snapshot {source}: {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("chains"), dict):
        raise SnapshotError(f"Malformed snapshot {source}: missing 'chains'")

    data.setdefault("poolMetadata", {})
    data.setdefault("monthly", {})
    return data
