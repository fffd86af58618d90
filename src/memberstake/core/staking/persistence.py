"""
memberstake - Staking State Persistence

Durable snapshots of a controller's state (global accrual state plus the
participant map):
- Atomic writes (temp file + rename)
- SHA-256 checksum verification on load
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import time
from threading import Lock
from typing import Any, Optional

from ..config import Config
from ..staking_exceptions import CorruptedDataError, StorageError

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0"


class StakingStateStore:
    """
    Snapshot store for ``StakingRewards.to_dict()`` output.

    Args:
        data_dir: Directory holding the snapshot file (defaults to Config.DATA_DIR)
        filename: Snapshot file name
    """

    def __init__(self, data_dir: Optional[str] = None, filename: str = "staking_state.json"):
        self.data_dir = data_dir or Config.DATA_DIR
        self.state_file = os.path.join(self.data_dir, filename)
        os.makedirs(self.data_dir, exist_ok=True)
        self.lock = Lock()

    @staticmethod
    def _calculate_checksum(data: str) -> str:
        return hashlib.sha256(data.encode("utf-8")).hexdigest()

    def exists(self) -> bool:
        return os.path.exists(self.state_file)

    def save(self, state: dict[str, Any]) -> str:
        """
        Save a controller snapshot with an atomic write.

        Args:
            state: Output of ``StakingRewards.to_dict()``

        Returns:
            Checksum of the stored state

        Raises:
            StorageError: If the snapshot cannot be written
        """
        with self.lock:
            state_json = json.dumps(state, sort_keys=True)
            checksum = self._calculate_checksum(state_json)
            package = {
                "metadata": {
                    "timestamp": time.time(),
                    "checksum": checksum,
                    "version": SNAPSHOT_VERSION,
                    "participants": len(state.get("accounts", {})),
                },
                "state": state,
            }

            temp_file = self.state_file + ".tmp"
            try:
                with open(temp_file, "w") as f:
                    json.dump(package, f, indent=2, sort_keys=True)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(temp_file, self.state_file)
            except OSError as e:
                logger.error(
                    "Failed to save staking state",
                    extra={
                        "event": "staking.persistence.save_failed",
                        "path": self.state_file,
                        "error": str(e),
                        "error_type": type(e).__name__,
                    },
                )
                raise StorageError(
                    f"Failed to save staking state: {e}",
                    details={"path": self.state_file},
                ) from e

            logger.info(
                "Staking state saved",
                extra={
                    "event": "staking.persistence.saved",
                    "checksum": checksum[:8],
                    "participants": package["metadata"]["participants"],
                },
            )
            return checksum

    def load(self) -> Optional[dict[str, Any]]:
        """
        Load the latest snapshot.

        Returns:
            The stored state dictionary, or None if no snapshot exists

        Raises:
            CorruptedDataError: If the file is unreadable JSON or fails its checksum
            StorageError: If the file cannot be read
        """
        with self.lock:
            if not os.path.exists(self.state_file):
                return None

            try:
                with open(self.state_file, "r") as f:
                    package = json.load(f)
            except json.JSONDecodeError as e:
                raise CorruptedDataError(
                    f"Staking state is not valid JSON: {e}",
                    details={"path": self.state_file},
                ) from e
            except OSError as e:
                raise StorageError(
                    f"Failed to read staking state: {e}",
                    details={"path": self.state_file},
                ) from e

            state = package.get("state")
            expected = package.get("metadata", {}).get("checksum")
            if state is None or expected is None:
                raise CorruptedDataError(
                    "Staking state file is missing its state or checksum",
                    details={"path": self.state_file},
                )

            actual = self._calculate_checksum(json.dumps(state, sort_keys=True))
            if actual != expected:
                logger.error(
                    "Staking state checksum mismatch",
                    extra={
                        "event": "staking.persistence.checksum_mismatch",
                        "expected": expected[:8],
                        "actual": actual[:8],
                    },
                )
                raise CorruptedDataError(
                    "Staking state checksum verification failed",
                    details={"path": self.state_file},
                )

            return state
