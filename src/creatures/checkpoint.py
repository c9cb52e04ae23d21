"""Checkpoint save/load for registry state.

A checkpoint holds the three persisted stores (AssetCount, Assets,
OwnershipIndex) plus scrip balances and the block number at save time.
Creatures are written as hex of their canonical encoding. Identifiers
are stored as-is: they were derived from the record at mint time and do
not follow later price or owner changes.
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, TypedDict

from .codec import decode_creature, encode_creature
from .errors import CheckpointError, CodecError
from .constants import ID_DIGEST_SIZE
from .ledger import Ledger
from .storage import StorageContext

# Current checkpoint format version
CHECKPOINT_VERSION = 1


class CheckpointData(TypedDict, total=False):
    """Structure for checkpoint file data."""

    version: int
    asset_count: int
    assets: dict[str, str]
    ownership: dict[str, list[str]]
    balances: dict[str, int]
    block_number: int
    reason: str
    timestamp: str


def save_checkpoint(
    storage: StorageContext,
    checkpoint_file: str,
    ledger: Ledger | None = None,
    block_number: int = 0,
    reason: str = "manual",
) -> str:
    """Save registry state to a checkpoint file.

    Uses atomic write (temp file + rename) to prevent corruption from
    partial writes during interruption.

    Returns:
        Path to the saved checkpoint file
    """
    checkpoint: CheckpointData = {
        "version": CHECKPOINT_VERSION,
        "asset_count": storage.assets.count(),
        "assets": {
            creature_id: encode_creature(creature).hex()
            for creature_id, creature in storage.assets.items()
        },
        "ownership": {
            owner: storage.owned.owned_by(owner) for owner in storage.owned.owners()
        },
        "balances": ledger.get_all_scrip() if ledger is not None else {},
        "block_number": block_number,
        "reason": reason,
        "timestamp": datetime.now().isoformat(),
    }

    temp_file = f"{checkpoint_file}.tmp"
    with open(temp_file, "w") as f:
        json.dump(checkpoint, f, indent=2)

    # os.replace is atomic on POSIX; the old checkpoint survives an interrupt
    os.replace(temp_file, checkpoint_file)

    return checkpoint_file


def load_checkpoint(checkpoint_file: str) -> CheckpointData | None:
    """Load checkpoint data from file.

    Returns:
        CheckpointData if the file exists, None otherwise.

    Raises:
        CheckpointError: If the file is not a supported checkpoint.
    """
    checkpoint_path = Path(checkpoint_file)
    if not checkpoint_path.exists():
        return None

    with open(checkpoint_path) as f:
        try:
            data: Any = json.load(f)
        except json.JSONDecodeError as exc:
            raise CheckpointError(f"checkpoint is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise CheckpointError("checkpoint must be a JSON object")

    version = data.get("version")
    if version != CHECKPOINT_VERSION:
        raise CheckpointError(f"unsupported checkpoint version: {version}")

    try:
        return _normalize(data)
    except (AttributeError, TypeError, ValueError) as exc:
        raise CheckpointError(f"malformed checkpoint field: {exc}") from exc


def _normalize(data: dict[str, Any]) -> CheckpointData:
    return {
        "version": CHECKPOINT_VERSION,
        "asset_count": int(data.get("asset_count", 0)),
        "assets": dict(data.get("assets", {})),
        "ownership": {k: list(v) for k, v in data.get("ownership", {}).items()},
        "balances": {k: int(v) for k, v in data.get("balances", {}).items()},
        "block_number": int(data.get("block_number", 0)),
        "reason": str(data.get("reason", "")),
        "timestamp": str(data.get("timestamp", "")),
    }


def _is_identifier(value: str) -> bool:
    if len(value) != ID_DIGEST_SIZE * 2:
        return False
    try:
        bytes.fromhex(value)
    except ValueError:
        return False
    return True


def restore_storage(checkpoint: CheckpointData, max_owned: int) -> StorageContext:
    """Rebuild a StorageContext from checkpoint data.

    Raises:
        CheckpointError: If the data breaks any registry invariant: count
            mismatch, malformed ids, ownership list pointing at
            unknown or foreign creatures, duplicates, or lists over capacity.
    """
    storage = StorageContext(max_owned)
    assets = checkpoint.get("assets", {})

    for creature_id, encoded in assets.items():
        try:
            creature = decode_creature(bytes.fromhex(encoded))
        except (ValueError, CodecError) as exc:
            raise CheckpointError(f"corrupt creature {creature_id}: {exc}") from exc
        if not _is_identifier(creature_id):
            raise CheckpointError(f"malformed creature id: {creature_id}")
        storage.assets.insert(creature_id, creature)

    count = checkpoint.get("asset_count", 0)
    if count != len(storage.assets):
        raise CheckpointError(
            f"asset count {count} does not match {len(storage.assets)} stored creatures"
        )
    storage.assets.set_count(count)

    listed: set[str] = set()
    for owner, ids in checkpoint.get("ownership", {}).items():
        if len(ids) > max_owned:
            raise CheckpointError(f"{owner} owns {len(ids)} creatures (max {max_owned})")
        for creature_id in ids:
            creature = storage.assets.get(creature_id)
            if creature is None:
                raise CheckpointError(f"{owner} lists unknown creature {creature_id}")
            if creature.owner != owner:
                raise CheckpointError(f"{owner} lists creature {creature_id} owned by {creature.owner}")
            if creature_id in listed:
                raise CheckpointError(f"creature {creature_id} listed twice")
            listed.add(creature_id)
            storage.owned.try_append(owner, creature_id)

    unlisted = set(assets) - listed
    if unlisted:
        raise CheckpointError(
            f"{len(unlisted)} creatures missing from the ownership index",
            creature_ids=sorted(unlisted),
        )

    return storage


def restore_ledger(checkpoint: CheckpointData) -> Ledger:
    """Rebuild scrip balances from checkpoint data.

    Raises:
        CheckpointError: If a balance is negative or above the ceiling.
    """
    ledger = Ledger()
    for account_id, balance in checkpoint.get("balances", {}).items():
        try:
            ledger.create_account(account_id, balance)
        except ValueError as exc:
            raise CheckpointError(f"bad balance for {account_id}: {exc}") from exc
    return ledger
