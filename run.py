#!/usr/bin/env python3
"""
Creature registry - scenario runner

Runs a YAML scenario of registry operations against a fresh (or resumed)
registry and prints one JSON result per step.

Usage:
    python run.py --scenario scenario.yaml
    python run.py --scenario scenario.yaml --checkpoint checkpoint.json
    python run.py --scenario more.yaml --resume checkpoint.json

Scenario format:
    steps:
      - fund: {account: alice, amount: 500}
      - create: {as: alice, name: tom}
      - create: {as: alice, name: molly}
      - breed: {as: alice, parents: [tom, molly], name: kit}
      - set_price: {as: alice, creature: kit, price: 50}
      - buy: {as: bob, creature: kit, bid: 60}
      - transfer: {as: alice, to: bob, creature: tom}
      - advance: {blocks: 10}

Creature references are either names bound by an earlier step or raw ids.
The block clock advances one block before every step.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, TypedDict

import yaml
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Allow running from any working directory
sys.path.insert(0, str(Path(__file__).parent))

from src.config import load_config, get_validated_config
from src.config_schema import AppConfig
from src.creatures import (
    BlockClock,
    CheckpointError,
    CollectiveFlipRandomness,
    CreatureError,
    EventLogger,
    Ledger,
    LifecycleService,
    Origin,
    StorageContext,
)
from src.creatures.checkpoint import (
    CheckpointData,
    load_checkpoint,
    restore_ledger,
    restore_storage,
    save_checkpoint,
)

logger = logging.getLogger("run")


class StepResult(TypedDict, total=False):
    """Outcome of one scenario step."""

    step: int
    op: str
    block: int
    success: bool
    creature_id: str
    error: str
    code: str
    category: str
    retriable: bool
    details: dict[str, object]


class ScenarioError(ValueError):
    """The scenario file itself is malformed."""


def load_scenario(path: str) -> list[dict[str, Any]]:
    """Load the list of steps from a scenario YAML file."""
    with open(path) as f:
        loaded: Any = yaml.safe_load(f) or {}
    steps = loaded.get("steps", []) if isinstance(loaded, dict) else loaded
    if not isinstance(steps, list):
        raise ScenarioError("scenario 'steps' must be a list")
    for index, step in enumerate(steps):
        if not isinstance(step, dict) or len(step) != 1:
            raise ScenarioError(f"step {index} must be a mapping with exactly one operation")
    return steps


def _resolve(names: dict[str, str], ref: str) -> str:
    return names.get(ref, ref)


def execute_step(
    service: LifecycleService,
    ledger: Ledger,
    clock: BlockClock,
    names: dict[str, str],
    op: str,
    args: dict[str, Any],
    starting_amount: int,
) -> str | None:
    """Execute one operation. Returns the creature id it produced, if any."""
    if op == "advance":
        clock.advance(int(args.get("blocks", 1)))
        return None
    if op == "fund":
        ledger.credit_scrip(str(args["account"]), int(args.get("amount", starting_amount)))
        return None

    origin = Origin.signed(args["as"]) if args.get("as") else Origin.none()

    if op == "create":
        creature_id = service.create_creature(origin)
    elif op == "breed":
        parent1, parent2 = (_resolve(names, p) for p in args["parents"])
        creature_id = service.breed_creature(origin, parent1, parent2)
    elif op == "set_price":
        price = args.get("price")
        service.set_price(origin, _resolve(names, args["creature"]),
                          None if price is None else int(price))
        return None
    elif op == "transfer":
        service.transfer(origin, str(args["to"]), _resolve(names, args["creature"]))
        return None
    elif op == "buy":
        service.buy_creature(origin, _resolve(names, args["creature"]), int(args["bid"]))
        return None
    else:
        raise ScenarioError(f"unknown operation: {op}")

    if args.get("name"):
        names[str(args["name"])] = creature_id
    return creature_id


def run_scenario(
    service: LifecycleService,
    ledger: Ledger,
    clock: BlockClock,
    steps: list[dict[str, Any]],
    starting_amount: int = 0,
) -> list[StepResult]:
    """Run every step, collecting results. Registry errors do not stop the run."""
    names: dict[str, str] = {}
    results: list[StepResult] = []

    for index, step in enumerate(steps):
        op, raw_args = next(iter(step.items()))
        args: dict[str, Any] = raw_args or {}
        clock.advance()
        result: StepResult = {"step": index, "op": op, "block": clock.block_number()}
        try:
            creature_id = execute_step(
                service, ledger, clock, names, op, args, starting_amount
            )
        except CreatureError as exc:
            logger.info("Step %d (%s) rejected: %s", index, op, exc.message)
            result.update(exc.to_response())  # type: ignore[typeddict-item]
        else:
            result["success"] = True
            if creature_id is not None:
                result["creature_id"] = creature_id
        results.append(result)

    return results


def build_registry(
    config: AppConfig,
    events: EventLogger | None = None,
    checkpoint: CheckpointData | None = None,
) -> tuple[LifecycleService, Ledger, BlockClock]:
    """Wire clock, randomness, ledger, storage and service from config."""
    genesis_hash = bytes.fromhex(config.chain.genesis_hash) if config.chain.genesis_hash else None
    clock = BlockClock(genesis_hash, material_len=config.chain.random_material_len)

    storage: StorageContext | None = None
    ledger = Ledger()
    if checkpoint is not None:
        storage = restore_storage(checkpoint, config.registry.max_owned)
        ledger = restore_ledger(checkpoint)
        clock.advance(checkpoint.get("block_number", 0))

    service = LifecycleService.from_config(
        config,
        CollectiveFlipRandomness(clock),
        clock,
        currency=ledger,
        events=events,
        storage=storage,
    )
    return service, ledger, clock


def main() -> None:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Run a creature registry scenario"
    )
    parser.add_argument(
        "--config", default="config/config.yaml", help="Path to config file"
    )
    parser.add_argument("--scenario", required=True, help="Scenario YAML file")
    parser.add_argument("--events", help="JSONL event log path (defaults to config value)")
    parser.add_argument(
        "--checkpoint",
        type=str,
        nargs="?",
        const="",
        default=None,
        help="Save state afterwards (default path: checkpoint.checkpoint_file)",
    )
    parser.add_argument(
        "--resume",
        type=str,
        default=None,
        help="Resume from checkpoint file",
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress step output")
    args: argparse.Namespace = parser.parse_args()

    load_config(args.config)
    config = get_validated_config()
    logging.basicConfig(
        level=config.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    checkpoint: CheckpointData | None = None
    if args.resume:
        try:
            checkpoint = load_checkpoint(args.resume)
        except CheckpointError as exc:
            logger.error("Cannot resume from '%s': %s", args.resume, exc)
            sys.exit(1)
        if checkpoint is None:
            logger.warning("Checkpoint file '%s' not found. Starting fresh.", args.resume)

    run_id = f"run_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    if args.events:
        events = EventLogger(output_file=args.events)
    else:
        events = EventLogger(logs_dir=config.logging.logs_dir, run_id=run_id)

    try:
        service, ledger, clock = build_registry(config, events, checkpoint)
    except CheckpointError as exc:
        logger.error("Cannot resume from '%s': %s", args.resume, exc)
        sys.exit(1)
    results = run_scenario(
        service, ledger, clock, load_scenario(args.scenario),
        starting_amount=config.scrip.starting_amount,
    )

    if not args.quiet:
        for result in results:
            print(json.dumps(result))

    if args.checkpoint is not None:
        path = args.checkpoint or config.checkpoint.checkpoint_file
        save_checkpoint(
            service.storage, path, ledger=ledger,
            block_number=clock.block_number(), reason="scenario_complete",
        )
        logger.info("Checkpoint saved to %s", path)


if __name__ == "__main__":
    main()
