#!/usr/bin/env python3
"""Poll order/trade changes for an account and persist the watermarks.

This script:
1. Loads the last persisted watermark per (account, kind) from a JSON file
2. Polls the server once per kind
3. Prints the created/updated/deleted ids
4. Writes the new watermarks back, only for polls that succeeded

Usage:
    python -m scripts.poll_changes --account 701048 [--kind order|trade|both] [--state watermarks.json] [--schema camel|snake]

Environment:
    FXREST_SESSION_TOKEN - session token sent with every request
    FXREST_BASE_URL, FXREST_API_VERSION, FXREST_SCHEMA, ... - see ClientConfig.from_env
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

# Ensure imports work when invoked as a script (e.g., from cron).
_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

from fxrest.client import TradingClient  # noqa: E402
from fxrest.config import ClientConfig, WireSchema  # noqa: E402
from fxrest.sync.poller import PollSession  # noqa: E402
from fxrest.types import EntityKind  # noqa: E402

logger = logging.getLogger(__name__)


def load_state(path: Path) -> dict[str, dict[str, int]]:
    """Read ``{account_id: {kind: watermark}}``; a missing file is an empty state."""
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return {str(account): {str(k): int(v) for k, v in kinds.items()} for account, kinds in data.items()}


def save_state(path: Path, state: dict[str, dict[str, int]]) -> None:
    """Write the state atomically (temp file + rename)."""
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as fh:
        json.dump(state, fh, indent=2, sort_keys=True)
        fh.write("\n")
    os.replace(tmp, path)


async def run_polls(
    client: TradingClient,
    account_id: int,
    kinds: list[EntityKind],
    state: dict[str, dict[str, int]],
) -> tuple[dict[str, dict[str, int]], int]:
    """Poll each kind once and return the updated state and the failure count."""
    account_state = dict(state.get(str(account_id), {}))
    failures = 0

    for kind in kinds:
        session = PollSession(client, account_id, kind, account_state.get(kind.value, 0))
        result = await session.poll()
        if not result.ok:
            failures += 1
            print(f"  ⚠️  {kind.value} poll failed: {result.error.kind.value}: {result.error.message}", file=sys.stderr)
            continue

        changes = result.value
        account_state[kind.value] = session.watermark
        print(
            f"  ✓ {kind.value}s: created={list(changes.created)} updated={list(changes.updated)} "
            f"deleted={list(changes.deleted)} watermark={session.watermark}"
        )

    new_state = dict(state)
    if account_state:
        new_state[str(account_id)] = account_state
    return new_state, failures


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Poll order/trade changes and persist watermarks")
    parser.add_argument("--account", type=int, required=True, help="Account id to poll")
    parser.add_argument("--kind", choices=["order", "trade", "both"], default="both", help="Entity kind (default: both)")
    parser.add_argument("--state", default="watermarks.json", help="Watermark state file (default: watermarks.json)")
    parser.add_argument("--schema", choices=[s.value for s in WireSchema], help="Override FXREST_SCHEMA")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ClientConfig.from_env()
    except ValueError as exc:
        print(f"❌ Invalid configuration: {exc}", file=sys.stderr)
        return 1
    if args.schema:
        config = replace(config, schema=WireSchema(args.schema))

    kinds = list(EntityKind) if args.kind == "both" else [EntityKind(args.kind)]
    state_path = Path(args.state)

    try:
        state = load_state(state_path)
    except (OSError, ValueError) as exc:
        print(f"❌ Cannot read state file {state_path}: {exc}", file=sys.stderr)
        return 1

    async def _run() -> tuple[dict[str, Any], int]:
        async with TradingClient(config) as client:
            return await run_polls(client, args.account, kinds, state)

    print(f"🔍 Polling account {args.account} ({', '.join(k.value for k in kinds)})...")
    new_state, failures = asyncio.run(_run())

    if new_state != state:
        save_state(state_path, new_state)
        logger.info("Saved watermarks to %s", state_path)

    if failures:
        print(f"⚠️  {failures} poll(s) failed", file=sys.stderr)
        return 2
    print("✅ Done")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
