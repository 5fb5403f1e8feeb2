"""
Reset stored mastery weights ("recalculate").

DANGEROUS: This discards learning progress for the chosen items!

Usage:
    python -m scripts.maintenance.reset_mastery kana
    python -m scripts.maintenance.reset_mastery kanji --items 日 月 --yes
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from dojo_core import mastery
from dojo_core.pools import Dojo, make_item_id


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reset stored mastery weights")
    parser.add_argument("dojo", choices=[d.value for d in Dojo], help="Which dojo to reset")
    parser.add_argument("--items", nargs="+", help="Only reset these entry keys (default: everything)")
    parser.add_argument("--storage", help="Override DOJO_STORAGE (sqlalchemy, mongo, json)")
    parser.add_argument(
        "--force",
        action="store_true",
        help="With --items, overwrite a corrupt snapshot (every other record is lost)"
    )
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    return parser.parse_args(argv)


async def reset(dojo: Dojo, items=None, storage=None, force=False, adapter=None) -> int:
    """
    Load a dojo's weights, reset them and write the result back.

    Nothing is written when the stored weights could not be read. A corrupt
    snapshot is only replaced by a full reset, or by a partial one with force.

    Returns:
        Number of stored records that were reset
    """
    if adapter is None:
        adapter = mastery.build_adapter(dojo.value, backend=storage)
    engine = mastery.DrillEngine(adapter, namespace=dojo.value)

    report = await engine.ensure_loaded()
    if isinstance(report.warning, mastery.StorageUnavailable):
        raise SystemExit(f"Storage unavailable ({report.warning}); nothing was changed.")
    if isinstance(report.warning, mastery.Corrupt):
        if items and not force:
            raise SystemExit(
                f"Stored weights are corrupt ({report.warning}); rerun without --items "
                "or with --force to replace them. Nothing was changed."
            )
        print(f"Warning: stored weights are corrupt ({report.warning}); writing defaults.")

    if items:
        count = engine.reset({make_item_id(dojo, key) for key in items})
    else:
        count = engine.reset("all")

    await engine.close()
    if engine.persistence_degraded:
        raise SystemExit("Could not write to storage; nothing was changed.")
    return count


def main(argv=None):
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)
    dojo = Dojo(args.dojo)

    scope = f"{len(args.items)} item(s)" if args.items else "ALL items"
    print("=" * 60)
    print(f"WARNING: Reset mastery weights for {dojo.value} ({scope})")
    print("=" * 60)

    if not args.yes:
        response = input("Are you sure you want to reset? (type 'yes' to confirm): ")
        if response.lower() != "yes":
            print("\nCancelled. No changes made.")
            return

    count = asyncio.run(reset(dojo, args.items, args.storage, force=args.force))
    print(f"✓ Reset {count} stored record(s) in '{dojo.value}'.")


if __name__ == "__main__":
    main()
