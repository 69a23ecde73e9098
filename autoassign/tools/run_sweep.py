"""Run the auto-assignment queue sweep (or one work order) from the command line.

Usage:
    python -m autoassign.tools.run_sweep
    python -m autoassign.tools.run_sweep --work-order <id>
    python -m autoassign.tools.run_sweep --verbose
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from autoassign.adapters.persistence.database import async_session_factory, engine
from autoassign.infrastructure.api.dependencies import (
    build_auto_assign_uc,
    build_process_queue_uc,
)

logger = logging.getLogger(__name__)


async def sweep() -> int:
    async with async_session_factory() as session:
        summary = await build_process_queue_uc(session).execute()
        await session.commit()

    print(f"\n{'='*50}")
    print(f"Processed: {summary.processed}")
    print(f"Assigned:  {summary.assigned}")
    print(f"Retrying:  {summary.retrying}")
    print(f"Failed:    {summary.failed}")
    print(f"Expired:   {summary.expired}")
    for r in summary.results:
        print(f"  {r.work_order_id}: {r.queue_status.value} ({r.message or '-'})")
    print(f"{'='*50}\n")
    return 0


async def assign_one(work_order_id: str) -> int:
    async with async_session_factory() as session:
        result = await build_auto_assign_uc(session).evaluate(work_order_id)
        await session.commit()

    response = result.response
    print(f"{work_order_id}: {response.message} ({response.execution_time_ms} ms)")
    if not response.success:
        logger.warning("Work order %s was not assigned", work_order_id)
        return 2
    return 0


async def _run(args: argparse.Namespace) -> int:
    try:
        if args.work_order:
            return await assign_one(args.work_order)
        return await sweep()
    finally:
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description="Auto-assign queued work orders")
    parser.add_argument(
        "--work-order", type=str, default=None,
        help="Evaluate a single work order instead of sweeping the queue",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log per-rule candidate counts",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s | %(message)s",
    )
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
