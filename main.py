"""
Club manager entry point
"""
import asyncio
import json
import sys
from loguru import logger

from app.offline.client import connectivity
from app.offline.sync import sync_service
from database.supabase_client import is_connected
from scheduler.scheduler import ClubScheduler


# Logging
logger.remove()
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="INFO"
)
logger.add(
    "logs/club_{time:YYYY-MM-DD}.log",
    rotation="1 day",
    retention="30 days",
    level="DEBUG"
)


async def serve(host: str, port: int):
    """Run the API server"""
    import uvicorn

    config = uvicorn.Config("app.server:app", host=host, port=port, log_level="info")
    await uvicorn.Server(config).serve()


async def run_sync() -> bool:
    """One replay of the offline queue"""
    connectivity.set_online(is_connected())
    result = await sync_service.manual_sync()
    logger.info(f"Sync result: {result.to_dict()}")
    return result.success


async def main():
    """Main"""
    import argparse

    parser = argparse.ArgumentParser(description="Club manager")
    parser.add_argument(
        "--mode",
        choices=["serve", "sync", "status", "scheduler"],
        default="serve",
        help="Run mode"
    )
    parser.add_argument("--host", default="0.0.0.0", help="Server host")
    parser.add_argument("--port", type=int, default=8000, help="Server port")

    args = parser.parse_args()

    if args.mode == "serve":
        await serve(args.host, args.port)

    elif args.mode == "sync":
        if not await run_sync():
            sys.exit(1)

    elif args.mode == "status":
        connectivity.set_online(is_connected())
        status = sync_service.get_sync_status()
        print("\n=== Sync status ===")
        print(json.dumps(status, indent=2))

    elif args.mode == "scheduler":
        scheduler = ClubScheduler()
        scheduler.start()

        logger.info("Running in scheduler mode... (Ctrl+C to stop)")

        try:
            while True:
                await asyncio.sleep(60)
                logger.debug(f"Scheduler status: {scheduler.get_status()}")
        except (KeyboardInterrupt, asyncio.CancelledError):
            scheduler.stop()
            logger.info("Scheduler stopped")


if __name__ == "__main__":
    asyncio.run(main())
