import argparse
import asyncio
import json

from loguru import logger

from tunevault.core.concurrency import Concurrency
from tunevault.core.db import AsyncSessionLocal, init_db
from tunevault.core.db_cache import DbCache
from tunevault.core.exceptions import NotFoundError
from tunevault.core.logger import setup_logging
from tunevault.services.collection import CACHE_KEY
from tunevault.services.folders import FolderReconciler, UserFolder
from tunevault.services.library_settings import LibrarySettings
from tunevault.services.maintenance import Maintenance
from tunevault.services.tracks import TrackRepository


async def run_invalidate_collection(user_id: str) -> None:
    """Drop the cached collection of a user, e.g. after files changed on disk.

    Only the validity flag is removed; the user's blob store is not reachable
    from here and the stale JSON is simply never served again.
    """
    async with AsyncSessionLocal() as session:
        await DbCache(session).remove(user_id, CACHE_KEY)
    logger.info(f"Collection cache of user {user_id} invalidated")


async def run_reset_library(user_id: str) -> None:
    async with AsyncSessionLocal() as session:
        maintenance = Maintenance(session, Concurrency(DbCache(session)))
        await maintenance.reset_library(user_id)
    logger.success(f"Library of user {user_id} reset")


async def run_folders(user_id: str) -> None:
    """Print the reconciled folder tree of a user as JSON."""
    async with AsyncSessionLocal() as session:
        try:
            music_folder = await LibrarySettings(session).get_folder(user_id)
        except NotFoundError as e:
            logger.error(str(e))
            return
        reconciler = FolderReconciler(
            TrackRepository(session), UserFolder(session, user_id)
        )
        folders = await reconciler.find_all_folders(user_id, music_folder)
    print(json.dumps([f.to_api() for f in folders], indent=2))


def main():
    setup_logging()
    parser = argparse.ArgumentParser(description="tunevault Worker")
    subparsers = parser.add_subparsers(dest="command")

    init_parser = subparsers.add_parser("init-db", help="Initialize Database Tables")
    init_parser.add_argument(
        "--force", action="store_true", help="Drop and re-create all tables (backs up first)"
    )

    invalidate_parser = subparsers.add_parser(
        "invalidate-collection", help="Force rebuild of a user's collection JSON"
    )
    invalidate_parser.add_argument("user", help="User ID")

    reset_parser = subparsers.add_parser(
        "reset-library", help="Remove all scanned tracks of a user"
    )
    reset_parser.add_argument("user", help="User ID")

    folders_parser = subparsers.add_parser(
        "folders", help="Print the library folder tree of a user"
    )
    folders_parser.add_argument("user", help="User ID")

    args = parser.parse_args()

    if args.command == "init-db":
        asyncio.run(init_db(force=args.force))
        logger.info("Database initialized.")

    elif args.command == "invalidate-collection":
        asyncio.run(run_invalidate_collection(args.user))

    elif args.command == "reset-library":
        asyncio.run(run_reset_library(args.user))

    elif args.command == "folders":
        asyncio.run(run_folders(args.user))

    else:
        parser.print_help()


if __name__ == "__main__":
    main()
