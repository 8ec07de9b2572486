"""
Save a player's profile page and print the daily blocks extracted from it.

Useful when the tracker's markup drifts and an extractor needs adjusting:
  python scripts/save_profile.py SomePlayer --platform ubi
"""

import argparse
import asyncio
import os
from datetime import datetime

from r6tracker.common.logging_utils import configure_logging
from r6tracker.core.config import Settings
from r6tracker.data_collection.candidates import resolve_candidates
from r6tracker.data_collection.extractors import get_extractor
from r6tracker.data_collection.fetcher import ResilientFetcher
from r6tracker.data_collection.session import SessionManager


async def save_profile(username: str, platform: str | None) -> None:
    cfg = Settings()
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = "logs"
    os.makedirs(output_dir, exist_ok=True)

    session_manager = SessionManager(cfg)
    fetcher = ResilientFetcher(cfg, session_manager=session_manager)
    try:
        doc = await fetcher.fetch(resolve_candidates(username, platform, default_platform=cfg.default_platform))
        output_file = os.path.join(output_dir, f"profile_{username}_{timestamp}.html")
        with open(output_file, "w", encoding="utf-8") as f:
            f.write(doc.html)
        print(f"Fetched {doc.url} (HTTP {doc.status})")
        print(f"Page saved to: {output_file}")

        extractor = get_extractor(cfg.extractor_version, doc.html)
        blocks = extractor.extract(doc.html, datetime.now(cfg.tz).date())
        print(f"\n{extractor.version}: {len(blocks)} daily blocks")
        for b in blocks:
            print(
                f"  {b.resolved_date}  {b.wins}W {b.losses}L  K {b.kills}  D {b.deaths}  HS {b.headshot_pct:.1f}%"
            )
    finally:
        await fetcher.close()
        await session_manager.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Save an R6 tracker profile page")
    parser.add_argument("username")
    parser.add_argument("--platform", default=None)
    args = parser.parse_args()
    configure_logging("save_profile")
    asyncio.run(save_profile(args.username, args.platform))
