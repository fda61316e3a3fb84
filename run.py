#!/usr/bin/env python3
"""
Quick CLI runner for Steam Insight.

Usage:
    python run.py                                  # Scan top sellers for domestic games
    python run.py --mode scan --max-pages 6        # Shorter scan
    python run.py --mode reviews --app-id 2358720  # Fetch reviews for one game
    python run.py --mode api                       # Start FastAPI server
    python run.py --mode dashboard                 # Start Streamlit dashboard
"""

import sys
import os
import argparse
import logging

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config.settings import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("run")


def scan(max_pages: int):
    """Run a discovery scan and print the ranked list."""
    from utils.pipeline import scan as run_scan, ScanError

    print("\n" + "="*70)
    print("  🎮 STEAM INSIGHT — DOMESTIC TOP-SELLER SCAN")
    print("="*70 + "\n")

    try:
        games = run_scan(progress_callback=lambda msg: print(f"  … {msg}"), max_pages=max_pages)
    except ScanError as e:
        print(f"\n❌ {e}")
        sys.exit(1)

    print("\n" + "─"*70)
    print(f"  📋 {len(games)} DOMESTIC GAMES (by review count)")
    print("─"*70)
    for i, g in enumerate(games, 1):
        print(
            f"  #{i:<3} {g.name[:32]:<32} reviews={g.total_reviews:>8,}  "
            f"score={g.origin_score:>4}  {g.release_date or ''}"
        )
        if g.developer:
            print(f"       dev: {g.developer}")
    print("="*70 + "\n")


def reviews(app_id: int, limit: int):
    """Fetch one game's reviews and print a short digest."""
    from agents.reviews import FilterCriteria, ReviewFetchError, filter_reviews
    from utils.pipeline import fetch_reviews
    from utils.report import playtime_distribution, sentiment_split

    try:
        fetched = fetch_reviews(app_id, limit)
    except ReviewFetchError as e:
        print(f"❌ {e}")
        sys.exit(1)

    filtered = filter_reviews(fetched, FilterCriteria())
    split = sentiment_split(filtered)
    print(f"\nApp {app_id}: {len(fetched)} fetched, {len(filtered)} match default filters")
    print(f"  positive={split['positive']}  negative={split['negative']}")
    for label, count in playtime_distribution(filtered).items():
        print(f"  {label:<7} {count}")


def start_api():
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=True,
    )


def start_dashboard():
    import subprocess
    subprocess.run([
        sys.executable, "-m", "streamlit", "run",
        os.path.join(os.path.dirname(__file__), "dashboard", "app.py"),
        "--server.port", "8501",
    ])


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Steam Insight — Domestic Game Review Intelligence")
    parser.add_argument(
        "--mode",
        choices=["scan", "reviews", "api", "dashboard"],
        default="scan",
        help="Run mode: scan | reviews | api | dashboard",
    )
    parser.add_argument("--max-pages", type=int, default=settings.MAX_PAGES, help="Listing pages to scan")
    parser.add_argument("--app-id", type=int, help="AppID for --mode reviews")
    parser.add_argument("--limit", type=int, default=500, help="Review limit for --mode reviews")
    args = parser.parse_args()

    if args.mode == "scan":
        scan(args.max_pages)
    elif args.mode == "reviews":
        if args.app_id is None:
            parser.error("--app-id is required for --mode reviews")
        reviews(args.app_id, args.limit)
    elif args.mode == "api":
        start_api()
    elif args.mode == "dashboard":
        start_dashboard()
