#!/usr/bin/env python3
"""
Run the Night Story API server.

Usage:
    python cli/run_api.py
    python cli/run_api.py --port 9000 --reload
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Serve the bedtime story session API")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes (development)")
    args = parser.parse_args()

    # Sessions live in process memory, so a single worker serves them all
    uvicorn.run(
        "nightstory.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1,
    )


if __name__ == "__main__":
    main()
