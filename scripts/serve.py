#!/usr/bin/env python3
"""Serve the feed API."""

import os
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn
from dotenv import load_dotenv

from feedhub.api.app import create_app


if __name__ == "__main__":
    load_dotenv()

    port = int(os.environ.get("PORT", 8000))

    print("\n" + "="*60)
    print("FEEDHUB API")
    print("="*60)
    print(f"Listening on http://localhost:{port}")
    print("Press Ctrl+C to stop")
    print("="*60 + "\n")

    uvicorn.run(create_app(), host="0.0.0.0", port=port)
