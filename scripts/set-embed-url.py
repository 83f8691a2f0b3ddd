#!/usr/bin/env python3
"""
Script to set, show or clear the configured embed URL in Redis
This is the same value the admin API manages at /api/url
"""
import argparse
import asyncio
import sys
from pathlib import Path

# Add backend to path
backend_path = Path(__file__).parent.parent / "backend"
sys.path.insert(0, str(backend_path))

from urlconnect.core.config import settings
from urlconnect.core.redis_client import connect_redis, disconnect_redis, get_redis
from urlconnect.services.errors import BadTargetURL
from urlconnect.services.target_validator import parse_target
from urlconnect.services.url_store import RedisUrlStore


async def set_embed_url(url: str, clear: bool):
    """Update the configured URL and print the stored value"""
    print(f"Connecting to Redis at {settings.REDIS_URL}...")
    await connect_redis()
    store = RedisUrlStore(get_redis())
    
    try:
        if clear:
            await store.clear_url()
            print("✓ Configured URL cleared")
        elif url:
            try:
                target = parse_target(url)
            except BadTargetURL as e:
                print(f"✗ Invalid URL format: {e}")
                sys.exit(1)
            await store.set_url(url.strip())
            print(f"✓ Configured URL set (frame base will be {target.href})")
        
        current = await store.get_url()
        updated_at = await store.get_updated_at()
        print("\n" + "="*50)
        print(f"URL: {current or '(not configured)'}")
        if updated_at:
            print(f"Updated at: {updated_at.isoformat()}")
        print("="*50)
    finally:
        await disconnect_redis()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("url", nargs="?", default="", help="Absolute http(s) URL to embed")
    parser.add_argument("--clear", action="store_true", help="Remove the configured URL")
    args = parser.parse_args()
    asyncio.run(set_embed_url(args.url, args.clear))
