#!/usr/bin/env python3
"""
Check that the configured storage bucket is reachable.

Runs the same initialization and bucket check the API performs on startup,
without starting the web server. Useful from a deploy pipeline or a
container shell.

Usage:
    python scripts/check_storage.py
    python scripts/check_storage.py --path images/example.png

Requires:
    - S3_HOST, S3_BUCKET, S3_PUBLIC_URL (environment or .env)
    - S3_ACCESS_KEY/S3_SECRET_KEY, or a container IAM role
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from imagestore.config.settings import get_settings
from imagestore.infrastructure.storage import StorageError, StorageProvider, create_storage_config


async def check_storage(path: str | None) -> bool:
    try:
        provider = StorageProvider(create_storage_config(get_settings()))
    except StorageError as e:
        print(f"ERROR: {e}")
        return False

    print(f"Endpoint: {provider.config.endpoint_url}")
    print(f"Bucket:   {provider.bucket_name}")
    print(f"Credentials: {'static keys' if provider.config.uses_static_credentials else 'container IAM role'}")

    try:
        await provider.verify_reachable()
    except StorageError as e:
        print(f"ERROR: {e}")
        return False

    print("Bucket reachable")

    if path:
        print(f"Public URL: {provider.public_url(path)}")

    return True


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Check storage bucket reachability')
    parser.add_argument('--path', help='Also print the public URL for this object path')
    parser.add_argument('--verbose', action='store_true', help='Show client log output')
    args = parser.parse_args()

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if args.verbose else logging.WARNING,
    )

    success = asyncio.run(check_storage(args.path))

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
