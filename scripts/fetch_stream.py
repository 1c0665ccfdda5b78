#!/usr/bin/env python3
"""
Relay smoke test - fetch a media URL through a running relay.

Builds the relayed URL the way the player does, optionally sends a Range
header, and reports status, the exposed headers and how many bytes arrived.

Usage:
    python3 scripts/fetch_stream.py https://pixeldrain.dev/api/file/abc \
        [--base-url http://127.0.0.1:8787] [--range bytes=0-99] [--head]
"""

import argparse
import asyncio
import sys
import time

import httpx

from streamrelay.config import settings
from streamrelay.urls import build_stream_url, relay_base_url

_SHOWN_HEADERS = (
    "content-type",
    "content-length",
    "content-range",
    "accept-ranges",
    "access-control-allow-origin",
    "access-control-expose-headers",
)


async def fetch(base_url: str, target: str, byte_range: str | None, head: bool) -> int:
    url = build_stream_url(target, base_url)
    headers = {"Range": byte_range} if byte_range else {}
    method = "HEAD" if head else "GET"
    print(f"{method} {url}")

    started = time.monotonic()
    received = 0
    async with httpx.AsyncClient(timeout=30.0) as client:
        async with client.stream(method, url, headers=headers) as res:
            print(f"Status: {res.status_code} {res.reason_phrase}")
            for name in _SHOWN_HEADERS:
                if name in res.headers:
                    print(f"  {name}: {res.headers[name]}")
            first_byte = None
            error_body = b""
            async for chunk in res.aiter_raw():
                if first_byte is None:
                    first_byte = time.monotonic() - started
                received += len(chunk)
                if res.status_code >= 400:
                    error_body += chunk
            if error_body:
                print(f"Body: {error_body.decode(errors='replace')[:200]}")
    elapsed = time.monotonic() - started
    if first_byte is not None:
        print(f"First byte after {first_byte * 1000:.0f} ms")
    print(f"Received {received} bytes in {elapsed:.2f} s")
    return 0 if res.status_code < 400 else 1


async def main():
    parser = argparse.ArgumentParser(description="Stream relay smoke test")
    parser.add_argument("target", help="Upstream media URL (must be allowlisted)")
    parser.add_argument("--base-url", default=relay_base_url(settings))
    parser.add_argument("--range", dest="byte_range", help="e.g. bytes=0-99")
    parser.add_argument("--head", action="store_true", help="Send HEAD instead of GET")
    args = parser.parse_args()

    sys.exit(await fetch(args.base_url, args.target, args.byte_range, args.head))


if __name__ == "__main__":
    asyncio.run(main())
