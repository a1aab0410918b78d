#!/usr/bin/env python3
"""
Compression examples for lazybody.

Fetches gzip, deflate and uncompressed JSON with http.client and decodes
the bodies through lazybody.Response.
"""

import http.client
import logging

from lazybody import ACCEPT_ENCODING, ContentEncoding, Response


def fetch(path: str) -> Response:
    conn = http.client.HTTPSConnection("httpbin.org", timeout=10)
    conn.request("GET", path, headers={"Accept-Encoding": ACCEPT_ENCODING})
    return Response.from_raw(conn.getresponse())


def examples():
    print("=" * 60)
    print("DECODING EXAMPLES")
    print("=" * 60)

    for i, path in enumerate(["/gzip", "/deflate", "/get"], start=1):
        print(f"\n{i}. GET https://httpbin.org{path}")
        print("-" * 50)
        with fetch(path) as r:
            print(f"   Status: {r.status_code} (ok={r.ok})")
            print(f"   Content-Encoding: {r.headers.get('content-encoding', 'none')}")
            print(f"   Decoded bytes: {len(r.content)}")
            print(f"   Response: {r.json()}")

    print("\n4. Save decoded body to a file")
    print("-" * 50)
    with fetch("/gzip") as r:
        r.save_to_file("gzip.json")
        print(f"   Wrote {len(r.content)} bytes to gzip.json")

    print("\n5. Close without reading")
    print("-" * 50)
    r = fetch("/deflate")
    r.close()
    print(f"   State after close: {r.state}")


def show_compression_info():
    print("=" * 60)
    print("COMPRESSION CONFIGURATION")
    print("=" * 60)
    print(f"\nAccept-Encoding: {ACCEPT_ENCODING}")
    print("\nSupported encodings:")
    for encoding in ContentEncoding:
        print(f"  - {encoding.value}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    show_compression_info()
    print()
    examples()
