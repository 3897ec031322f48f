"""
snappwd — Basic Usage Example

Walks through the create and read paths offline: key, envelope, transfer
encoding and share link. The storage service is replaced by a dict, so the
example runs without a server. Point Config at a real service and use
Sharer for the networked version.
"""

import sys
import uuid
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from snappwd import (
    AuthenticationFailure,
    LinkStyle,
    build_link,
    decode_key,
    encode_key,
    from_text,
    generate_key,
    open_envelope,
    parse_link,
    seal,
    to_text,
)


def main():
    print("=" * 50)
    print("  snappwd — Zero-knowledge share links")
    print("=" * 50)

    server = {}  # stands in for the storage service

    # Create path: key -> envelope -> base64 -> store -> link
    key = generate_key()
    envelope = seal(b"the wifi password is hunter2", key)
    secret_id = uuid.uuid4().hex
    server[secret_id] = to_text(envelope)

    url = build_link("https://snappwd.example", "/", secret_id, encode_key(key))
    compact = build_link("https://snappwd.example", "/", secret_id, encode_key(key), LinkStyle.COMPACT)

    print(f"\nEnvelope: {len(envelope)} bytes, version {envelope[0]}")
    print(f"Server stores: {server[secret_id][:32]}...")
    print(f"Share link:    {url}")
    print(f"Compact link:  {compact}")

    # Read path: link -> fetch (delete on read) -> decode -> open
    link = parse_link(url)
    stored = server.pop(link.id)
    plaintext = open_envelope(from_text(stored), decode_key(link.key))
    print(f"\nRevealed: {plaintext.decode()}")
    print(f"Still on server: {link.id in server}")

    print("\nAttempting to open with a different key...")
    try:
        open_envelope(envelope, generate_key())
        print("  ERROR: Should have failed!")
    except AuthenticationFailure:
        print("  Correctly rejected — wrong key = authentication failure")


if __name__ == "__main__":
    main()
