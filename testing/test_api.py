"""
Quick API check against a locally running alt text server.
Start the server first (e.g. `alttext-server --openai`), then run this file.
Checks: health, upload page, rejected non-multipart upload, real upload.
"""

import sys

import requests

BASE = "http://localhost:8080"

# 1x1 red PNG
RED_PIXEL_PNG = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010802000000907753de"
    "0000000c4944415408d763f8cfc000000301010018dd8db00000000049454e44ae426082"
)


def main() -> None:
    base = sys.argv[1] if len(sys.argv) > 1 else BASE

    # 1) Health
    r = requests.get(f"{base}/health", timeout=10)
    print("HEALTH:", r.status_code, r.json())

    # 2) Upload page
    r = requests.get(f"{base}/", timeout=10)
    print("PAGE:", r.status_code, len(r.text), "bytes")

    # 3) Wrong content type is rejected before any provider call
    r = requests.post(f"{base}/upload", json={"image": "nope"}, timeout=10)
    print("JSON UPLOAD:", r.status_code, r.text)

    # 4) Real upload (calls the configured provider)
    r = requests.post(
        f"{base}/upload",
        files={"image": ("red.png", RED_PIXEL_PNG, "image/png")},
        timeout=60,
    )
    print("UPLOAD:", r.status_code, r.text)


if __name__ == "__main__":
    main()
