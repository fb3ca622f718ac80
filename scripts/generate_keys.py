#!/usr/bin/env python3
"""
Generate the RSA key pair used to sign access tokens
=====================================================
Writes jwt_private.pem and jwt_public.pem. Point JWT_PRIVATE_KEY_FILE and
JWT_PUBLIC_KEY_FILE at them (or paste the PEMs into JWT_PRIVATE_KEY /
JWT_PUBLIC_KEY).

Usage:
    python scripts/generate_keys.py [--out-dir ./keys] [--bits 2048] [--force]
"""

import argparse
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.tokens import generate_rsa_key_pair, key_id_for  # noqa: E402

PRIVATE_NAME = "jwt_private.pem"
PUBLIC_NAME = "jwt_public.pem"


def write_key_pair(out_dir: str, bits: int = 2048, force: bool = False) -> dict:
    """Create the key files and return their paths and key id."""
    base = Path(out_dir)
    private_path = base / PRIVATE_NAME
    public_path = base / PUBLIC_NAME

    if not force and (private_path.exists() or public_path.exists()):
        raise FileExistsError(f"Key files already exist in {base} (use --force to overwrite)")

    base.mkdir(parents=True, exist_ok=True)
    private_pem, public_pem = generate_rsa_key_pair(bits)

    private_path.write_text(private_pem)
    os.chmod(private_path, 0o600)
    public_path.write_text(public_pem)

    return {
        "private_key": str(private_path),
        "public_key": str(public_path),
        "key_id": key_id_for(public_pem),
    }


def main():
    parser = argparse.ArgumentParser(description="Generate the token signing key pair")
    parser.add_argument("--out-dir", default="./keys", help="Directory for the PEM files")
    parser.add_argument("--bits", type=int, default=2048, help="RSA modulus size")
    parser.add_argument("--force", action="store_true", help="Overwrite existing key files")
    args = parser.parse_args()

    try:
        result = write_key_pair(args.out_dir, args.bits, args.force)
    except FileExistsError as e:
        print(f"✗ {e}")
        sys.exit(1)

    print(f"✓ Private key: {result['private_key']}")
    print(f"✓ Public key:  {result['public_key']}")
    print(f"  Key id:      {result['key_id']}")
    print()
    print("Add to .env:")
    print(f"  JWT_PRIVATE_KEY_FILE={result['private_key']}")
    print(f"  JWT_PUBLIC_KEY_FILE={result['public_key']}")


if __name__ == "__main__":
    main()
