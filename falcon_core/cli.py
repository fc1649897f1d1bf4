#!/usr/bin/env python3
"""
Command line interface for falcon-core.

    falcon-core keygen --keystore keys.json
    falcon-core pubkey --keystore keys.json
    falcon-core sign   --keystore keys.json --domain D --message 0x<32 bytes>
    falcon-core verify --public-key 0x... --domain D --message 0x... --signature 0x...
    falcon-core bench  --keystore keys.json --count 10
"""

import argparse
import logging
import os
import sys
import time

import numpy as np
from tqdm import tqdm

from .exceptions import FalconError
from .keystore import JsonFileKeyStore
from .signing import FalconSigner, verify

logger = logging.getLogger(__name__)


def _signer(args) -> FalconSigner:
    return FalconSigner(JsonFileKeyStore(args.keystore))


def cmd_keygen(args) -> int:
    signer = _signer(args)
    if signer.has_key() and not args.force:
        logger.error(f"{args.keystore} already holds a key; use --force to replace it")
        return 1
    print(signer.generate())
    return 0


def cmd_pubkey(args) -> int:
    print(_signer(args).public_key())
    return 0


def cmd_sign(args) -> int:
    print(_signer(args).sign(args.message, args.domain, seed=args.seed))
    return 0


def cmd_verify(args) -> int:
    valid = verify(args.public_key, args.domain, args.signature, args.message)
    print("valid" if valid else "invalid")
    return 0 if valid else 1


def cmd_bench(args) -> int:
    signer = _signer(args)
    public_key = signer.public_key()
    sign_times = []
    verify_times = []
    failures = 0
    for _ in tqdm(range(args.count), desc="Sign/verify"):
        message = os.urandom(32)
        start = time.perf_counter()
        signature = signer.sign(message, args.domain)
        sign_times.append(time.perf_counter() - start)
        start = time.perf_counter()
        if not verify(public_key, args.domain, signature, message):
            failures += 1
        verify_times.append(time.perf_counter() - start)

    print(f"sign:   mean {np.mean(sign_times) * 1e3:.1f} ms, "
          f"std {np.std(sign_times) * 1e3:.1f} ms")
    print(f"verify: mean {np.mean(verify_times) * 1e3:.1f} ms, "
          f"std {np.std(verify_times) * 1e3:.1f} ms")
    print(f"failures: {failures}/{args.count}")
    return 0 if failures == 0 else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="falcon-core",
        description="Falcon-1024 key generation, signing and verification"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    keygen = subparsers.add_parser("keygen", help="Generate and store a key pair")
    keygen.add_argument("--keystore", type=str, required=True,
                        help="Path of the JSON key store")
    keygen.add_argument("--force", action="store_true",
                        help="Replace an existing key")
    keygen.set_defaults(func=cmd_keygen)

    pubkey = subparsers.add_parser("pubkey", help="Print the packed public key")
    pubkey.add_argument("--keystore", type=str, required=True,
                        help="Path of the JSON key store")
    pubkey.set_defaults(func=cmd_pubkey)

    sign = subparsers.add_parser("sign", help="Sign a 32-byte message")
    sign.add_argument("--keystore", type=str, required=True,
                      help="Path of the JSON key store")
    sign.add_argument("--domain", type=str, required=True,
                      help="Domain separator")
    sign.add_argument("--message", type=str, required=True,
                      help="Message as 32 bytes of hex")
    sign.add_argument("--seed", type=str, default=None,
                      help="Hex seed for deterministic signing (default: OS randomness)")
    sign.set_defaults(func=cmd_sign)

    verify_parser = subparsers.add_parser("verify", help="Verify a signature")
    verify_parser.add_argument("--public-key", type=str, required=True,
                               help="Packed public key as hex")
    verify_parser.add_argument("--domain", type=str, required=True,
                               help="Domain separator")
    verify_parser.add_argument("--message", type=str, required=True,
                               help="Message as 32 bytes of hex")
    verify_parser.add_argument("--signature", type=str, required=True,
                               help="Signature as hex")
    verify_parser.set_defaults(func=cmd_verify)

    bench = subparsers.add_parser("bench", help="Time signing and verification")
    bench.add_argument("--keystore", type=str, required=True,
                       help="Path of the JSON key store")
    bench.add_argument("--domain", type=str, default="FALCON BENCH",
                       help="Domain separator (default: FALCON BENCH)")
    bench.add_argument("--count", type=int, default=10,
                       help="Number of messages (default: 10)")
    bench.set_defaults(func=cmd_bench)
    return parser


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    level = [logging.WARNING, logging.INFO, logging.DEBUG][min(args.verbose, 2)]
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    try:
        return args.func(args)
    except FalconError as exc:
        logger.error(str(exc))
        return 1


if __name__ == "__main__":
    sys.exit(main())
