"""
lsbframe command line.

Usage:
    lsbframe embed   -i cover.png -o stego.png -m "Meet at 10"
    lsbframe embed   -i cover.jpg -o stego.png -f secret.pdf
    lsbframe extract -i stego.png                 (prints UTF-8 text)
    lsbframe extract -i stego.png -o secret.bin   (writes raw payload)
    lsbframe capacity -i cover.png

Exit codes: 0 success, 2 usage or input error, 3 embed/extract failure.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from lsbframe.decoder import extract
from lsbframe.embedder import embed
from lsbframe.errors import CapacityExceeded, StegoError
from lsbframe.image_io import load_image
from lsbframe.utils import calculate_capacity


def do_embed(args: argparse.Namespace) -> int:
    if not Path(args.in_path).exists():
        print(f"[error] Input not found: {args.in_path}", file=sys.stderr)
        return 2

    if args.message is not None:
        secret = args.message
    else:
        embed_file = Path(args.embed_file)
        if not embed_file.exists():
            print(f"[error] Embed file not found: {args.embed_file}", file=sys.stderr)
            return 2
        secret = embed_file.read_bytes()

    try:
        result = embed(args.in_path, secret, args.out_path)
    except CapacityExceeded as e:
        print(
            f"[error] Payload of {e.requested_bytes} bytes does not fit; "
            f"image holds {e.capacity_bytes} bytes.",
            file=sys.stderr,
        )
        return 3
    except StegoError as e:
        print(f"[error] Embed failed: {e}", file=sys.stderr)
        return 3

    print(f"[ok] Wrote {result['output_path']} "
          f"(PSNR {result['psnr']:.2f} dB, {result['payload_pct']:.2f}% of capacity)")
    return 0


def do_extract(args: argparse.Namespace) -> int:
    if not Path(args.in_path).exists():
        print(f"[error] Input not found: {args.in_path}", file=sys.stderr)
        return 2

    result = extract(args.in_path)
    for warning in result.warnings:
        print(f"[warning] {warning}", file=sys.stderr)

    if not result.success:
        print(f"[error] {result.error}", file=sys.stderr)
        return 3

    if args.out_path:
        Path(args.out_path).write_bytes(result.payload)
        print(f"[ok] Extracted {len(result.payload)} bytes to {args.out_path}")
        return 0

    text = result.message
    if text is None:
        print(
            "[error] Payload is not UTF-8 text; use --out to save the raw bytes.",
            file=sys.stderr,
        )
        return 3

    print(text)
    return 0


def do_capacity(args: argparse.Namespace) -> int:
    try:
        pixels = load_image(args.in_path)
    except (FileNotFoundError, StegoError) as e:
        print(f"[error] {e}", file=sys.stderr)
        return 2

    report = calculate_capacity(pixels.size)
    report["width"]  = pixels.shape[1]
    report["height"] = pixels.shape[0]
    print(json.dumps(report, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Hide and recover byte payloads in image pixel LSBs."
    )
    p.add_argument("--verbose", action="store_true", help="Log progress to stderr")
    sub = p.add_subparsers(dest="cmd", required=True)

    pe = sub.add_parser("embed", help="Embed a message or file into an image")
    pe.add_argument("-i", "--in", dest="in_path", required=True, help="Cover image")
    pe.add_argument("-o", "--out", dest="out_path", required=True,
                    help="Output stego image (lossy extensions are written as PNG)")
    mgroup = pe.add_mutually_exclusive_group(required=True)
    mgroup.add_argument("-m", "--message", help="Inline UTF-8 message to embed")
    mgroup.add_argument("-f", "--embed-file", help="Path to file to embed")

    px = sub.add_parser("extract", help="Extract the hidden payload from an image")
    px.add_argument("-i", "--in", dest="in_path", required=True, help="Stego image")
    px.add_argument("-o", "--out", dest="out_path",
                    help="Write the raw payload here instead of printing text")

    pc = sub.add_parser("capacity", help="Report how many bytes an image can hide")
    pc.add_argument("-i", "--in", dest="in_path", required=True, help="Cover image")

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    if args.cmd == "embed":
        return do_embed(args)
    if args.cmd == "extract":
        return do_extract(args)
    return do_capacity(args)


if __name__ == "__main__":
    sys.exit(main())
