#!/usr/bin/env python3
"""Command-line interface for gif-frame-decoder."""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from gif_frame_decoder.config import DecoderConfig
from gif_frame_decoder.core.decoder import read_metadata
from gif_frame_decoder.core.errors import GifDecodeError
from gif_frame_decoder.utils.gif_loader import GifLoader, read_gif_bytes, save_frames


def _build_config(args) -> DecoderConfig:
    config = DecoderConfig.from_env()
    if args.strict_codes:
        config = replace(config, strict_codes=True)
    if args.no_early_reset:
        config = replace(config, early_reset=False)
    return config


def _format_payload(payload: bytes) -> str:
    return payload.decode("latin-1").replace("\r", "").replace("\n", " ")


def run_info(args) -> int:
    metadata = read_metadata(read_gif_bytes(args.gif))
    loop = "infinite" if metadata.loop_count == 0 else str(metadata.loop_count)

    print(f"📄 {Path(args.gif).name} (GIF{metadata.version})")
    print(f"   Canvas: {metadata.width}x{metadata.height}")
    print(f"   Frames: {metadata.frame_count}")
    print(f"   Loop count: {loop}")
    print(f"   Color resolution: {metadata.color_resolution} bits")
    print(f"   Background index: {metadata.background_color_index}")
    for comment in metadata.comments:
        print(f"   Comment: {_format_payload(comment)}")
    for text in metadata.plain_texts:
        print(f"   Plain text: {_format_payload(text)}")
    return 0


def run_extract(args) -> int:
    loader = GifLoader(_build_config(args))
    result = loader.load(args.gif)

    output_dir = Path(args.output) if args.output else Path(args.gif).with_suffix("")
    paths = save_frames([frame.pixels for frame in result.frames], output_dir, prefix=args.prefix)

    for path, frame in zip(paths, result.frames):
        print(f"   {path.name}  delay={frame.delay:.3f}s")
    print(f"✅ Wrote {len(paths)} frames to {output_dir} ({result.duration:.2f}s per loop)")
    if result.warnings:
        print(f"⚠️  {len(result.warnings)} warnings about damaged pixel data")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Decode GIF87a/89a files into composited RGBA frames",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show canvas size, frame count and loop count
  %(prog)s info assets/dancing-dog.gif

  # Write every composited frame as a PNG
  %(prog)s extract assets/dancing-dog.gif --output frames/
"""
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Command')

    info_parser = subparsers.add_parser('info', help='Print stream metadata')
    info_parser.add_argument('gif', type=str, help='Path to GIF file')

    extract_parser = subparsers.add_parser('extract', help='Decode and save frames as PNG')
    extract_parser.add_argument('gif', type=str, help='Path to GIF file')
    extract_parser.add_argument('--output', '-o', type=str, default=None,
                                help='Output directory (default: next to the GIF)')
    extract_parser.add_argument('--prefix', type=str, default='frame', help='Frame file name prefix')
    extract_parser.add_argument('--strict-codes', action='store_true',
                                help='Fail on out-of-range LZW codes instead of skipping them')
    extract_parser.add_argument('--no-early-reset', action='store_true',
                                help='Freeze a full LZW table instead of resetting it')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    gif_path = Path(args.gif)
    if not gif_path.exists():
        print(f"❌ Error: GIF file not found: {gif_path}")
        return 1

    try:
        if args.command == 'info':
            return run_info(args)
        return run_extract(args)
    except GifDecodeError as e:
        print(f"❌ Error: cannot decode {gif_path}: {e}")
        return 1
    except OSError as e:
        print(f"❌ Error: cannot read or write files for {gif_path}: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
