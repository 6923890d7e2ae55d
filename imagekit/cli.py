"""Command line entry point: run the image pipeline on local files."""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence, Tuple

from .config import Config
from .exceptions import ImageKitError
from .handler import ImageHandler
from .models import RETURN_KEYS
from .utils.logging import LogConfig


def parse_size(value: str) -> Tuple[Optional[int], Optional[int]]:
    """Parse ``WxH``; either side may be left empty (``800x``, ``x600``)."""
    width, sep, height = value.lower().partition('x')
    if not sep:
        raise argparse.ArgumentTypeError(f"Expected WIDTHxHEIGHT, got {value!r}")
    try:
        return (int(width) if width else None, int(height) if height else None)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid size {value!r}: {e}") from e


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='imagekit',
        description="Store and process images with the ImageKit pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s save photo.jpg --resize 800x600 --sizes small medium
  %(prog)s save logo.png --path brand --no-compress --keys name url
  %(prog)s delete image_1700000000_abc.jpg --path uploads/images --sizes small
        """
    )
    parser.add_argument('--config', type=str, help='JSON configuration file')
    parser.add_argument('--disk', type=str, help='Storage disk to use (default: configured disk)')
    parser.add_argument('--log-level', type=str, help='Logging level (default: configured level)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    save = subparsers.add_parser('save', help='Validate, store and process an image')
    save.add_argument('file', type=Path, help='Image file to store')
    save.add_argument('--name', type=str, help='Base name (slugified); generated when omitted')
    save.add_argument('--path', type=str, help='Relative directory on the disk')
    save.add_argument('--resize', type=parse_size, metavar='WxH', help='Resize the original to fit WxH')
    save.add_argument('--sizes', nargs='+', help='Size labels to generate')
    save.add_argument('--quality', type=int, help='Compression quality 0-100')
    save.add_argument('--no-compress', action='store_true', help='Skip compression')
    save.add_argument('--watermark', type=str, help='Watermark image path')
    save.add_argument('--position', type=str, help='Watermark position')
    save.add_argument('--opacity', type=int, help='Watermark opacity 0-100')
    save.add_argument('--keys', nargs='+', choices=RETURN_KEYS, help='Fields to print')

    delete = subparsers.add_parser('delete', help='Delete an image and its sizes')
    delete.add_argument('name', type=str, help='Stored file name, including extension')
    delete.add_argument('--path', type=str, help='Relative directory on the disk')
    delete.add_argument('--sizes', nargs='+', help='Size labels to delete as well')

    return parser.parse_args(argv)


def run(args: argparse.Namespace, config: Config) -> object:
    handler = ImageHandler.make(config)
    if args.disk:
        handler.set_disk(args.disk)

    if args.command == 'delete':
        path = args.path or handler.pipeline.saved_path
        return {'deleted': handler.delete_image(args.name, path, args.sizes)}

    handler.set_image(args.file)
    if args.name:
        handler.set_image_name(args.name)
    if args.path:
        handler.set_image_path(args.path)
    if args.resize:
        handler.set_dimensions(*args.resize)
    if args.sizes:
        handler.set_multi_size_options(args.sizes)
    if args.watermark:
        handler.set_watermark(args.watermark, position=args.position, opacity=args.opacity)
    handler.compress_image(not args.no_compress, args.quality)

    return handler.save_image(args.keys)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    config = Config(args.config)

    # Loggers initialise on import; reconfigure with the CLI settings on stderr
    LogConfig.reset()
    LogConfig.setup_logging(
        level=args.log_level or config.logging.level,
        log_file=config.logging.file,
        console=config.logging.console,
        stream=sys.stderr,
    )

    try:
        result = run(args, config)
    except ImageKitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(result, indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
