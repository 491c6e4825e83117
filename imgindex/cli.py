# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Command-line interface for imgindex

    imgindex [--config FILE] [-s | -v] [index] [PATH ...] [-o FILE]
    imgindex version
    imgindex dump FILE
    imgindex help

Indexing is the default command, so ``imgindex photos/`` indexes the
photos directory.

Copyright 2025 DNAi inc.
"""

import argparse
import json
import sys
from typing import List, Optional

from imgindex import __version__
from imgindex.config import load_config
from imgindex.core import JpegImage
from imgindex.exceptions import ImgIndexError, MetadataReadError, SegmentNotFoundError
from imgindex.exif_tags import tag_name_for
from imgindex.exif_values import ExifTagType
from imgindex.indexer import Indexer, write_index
from imgindex.log import configure_log, get_logger, init_log
from imgindex.value_formatter import format_exif_value, to_json_value

logger = get_logger(__name__)

PROG = "imgindex"
COMMANDS = ('index', 'version', 'dump', 'help')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Index JPEG image metadata (EXIF, IPTC, XMP) to JSON.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Index the current directory to stdout
  imgindex

  # Index a directory into a file, using 4 threads
  imgindex index photos/ -o index.json --workers 4

  # Show every EXIF tag of one file
  imgindex dump photo.jpg
        """
    )
    parser.add_argument('--config', metavar='FILE', help='config file (default: imgindex.yml in ., $HOME or /etc/imgindex/)')
    parser.add_argument('-s', '--silent', action='store_true', default=None, help='silent, only print errors')
    parser.add_argument('-v', '--verbose', action='store_true', default=None, help='verbose, print additional information')
    parser.add_argument('-V', '--version', action='version', version=f'{PROG} version {__version__}')

    subparsers = parser.add_subparsers(dest='command', metavar='{index,version,dump,help}')

    index_parser = subparsers.add_parser('index', help='(default) index image metadata to JSON')
    index_parser.add_argument('paths', nargs='*', default=['.'], metavar='PATH', help='directories or files to index (default: .)')
    index_parser.add_argument('-o', '--output', metavar='FILE', help='write the index to FILE instead of stdout')
    index_parser.add_argument('--workers', type=int, metavar='N', help='number of files decoded in parallel')
    index_parser.add_argument('--no-recursive', dest='recursive', action='store_false', default=None,
                              help='do not descend into subdirectories')

    subparsers.add_parser('version', help='print the version number')

    dump_parser = subparsers.add_parser('dump', help='print every EXIF tag of one file')
    dump_parser.add_argument('file', help='JPEG file')
    dump_parser.add_argument('--json', action='store_true', help='print raw values as JSON')

    subparsers.add_parser('help', help='show this help message')
    return parser


def _with_default_command(argv: List[str]) -> List[str]:
    """Insert 'index' before the first argument that is not a global option or a command."""
    argv = list(argv)
    skip_next = False
    for position, token in enumerate(argv):
        if skip_next:
            skip_next = False
            continue
        if token == '--config':
            skip_next = True
            continue
        if token.startswith('--config=') or token in ('-s', '--silent', '-v', '--verbose'):
            continue
        if token in ('-h', '--help', '-V', '--version') or token in COMMANDS:
            return argv
        return argv[:position] + ['index'] + argv[position:]
    return argv + ['index']


def run_index(args: argparse.Namespace) -> int:
    config = load_config(
        args.config,
        overrides={
            'verbose': args.verbose,
            'silent': args.silent,
            'workers': args.workers,
            'recursive': args.recursive,
            'output': args.output,
        },
    )
    configure_log(config.verbose, config.silent)
    logger.info("Indexing meta data.")

    indexer = Indexer(config)
    entries = []
    for path in args.paths:
        entries.extend(indexer.index(path))

    if config.output:
        write_index(entries, config.output)
        logger.info("Wrote %d entries to %s", len(entries), config.output)
    else:
        write_index(entries, sys.stdout)
    return 0


def run_dump(args: argparse.Namespace) -> int:
    image = JpegImage.open(args.file)
    try:
        exif = image.exif
    except SegmentNotFoundError:
        logger.warning("%s has no EXIF segment", args.file)
        return 0

    render = to_json_value if args.json else format_exif_value
    rows = []
    for kind, entry, decoded in exif.iter_decoded():
        name = tag_name_for(entry.tag_id, kind)
        if isinstance(decoded, MetadataReadError):
            value = f"<{decoded.message}>"
        else:
            try:
                value = render(name, decoded.value)
            except MetadataReadError as e:
                value = f"<{e.message}>"
        rows.append((kind, entry, name, value))

    if args.json:
        values = {}
        for kind, _, name, value in rows:
            values.setdefault(f"{kind.value}:{name}", value)
        print(json.dumps(values, indent=2, ensure_ascii=False))
        return 0

    for kind, entry, name, value in rows:
        print(f"{kind.value:<10} 0x{entry.tag_id:04X} {name:<28} {_type_name(entry.type_id):<9} {value}")
    return 0


def _type_name(type_id: int) -> str:
    try:
        return ExifTagType(type_id).name
    except ValueError:
        return f"type {type_id}"


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the command line.

    Returns:
        Exit status: 0 on success, 1 on error (usage errors exit with 2)
    """
    init_log()
    parser = build_parser()
    args = parser.parse_args(_with_default_command(sys.argv[1:] if argv is None else argv))

    if args.verbose and args.silent:
        parser.error("--verbose and --silent are mutually exclusive")
    configure_log(bool(args.verbose), bool(args.silent))

    try:
        if args.command == 'version':
            print(f"{PROG} version {__version__}")
            return 0
        if args.command == 'help':
            parser.print_help()
            return 0
        if args.command == 'dump':
            return run_dump(args)
        return run_index(args)
    except ImgIndexError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 1


if __name__ == "__main__":
    sys.exit(main())
