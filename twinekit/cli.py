"""
Command-line converter between Twine story formats.

Usage:
    twinekit convert story.twee story.html
    twinekit convert story.html story.json --from twine2-html --to twine2-json
    twinekit compile story.twee format.js story.html
    twinekit info story.twee
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from . import __version__, twee, twine1_html, twine1_tws, twine2_html, twine2_json
from .errors import TwineKitError
from .story import Story
from .story_format import StoryFormat
from .twine2_archive import Twine2Archive

logger = logging.getLogger(__name__)

INPUT_FORMATS = ('twee', 'twine1-html', 'twine2-html', 'twine2-json', 'twine2-archive', 'tws')
OUTPUT_FORMATS = ('twee', 'twine1-html', 'twine2-html', 'twine2-json', 'twine2-archive')

EXTENSION_FORMATS = {
    '.twee': 'twee',
    '.tw': 'twee',
    '.json': 'twine2-json',
    '.html': 'twine2-html',
    '.htm': 'twine2-html',
    '.tws': 'tws',
}


# =============================================================================
# READING
# =============================================================================

def build_story(parsed: Story) -> Story:
    """Re-add parsed passages through Story.add_passage().

    Twee parsing keeps StoryData/StoryTitle/Start as plain passages; this
    applies them to the story fields.
    """
    story = Story()
    story.diagnostics.extend(parsed.diagnostics)
    for passage in parsed.passages:
        story.add_passage(passage)
    return story


def read_stories(path: Path, fmt: str) -> List[Story]:
    if fmt == 'tws':
        return [twine1_tws.parse(path.read_bytes())]

    text = path.read_text(encoding='utf-8')

    if fmt == 'twee':
        return [build_story(twee.parse(text))]
    if fmt == 'twine1-html':
        return [twine1_html.parse(text)]
    if fmt == 'twine2-html':
        return [twine2_html.parse(text)]
    if fmt == 'twine2-json':
        return [twine2_json.parse(text)]
    return Twine2Archive.parse(text).stories


WRITERS: Dict[str, Callable[[Story], str]] = {
    'twee': twee.create,
    'twine1-html': Story.to_twine1_html,
    'twine2-html': Story.to_twine2_html,
    'twine2-json': Story.to_json,
}


def write_stories(stories: List[Story], fmt: str) -> str:
    if fmt == 'twine2-archive':
        return Twine2Archive(stories).create_html()

    if len(stories) > 1:
        logger.warning("Input holds %d stories; writing only the first", len(stories))
    return WRITERS[fmt](stories[0])


def infer_format(path: Path, choices: tuple) -> Optional[str]:
    fmt = EXTENSION_FORMATS.get(path.suffix.lower())
    return fmt if fmt in choices else None


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_convert(args: argparse.Namespace) -> int:
    source_format = args.source_format or infer_format(args.input, INPUT_FORMATS)
    if source_format is None:
        print(f"Error: Cannot infer input format of {args.input}; use --from", file=sys.stderr)
        return 1

    target_format = args.target_format or infer_format(args.output, OUTPUT_FORMATS)
    if target_format is None:
        print(f"Error: Cannot infer output format of {args.output}; use --to", file=sys.stderr)
        return 1

    stories = read_stories(args.input, source_format)
    output = write_stories(stories, target_format)

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(output, encoding='utf-8')

    passages = sum(story.count for story in stories)
    print(f"✓ Converted {passages} passages ({source_format} → {target_format})", file=sys.stderr)
    print(f"✓ Output: {args.output}", file=sys.stderr)
    return 0


def cmd_compile(args: argparse.Namespace) -> int:
    source_format = args.source_format or infer_format(args.input, INPUT_FORMATS)
    if source_format is None:
        print(f"Error: Cannot infer input format of {args.input}; use --from", file=sys.stderr)
        return 1

    if not args.story_format.exists():
        print(f"Error: Story format not found: {args.story_format}", file=sys.stderr)
        return 1

    story = read_stories(args.input, source_format)[0]
    story_format = StoryFormat.parse(args.story_format.read_text(encoding='utf-8'))
    html = twine2_html.compile(story, story_format)

    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(html, encoding='utf-8')

    print(f"✓ Compiled {story.name!r} with {story_format.name} {story_format.version}", file=sys.stderr)
    print(f"✓ Output: {args.output}", file=sys.stderr)
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    source_format = args.source_format or infer_format(args.input, INPUT_FORMATS)
    if source_format is None:
        print(f"Error: Cannot infer input format of {args.input}; use --from", file=sys.stderr)
        return 1

    for story in read_stories(args.input, source_format):
        print(f"Story: {story.name}")
        print(f"  IFID: {story.ifid or '(none)'}")
        print(f"  Format: {story.format or '(none)'} {story.format_version}".rstrip())
        print(f"  Start: {story.start or '(none)'}")
        print(f"  Passages: {story.count}")
        for passage in story.passages:
            tags = f" [{' '.join(passage.tags)}]" if passage.tags else ''
            print(f"    - {passage.name}{tags}")
        if story.diagnostics:
            print(f"  Warnings: {len(story.diagnostics)}")
            for message in story.diagnostics:
                print(f"    ! {message}")

    return 0


# =============================================================================
# ENTRY POINT
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='twinekit',
        description='Convert between Twee, Twine 1 and Twine 2 story formats'
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    convert = subparsers.add_parser('convert', help='Convert a story to another format')
    convert.add_argument('input', type=Path, help='Input story file')
    convert.add_argument('output', type=Path, help='Output file')
    convert.add_argument('--from', dest='source_format', choices=INPUT_FORMATS,
                         help='Input format (default: inferred from extension)')
    convert.add_argument('--to', dest='target_format', choices=OUTPUT_FORMATS,
                         help='Output format (default: inferred from extension)')
    convert.set_defaults(func=cmd_convert)

    compile_ = subparsers.add_parser('compile', help='Compile a story with a Twine 2 story format')
    compile_.add_argument('input', type=Path, help='Input story file')
    compile_.add_argument('story_format', type=Path, help='Story format file (format.js)')
    compile_.add_argument('output', type=Path, help='Output HTML file')
    compile_.add_argument('--from', dest='source_format', choices=INPUT_FORMATS,
                          help='Input format (default: inferred from extension)')
    compile_.set_defaults(func=cmd_compile)

    info = subparsers.add_parser('info', help='Summarize a story file')
    info.add_argument('input', type=Path, help='Input story file')
    info.add_argument('--from', dest='source_format', choices=INPUT_FORMATS,
                      help='Input format (default: inferred from extension)')
    info.set_defaults(func=cmd_info)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for command-line usage."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    if not args.input.exists():
        print(f"Error: Input file not found: {args.input}", file=sys.stderr)
        return 1

    try:
        return args.func(args)
    except TwineKitError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
