"""
Twee 3 parser and emitter.

Parses Twee source into a Story and writes a Story back out as Twee.

Format reference:
https://github.com/iftechfoundation/twine-specs/blob/master/twee-3-specification.md

A passage looks like:

    :: Name [tag1 tag2] {"position":"600,400"}
    Body text, up to the next "::" or the end of the document.

The parser works on the UTF-8 bytes of the document rather than on decoded
characters. Every delimiter it looks for is ASCII, and ASCII bytes never
occur inside a multi-byte UTF-8 sequence, so each captured field can be
decoded on its own.

Parsing treats the input as a (possibly partial) story: passages are
collected as they appear, and StoryData/StoryTitle/Start are kept as
ordinary passages rather than interpreted.
"""

import logging
from typing import List

from .errors import InvalidPassageError, NoPassagesError
from .jsonutil import JSONValue, loads, to_pretty_json
from .passage import Passage
from .story import STORY_DATA, Story

logger = logging.getLogger(__name__)

COLON = ord(':')
NEWLINE = ord('\n')
BACKSLASH = ord('\\')
OPEN_BRACKET = ord('[')
CLOSE_BRACKET = ord(']')
OPEN_BRACE = ord('{')

PASSAGE_DELIMITER = b'::'


# =============================================================================
# PARSING
# =============================================================================

class TweeParser:
    """Single-pass scanner over the bytes of a Twee document."""

    def __init__(self, source: str) -> None:
        self.data = source.encode('utf-8')
        self.position = 0
        self.story = Story()

    def parse(self) -> Story:
        data = self.data

        # Only the first colon decides whether the document holds passages.
        delimiter = data.find(b':')
        if delimiter == -1 or delimiter + 1 >= len(data):
            raise NoPassagesError()

        if data[delimiter + 1] != COLON:
            return self.story

        if delimiter + 2 >= len(data):
            raise NoPassagesError()

        self.position = delimiter + 2
        while self.position < len(data):
            self.story.passages.append(self.read_passage())

        return self.story

    # -------------------------------------------------------------------------
    # Scanning helpers
    # -------------------------------------------------------------------------

    def at(self, byte: int) -> bool:
        return self.position < len(self.data) and self.data[self.position] == byte

    def at_unescaped_brace(self) -> bool:
        return (self.at(OPEN_BRACE)
                and (self.position == 0 or self.data[self.position - 1] != BACKSLASH))

    def read_until(self, *stops: int) -> str:
        """Consume bytes up to (not including) any of the stop bytes."""
        start = self.position
        while self.position < len(self.data) and self.data[self.position] not in stops:
            self.position += 1
        return self.data[start:self.position].decode('utf-8')

    # -------------------------------------------------------------------------
    # Passage parts
    # -------------------------------------------------------------------------

    def read_passage(self) -> Passage:
        name = self.read_until(OPEN_BRACKET, OPEN_BRACE, NEWLINE).strip()
        tags = self.read_tags()
        metadata = self.read_metadata(name)

        # Rest of the header line is ignored.
        self.read_until(NEWLINE)

        # A header must be followed by something, even an empty body.
        if self.position < len(self.data) and self.position + 1 >= len(self.data):
            raise InvalidPassageError()

        self.position += 1
        text = self.read_text()

        return Passage(name, text, tags=tags, metadata=metadata)

    def read_tags(self) -> List[str]:
        if not self.at(OPEN_BRACKET):
            return []

        self.position += 1
        tags = self.read_until(CLOSE_BRACKET)
        self.position = min(self.position + 1, len(self.data))

        # "[]" yields a single empty tag
        return tags.split(' ')

    def read_metadata(self, name: str) -> dict:
        while (self.position < len(self.data)
               and not self.at_unescaped_brace()
               and not self.at(NEWLINE)):
            self.position += 1

        if not self.at_unescaped_brace():
            return {}

        self.position += 1
        start = self.position
        while (self.position < len(self.data)
               and not self.at_unescaped_brace()
               and not self.at(NEWLINE)):
            self.position += 1
        raw = '{' + self.data[start:self.position].decode('utf-8')

        try:
            metadata: JSONValue = loads(raw)
        except ValueError as e:
            self.story.warn(f"Unable to parse metadata of passage '{name}'. {e}")
            return {}

        if not isinstance(metadata, dict):
            self.story.warn(f"Unable to parse metadata of passage '{name}'. Expected a JSON object.")
            return {}

        return metadata

    def read_text(self) -> str:
        end = self.data.find(PASSAGE_DELIMITER, self.position)
        if end == -1:
            text = self.data[self.position:]
            self.position = len(self.data)
        else:
            text = self.data[self.position:end]
            self.position = end + len(PASSAGE_DELIMITER)

        return text.decode('utf-8').rstrip('\n')


def parse(source: str) -> Story:
    """Parse a Twee 3 document into a Story.

    Args:
        source: Twee source text

    Returns:
        Story whose passages appear in document order; metadata parse
        problems are reported in Story.diagnostics

    Raises:
        NoPassagesError: the document has no colon, or ends at the first one
        InvalidPassageError: a passage header is the last line of the document
    """
    story = TweeParser(source).parse()
    logger.debug("Parsed %d Twee passages", story.count)
    return story


# =============================================================================
# EMITTING
# =============================================================================

def create(story: Story) -> str:
    """Write a Story as a Twee 3 document.

    Unlike Story.to_twee(), the passage list is written exactly as held:
    a StoryData passage present in the list (as left by parse()) is written
    first and as-is, and no StoryTitle passage is synthesized from the story
    name. Without a StoryData passage one is generated from the story fields.
    """
    story_data = story.get_passage_by_name(STORY_DATA)
    if story_data is None:
        parts: List[str] = [f":: {STORY_DATA}\n", to_pretty_json(story.story_data()), "\n\n"]
    else:
        parts = [story_data.to_twee(), "\n\n"]

    for passage in story.passages:
        if passage.name != STORY_DATA:
            parts.append(passage.to_twee())
            parts.append("\n\n")

    return ''.join(parts)
