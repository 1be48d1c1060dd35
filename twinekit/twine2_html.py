"""
Twine 2 HTML: parse published stories and compile stories into playable HTML.

Format reference:
https://github.com/iftechfoundation/twine-specs/blob/master/twine-2-htmloutput-spec.md

A published story carries its data in a <tw-storydata> element:

    <tw-storydata name="Example" startnode="1" ifid="..." zoom="1" format="Harlowe">
      <style role="stylesheet" id="twine-user-stylesheet" type="text/twine-css"></style>
      <script role="script" id="twine-user-script" type="text/twine-javascript"></script>
      <tw-tag name="tag1" color="red"></tw-tag>
      <tw-passagedata pid="1" name="Start" tags="tag1" position="100,100">Text</tw-passagedata>
    </tw-storydata>

Parsing treats the input as a (possibly partial) story: required attributes
are only enforced when producing output.
"""

import logging
import math
from html.parser import HTMLParser
from typing import Dict, List, Optional, Tuple

from .babel import is_valid_ifid
from .errors import (
    CompileError,
    InvalidOperationError,
    MissingHTMLElementError,
    MISSING_STORYDATA_MESSAGE,
)
from .passage import DEFAULT_PASSAGE_NAME, Passage
from .story import Story
from .story_format import StoryFormat

logger = logging.getLogger(__name__)

STORY_DATA_PLACEHOLDER = '{{STORY_DATA}}'
STORY_NAME_PLACEHOLDER = '{{STORY_NAME}}'


# =============================================================================
# HTML PARSING
# =============================================================================

def _attr(attrs_dict: Dict[str, Optional[str]], key: str, default: str = '') -> str:
    """Attribute value; bare attributes (no value) read as ''."""
    if key not in attrs_dict:
        return default
    return attrs_dict[key] or ''


def _split_tags(value: str) -> List[str]:
    return [tag for tag in value.split(' ') if tag]


class Twine2StoryParser(HTMLParser):
    """Collect every <tw-storydata> element of a document as a Story."""

    def __init__(self) -> None:
        super().__init__()
        self.stories: List[Story] = []
        self.story: Optional[Story] = None
        self.start_pid = ''
        self.current_passage: Optional[Passage] = None
        self.current_element: Optional[str] = None  # 'style' or 'script'
        self.current_data: List[str] = []

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        attrs_dict = dict(attrs)

        if tag == 'tw-storydata':
            self._finish_story()
            self._start_story(attrs_dict)
        elif self.story is None:
            return
        elif tag == 'tw-passagedata':
            self._finish_passage()
            self._start_passage(attrs_dict)
        elif tag == 'tw-tag':
            self.story.tag_colors.add_tag(_attr(attrs_dict, 'name'), _attr(attrs_dict, 'color'))
        elif tag in ('style', 'script') and self.current_passage is None:
            self.current_element = tag
            self.current_data = []

    def handle_endtag(self, tag: str) -> None:
        if tag == 'tw-passagedata':
            self._finish_passage()
        elif tag == 'tw-storydata':
            self._finish_story()
        elif tag == self.current_element:
            content = ''.join(self.current_data)
            if tag == 'style':
                self.story.story_stylesheets.append(content)
            else:
                self.story.story_scripts.append(content)
            self.current_element = None
            self.current_data = []

    def handle_data(self, data: str) -> None:
        if self.current_passage is not None or self.current_element is not None:
            self.current_data.append(data)

    def close(self) -> None:
        super().close()
        self._finish_story()

    # -------------------------------------------------------------------------

    def _start_story(self, attrs_dict: Dict[str, Optional[str]]) -> None:
        story = Story(_attr(attrs_dict, 'name'))
        story.ifid = _attr(attrs_dict, 'ifid')
        story.creator = _attr(attrs_dict, 'creator')
        story.creator_version = _attr(attrs_dict, 'creator-version')
        story.format = _attr(attrs_dict, 'format')
        story.format_version = _attr(attrs_dict, 'format-version')

        zoom = _attr(attrs_dict, 'zoom', '1')
        try:
            value = float(zoom)
        except ValueError as e:
            raise InvalidOperationError(f"ERROR: The zoom attribute is not a number: {zoom!r}.") from e
        if not math.isfinite(value):
            raise InvalidOperationError(f"ERROR: The zoom attribute is not a number: {zoom!r}.")
        story.zoom = value

        self.start_pid = _attr(attrs_dict, 'startnode')
        self.story = story
        self.stories.append(story)

    def _finish_story(self) -> None:
        self._finish_passage()
        self.story = None
        self.start_pid = ''
        self.current_element = None

    def _start_passage(self, attrs_dict: Dict[str, Optional[str]]) -> None:
        name = _attr(attrs_dict, 'name', DEFAULT_PASSAGE_NAME)

        if _attr(attrs_dict, 'pid') == self.start_pid:
            self.story.start = name

        metadata = {}
        if 'size' in attrs_dict:
            metadata['size'] = _attr(attrs_dict, 'size')
        if 'position' in attrs_dict:
            metadata['position'] = _attr(attrs_dict, 'position')

        self.current_passage = Passage(
            name,
            tags=_split_tags(_attr(attrs_dict, 'tags')),
            metadata=metadata,
        )
        self.current_data = []

    def _finish_passage(self) -> None:
        if self.current_passage is None:
            return
        self.current_passage.text = ''.join(self.current_data)
        self.story.passages.append(self.current_passage)
        self.current_passage = None
        self.current_data = []


def parse_stories(html: str) -> List[Story]:
    """Parse every <tw-storydata> element of a document, in document order."""
    parser = Twine2StoryParser()
    parser.feed(html)
    parser.close()
    return parser.stories


def parse(html: str) -> Story:
    """Parse a Twine 2 HTML document into a Story.

    Only the first <tw-storydata> element is read. Passages are appended
    in document order; StoryTitle/StoryData/Start passages are not
    interpreted.

    Raises:
        MissingHTMLElementError: the document has no <tw-storydata> element
        InvalidOperationError: the zoom attribute is not a number
    """
    stories = parse_stories(html)
    if not stories:
        raise MissingHTMLElementError(MISSING_STORYDATA_MESSAGE)

    story = stories[0]
    logger.debug("Parsed Twine 2 story %r with %d passages", story.name, story.count)
    return story


# =============================================================================
# COMPILING
# =============================================================================

def compile(story: Story, story_format: StoryFormat) -> str:
    """Insert a story into the HTML template of a story format.

    Every {{STORY_DATA}} placeholder is replaced by the story's
    <tw-storydata> element, then every {{STORY_NAME}} by the story name.

    Raises:
        CompileError: the format has no source, or the story IFID is invalid
    """
    if not story_format.source:
        raise CompileError("ERROR: The source of the story format is empty.")

    if not is_valid_ifid(story.ifid):
        raise CompileError("ERROR: The story IFID is not a valid.")

    html = story_format.source.replace(STORY_DATA_PLACEHOLDER, story.to_twine2_html())
    return html.replace(STORY_NAME_PLACEHOLDER, story.name)
