"""
Twine 1 HTML: parse published Twine 1 stories and compile new ones.

Format reference:
https://github.com/iftechfoundation/twine-specs/blob/master/twine-1-htmloutput-doc.md

Passages live as "tiddler" elements inside the store area:

    <div id="storeArea">
      <div tiddler="Start" tags="" created="202306020121" modifier="twee"
           twine-position="10,10">[[One passage]]</div>
    </div>

Tiddler text is kept as the raw inner HTML of the element, so entity
references are NOT decoded.
"""

import logging
from datetime import datetime, timezone
from html.parser import HTMLParser
from typing import Dict, List, Optional, Tuple

from .errors import MissingHTMLElementError
from .passage import Passage
from .story import Story

logger = logging.getLogger(__name__)

STORE_AREA_IDS = ('storeArea', 'store-area')
STYLESHEET_IDS = ('storyCSS', 'story-style')

# Tiddler attributes kept as passage metadata, in output order.
TIDDLER_METADATA = (
    ('created', 'created'),
    ('modifier', 'modifier'),
    ('modified', 'modified'),
    ('twine-position', 'position'),
)


# =============================================================================
# HTML PARSING
# =============================================================================

class _RawElement:
    """Raw inner HTML of one element, tracked by nesting depth of its tag."""

    def __init__(self, tag: str) -> None:
        self.tag = tag
        self.depth = 1
        self.parts: List[str] = []

    @property
    def inner_html(self) -> str:
        return ''.join(self.parts)


class Twine1StoryParser(HTMLParser):
    """Collect tiddlers from the store area, plus the story stylesheet."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=False)
        self.found_store_area = False
        self.store_area: Optional[_RawElement] = None
        self.tiddlers: List[Tuple[Dict[str, Optional[str]], _RawElement]] = []
        self.stylesheets: Dict[str, _RawElement] = {}
        self.capture: Optional[_RawElement] = None

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        if self.capture is not None:
            self.capture.parts.append(self.get_starttag_text())
            if tag == self.capture.tag:
                self.capture.depth += 1
            return

        attrs_dict = dict(attrs)
        element_id = attrs_dict.get('id')

        if self.store_area is not None:
            if 'tiddler' in attrs_dict:
                self.capture = _RawElement(tag)
                self.tiddlers.append((attrs_dict, self.capture))
            elif tag == self.store_area.tag:
                self.store_area.depth += 1
        elif element_id in STORE_AREA_IDS and not self.found_store_area:
            self.found_store_area = True
            self.store_area = _RawElement(tag)
        elif element_id in STYLESHEET_IDS and element_id not in self.stylesheets:
            self.capture = _RawElement(tag)
            self.stylesheets[element_id] = self.capture

    def handle_startendtag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        if self.capture is not None:
            self.capture.parts.append(self.get_starttag_text())
        else:
            self.handle_starttag(tag, attrs)
            self.handle_endtag(tag)

    def handle_endtag(self, tag: str) -> None:
        if self.capture is not None:
            if tag == self.capture.tag:
                self.capture.depth -= 1
                if self.capture.depth == 0:
                    self.capture = None
                    return
            self.capture.parts.append(f'</{tag}>')
            return

        if self.store_area is not None and tag == self.store_area.tag:
            self.store_area.depth -= 1
            if self.store_area.depth == 0:
                self.store_area = None

    def handle_data(self, data: str) -> None:
        if self.capture is not None:
            self.capture.parts.append(data)

    def handle_entityref(self, name: str) -> None:
        if self.capture is not None:
            self.capture.parts.append(f'&{name};')

    def handle_charref(self, name: str) -> None:
        if self.capture is not None:
            self.capture.parts.append(f'&#{name};')

    def handle_comment(self, data: str) -> None:
        if self.capture is not None:
            self.capture.parts.append(f'<!--{data}-->')


def _tiddler_to_passage(attrs_dict: Dict[str, Optional[str]], element: _RawElement) -> Passage:
    tags = [tag for tag in (attrs_dict.get('tags') or '').split(' ') if tag]

    passage = Passage(attrs_dict.get('tiddler') or '', element.inner_html, tags=tags)
    for attribute, key in TIDDLER_METADATA:
        if attribute in attrs_dict:
            passage.add_metadata(key, attrs_dict[attribute] or '')

    return passage


def parse(html: str) -> Story:
    """Parse a Twine 1 HTML document into a Story.

    Raises:
        MissingHTMLElementError: no storeArea/store-area element, or no
            tiddler elements inside it
    """
    parser = Twine1StoryParser()
    parser.feed(html)
    parser.close()

    if not parser.found_store_area:
        raise MissingHTMLElementError("ERROR: The document does not contain a storeArea element.")

    if not parser.tiddlers:
        raise MissingHTMLElementError("ERROR: The document does not contain any tiddler nodes.")

    story = Story()
    for attrs_dict, element in parser.tiddlers:
        story.passages.append(_tiddler_to_passage(attrs_dict, element))

    for element_id in STYLESHEET_IDS:
        if element_id in parser.stylesheets:
            story.story_stylesheets.append(parser.stylesheets[element_id].inner_html)
            break

    logger.debug("Parsed %d Twine 1 tiddlers", story.count)
    return story


# =============================================================================
# COMPILING
# =============================================================================

def _timestamp() -> str:
    """Current UTC time as 2024-01-31T12:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f'{now.microsecond // 1000:03d}Z'


def compile(story: Story, engine: str = '', header: str = '') -> str:
    """Fill a Twine 1 header.html template with a story.

    Placeholders are replaced in a fixed order: VERSION, TIME, ENGINE,
    STORY_SIZE, STORY, START_AT. Replacement is plain substring
    substitution; STORY_SIZE must be replaced before STORY.
    """
    header = header.replace('VERSION', story.creator)
    header = header.replace('TIME', _timestamp())
    header = header.replace('ENGINE', engine)
    header = header.replace('STORY_SIZE', str(story.count))
    header = header.replace('STORY', story.to_twine1_html())
    header = header.replace('START_AT', '')
    return header
