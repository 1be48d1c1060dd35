"""
Twine 2 JSON: parse the story export format of Twine 2.7+.

Format reference:
https://github.com/iftechfoundation/twine-specs/blob/master/twine-2-jsonoutput-doc.md

Output is produced by Story.to_json().
"""

import logging
from typing import Any, Dict

from .errors import InvalidJSONError, InvalidOperationError
from .jsonutil import as_text, is_number, loads
from .passage import Passage
from .story import DEFAULT_STORY_NAME, Story

logger = logging.getLogger(__name__)

INVALID_JSON_MESSAGE = "ERROR: Invalid JSON format."

STRING_FIELDS = (
    ('ifid', 'ifid'),
    ('format', 'format'),
    ('format-version', 'format_version'),
    ('start', 'start'),
    ('creator', 'creator'),
    ('creator-version', 'creator_version'),
)


def _parse_passage(story: Story, data: Any) -> Passage:
    if not isinstance(data, dict):
        story.warn("Passage entry is not an object. Using an empty passage.")
        data = {}

    passage = Passage(as_text(data.get('name')), as_text(data.get('text')))

    tags = data.get('tags')
    if isinstance(tags, list):
        for tag in tags:
            passage.add_tag(as_text(tag))
    elif tags is not None:
        story.warn(f"Tags of passage '{passage.name}' are not an array. Ignoring data.")

    metadata = data.get('metadata')
    if isinstance(metadata, dict):
        for key, value in metadata.items():
            passage.set_metadata(key, value)
    elif metadata is not None:
        story.warn(f"Metadata of passage '{passage.name}' is not an object. Ignoring data.")

    return passage


def parse(text: str) -> Story:
    """Parse a Twine 2 JSON document into a Story.

    Shape problems other than a bad zoom are reported in Story.diagnostics
    and the offending field is skipped.

    Raises:
        InvalidJSONError: text is not a JSON object
        InvalidOperationError: zoom is present but not a number
    """
    try:
        data: Dict[str, Any] = loads(text)
    except ValueError as e:
        raise InvalidJSONError(INVALID_JSON_MESSAGE) from e

    if not isinstance(data, dict):
        raise InvalidJSONError(INVALID_JSON_MESSAGE)

    story = Story()

    if 'name' in data:
        story.name = DEFAULT_STORY_NAME if data['name'] is None else as_text(data['name'])
    else:
        story.warn("name is required. Ignoring data.")

    for key, field in STRING_FIELDS:
        setattr(story, field, as_text(data.get(key)))

    if 'tag-colors' in data:
        tag_colors = data['tag-colors']
        if isinstance(tag_colors, dict):
            for tag, color in tag_colors.items():
                story.tag_colors.add_tag(tag, as_text(color))
        else:
            story.warn("tag-colors is not a collection. Ignoring data.")

    if 'zoom' in data:
        zoom = data['zoom']
        if not is_number(zoom):
            raise InvalidOperationError(f"ERROR: zoom must be a number, not {zoom!r}.")
        story.zoom = float(zoom)

    story.story_stylesheets.append(as_text(data.get('style')))
    story.story_scripts.append(as_text(data.get('script')))

    if 'passages' in data:
        passages = data['passages']
        if passages is None:
            story.warn("No passages found.")
        elif not isinstance(passages, list):
            story.warn("passages is not a valid collection of passage data. Ignoring data.")
        else:
            for entry in passages:
                story.passages.append(_parse_passage(story, entry))

    logger.debug("Parsed Twine 2 JSON story %r with %d passages", story.name, story.count)
    return story
