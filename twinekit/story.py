"""
Story: the aggregate root of the Twine model.

A Story holds an ordered list of passages plus story-level metadata (IFID,
start passage, story format, zoom, creator, tag colors, stylesheets and
scripts). Three passage names are interpreted when added through
add_passage():

- StoryData: JSON carrying story-level fields; absorbed, never stored
- StoryTitle: its text becomes the story name; also stored
- Start: becomes the start passage if none is set yet; also stored

Non-fatal problems found while reading or writing a story are appended to
Story.diagnostics and logged; callers decide whether to surface them.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .babel import generate_ifid, is_valid_ifid
from .errors import InvalidOperationError, StoryDataError
from .jsonutil import as_text, format_number, is_number, loads, normalize_number, to_pretty_json
from .passage import Passage
from .tag_colors import TagColors

logger = logging.getLogger(__name__)

DEFAULT_STORY_NAME = 'Untitled'

STORY_DATA = 'StoryData'
STORY_TITLE = 'StoryTitle'
START = 'Start'

STYLESHEET_TAG = 'stylesheet'
SCRIPT_TAG = 'script'

STYLE_ELEMENT = '<style role="stylesheet" id="twine-user-stylesheet" type="text/twine-css">{}</style>\n'
SCRIPT_ELEMENT = '<script role="script" id="twine-user-script" type="text/twine-javascript">{}</script>\n'


class AddOutcome(Enum):
    """What add_passage() did with a passage."""
    STORED = 'stored'
    REPLACED = 'replaced'
    ABSORBED = 'absorbed'
    STORED_AND_ABSORBED = 'stored_and_absorbed'


@dataclass
class AddPassageResult:
    outcome: AddOutcome
    index: Optional[int]  # position in Story.passages; None when absorbed
    count: int            # number of passages after the call


class Story:
    """An ordered collection of passages plus story-level metadata."""

    def __init__(self, name: str = DEFAULT_STORY_NAME) -> None:
        self.name = name
        self.ifid = ''
        self.start = ''
        self.format = ''
        self.format_version = ''
        self.zoom = 1.0
        self.creator = ''
        self.creator_version = ''
        self.tag_colors = TagColors()
        self.story_stylesheets: List[str] = []
        self.story_scripts: List[str] = []
        self.passages: List[Passage] = []
        self.diagnostics: List[str] = []

    def __repr__(self) -> str:
        return f"Story(name={self.name!r}, passages={len(self.passages)})"

    @property
    def count(self) -> int:
        return len(self.passages)

    def warn(self, message: str) -> None:
        """Record a non-fatal problem with this story."""
        self.diagnostics.append(message)
        logger.warning(message)

    # =========================================================================
    # PASSAGE MANAGEMENT
    # =========================================================================

    def _index_of(self, name: str) -> Optional[int]:
        for index, passage in enumerate(self.passages):
            if passage.name == name:
                return index
        return None

    def add_passage(self, passage: Passage) -> AddPassageResult:
        """Add a passage, applying the StoryData/StoryTitle/Start rules.

        A passage whose name is already present replaces the existing entry
        in place, before any special-name handling.

        Raises:
            InvalidOperationError: StoryData has a non-numeric zoom
            StoryDataError: StoryData has a tag-colors value that is not an object
        """
        existing = self._index_of(passage.name)
        if existing is not None:
            self.passages[existing] = passage
            return AddPassageResult(AddOutcome.REPLACED, existing, self.count)

        if passage.name == STORY_DATA:
            self._apply_story_data(passage.text)
            return AddPassageResult(AddOutcome.ABSORBED, None, self.count)

        outcome = AddOutcome.STORED

        if passage.name == STORY_TITLE:
            self.name = passage.text
            outcome = AddOutcome.STORED_AND_ABSORBED

        if passage.name == START and not self.start:
            self.start = START
            outcome = AddOutcome.STORED_AND_ABSORBED

        self.passages.append(passage)
        return AddPassageResult(outcome, len(self.passages) - 1, self.count)

    def _apply_story_data(self, text: str) -> None:
        try:
            data = loads(text)
        except ValueError as e:
            self.warn(f"Unable to parse StoryData: {e}")
            return

        if not isinstance(data, dict):
            self.warn("Unable to parse StoryData: expected a JSON object.")
            return

        # A rejected StoryData leaves every field untouched
        zoom = data.get('zoom')
        if 'zoom' in data and not is_number(zoom):
            raise InvalidOperationError(f"ERROR: StoryData zoom must be a number, not {zoom!r}.")

        tag_colors = data.get('tag-colors')
        if 'tag-colors' in data and not isinstance(tag_colors, dict):
            raise StoryDataError("ERROR: StoryData tag-colors must be an object.")

        if 'ifid' in data:
            self.ifid = as_text(data['ifid'])
        if 'start' in data:
            self.start = as_text(data['start'])
        if 'format' in data:
            self.format = as_text(data['format'])
        if 'format-version' in data:
            self.format_version = as_text(data['format-version'])
        if 'zoom' in data:
            self.zoom = float(zoom)
        if 'tag-colors' in data:
            self.tag_colors = TagColors({tag: as_text(color) for tag, color in tag_colors.items()})

    def remove_passage_by_name(self, name: str) -> int:
        """Remove every passage with this name; returns how many were removed."""
        before = len(self.passages)
        self.passages = [p for p in self.passages if p.name != name]
        return before - len(self.passages)

    def get_passages_by_tag(self, tag: str) -> List[Passage]:
        return [p for p in self.passages if p.has_tag(tag)]

    def get_passage_by_name(self, name: str) -> Optional[Passage]:
        index = self._index_of(name)
        return None if index is None else self.passages[index]

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def _ensure_ifid(self) -> None:
        # Output formats require an IFID; repair it rather than fail.
        if not is_valid_ifid(self.ifid):
            self.warn("IFID is not in the proper format. Generating a new IFID.")
            self.ifid = generate_ifid()

    def story_data(self) -> Dict[str, Any]:
        """Build the StoryData object written at the top of a Twee file."""
        self._ensure_ifid()

        data: Dict[str, Any] = {'ifid': self.ifid}

        if self.format:
            data['format'] = self.format
        if self.format_version:
            data['format-version'] = self.format_version
        if self.start:
            data['start'] = self.start
        if self.tag_colors.count > 0:
            data['tag-colors'] = self.tag_colors.to_dict()
        if self.zoom >= 1.0:
            data['zoom'] = normalize_number(self.zoom)

        return data

    def to_twee(self) -> str:
        """Return the story as a Twee 3 document.

        See: https://github.com/iftechfoundation/twine-specs/blob/master/twee-3-specification.md
        """
        parts = [":: StoryData\n", to_pretty_json(self.story_data()), "\n\n"]

        if self.name:
            parts.append(f":: {STORY_TITLE}\n{self.name}\n\n")

        for passage in self.passages:
            parts.append(passage.to_twee())
            parts.append("\n\n")

        return ''.join(parts)

    def _start_pid(self) -> int:
        """PID of the start passage: 0 with no passages, 1 if not found."""
        if not self.passages:
            return 0

        start_pid = 1
        for pid, passage in enumerate(self.passages, start=1):
            if passage.name == self.start:
                start_pid = pid
        return start_pid

    def to_twine2_html(self) -> str:
        """Return the story as a Twine 2 <tw-storydata> element.

        See: https://github.com/iftechfoundation/twine-specs/blob/master/twine-2-htmloutput-spec.md
        """
        self._ensure_ifid()

        html = f'<tw-storydata name="{self.name}" ifid="{self.ifid}" startnode="{self._start_pid()}"'

        if self.creator:
            html += f' creator="{self.creator}"'
        if self.creator_version:
            html += f' creator-version="{self.creator_version}"'
        if self.zoom >= 1.0:
            html += f' zoom="{format_number(self.zoom)}"'
        if self.format:
            html += f' format="{self.format}"'
        if self.format_version:
            html += f' format-version="{self.format_version}"'

        html += " options hidden>\n"

        for stylesheet in self.story_stylesheets:
            html += STYLE_ELEMENT.format(stylesheet)
        for passage in self.get_passages_by_tag(STYLESHEET_TAG):
            html += STYLE_ELEMENT.format(passage.text)

        for script in self.story_scripts:
            html += SCRIPT_ELEMENT.format(script)
        for passage in self.get_passages_by_tag(SCRIPT_TAG):
            html += SCRIPT_ELEMENT.format(passage.text)

        html += self.tag_colors.to_twine2_html()

        for pid, passage in enumerate(self.passages, start=1):
            html += passage.to_twine2_html(pid)

        return html + "</tw-storydata>"

    def to_twine1_html(self) -> str:
        """Return the passages as a Twine 1 storeArea <div>.

        See: https://github.com/iftechfoundation/twine-specs/blob/master/twine-1-htmloutput-doc.md
        """
        tiddlers = ''.join(passage.to_twine1_html() for passage in self.passages)
        return f'<div id="storeArea" data-size="{self.count}">{tiddlers}</div>'

    def to_dict(self) -> Dict[str, Any]:
        """Return the story as a Twine 2 JSON object.

        See: https://github.com/iftechfoundation/twine-specs/blob/master/twine-2-jsonoutput-doc.md
        """
        styles = self.story_stylesheets + [p.text for p in self.get_passages_by_tag(STYLESHEET_TAG)]
        scripts = self.story_scripts + [p.text for p in self.get_passages_by_tag(SCRIPT_TAG)]

        return {
            'name': self.name,
            'ifid': self.ifid,
            'start': self.start,
            'format': self.format,
            'format-version': self.format_version,
            'creator': self.creator,
            'creator-version': self.creator_version,
            'zoom': normalize_number(self.zoom),
            'tag-colors': self.tag_colors.to_dict(),
            'style': '\n'.join(styles),
            'script': '\n'.join(scripts),
            'passages': [passage.to_dict() for passage in self.passages],
        }

    def to_json(self) -> str:
        return to_pretty_json(self.to_dict())
