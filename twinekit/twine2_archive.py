"""
Twine 2 Archive: several <tw-storydata> elements in one HTML document.

Format reference:
https://github.com/iftechfoundation/twine-specs/blob/master/twine-2-archive-spec.md
"""

import logging
from typing import Iterable, List, Optional

from . import twine2_html
from .errors import MissingHTMLElementError, MISSING_STORYDATA_MESSAGE
from .story import Story

logger = logging.getLogger(__name__)


class Twine2Archive:
    def __init__(self, stories: Optional[Iterable[Story]] = None) -> None:
        self.stories: List[Story] = list(stories) if stories else []

    def __repr__(self) -> str:
        return f"Twine2Archive(stories={len(self.stories)})"

    @classmethod
    def parse(cls, html: str) -> 'Twine2Archive':
        """Parse every <tw-storydata> element of an archive.

        Raises:
            MissingHTMLElementError: the document has no <tw-storydata> element
            InvalidOperationError: a story has a non-numeric zoom attribute
        """
        stories = twine2_html.parse_stories(html)
        if not stories:
            raise MissingHTMLElementError(MISSING_STORYDATA_MESSAGE)

        logger.debug("Parsed archive with %d stories", len(stories))
        return cls(stories)

    def create_html(self) -> str:
        """Each story's <tw-storydata> element followed by a blank line."""
        return ''.join(story.to_twine2_html() + "\n\n" for story in self.stories)
