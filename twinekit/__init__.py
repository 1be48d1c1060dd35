"""
twinekit: read and write Twine interactive fiction formats.

Every supported format is parsed into a Story of Passages and written back
out from the same model:

    from twinekit import twee, twine2_html

    story = twee.parse(source)
    html = story.to_twine2_html()
"""

__version__ = '0.1.0'

from .babel import generate_ifid, is_valid_ifid
from .errors import (
    CompileError,
    EmptyPassageNameError,
    InvalidArgumentError,
    InvalidJSONError,
    InvalidOperationError,
    InvalidPassageError,
    MissingHTMLElementError,
    NoPassagesError,
    StoryDataError,
    StoryFormatError,
    TwineKitError,
    TWSFormatError,
)
from .passage import Passage
from .story import AddOutcome, AddPassageResult, Story
from .story_format import StoryFormat
from .tag_colors import TagColors
from .twine2_archive import Twine2Archive

__all__ = [
    'AddOutcome',
    'AddPassageResult',
    'CompileError',
    'EmptyPassageNameError',
    'InvalidArgumentError',
    'InvalidJSONError',
    'InvalidOperationError',
    'InvalidPassageError',
    'MissingHTMLElementError',
    'NoPassagesError',
    'Passage',
    'Story',
    'StoryDataError',
    'StoryFormat',
    'StoryFormatError',
    'TagColors',
    'TWSFormatError',
    'Twine2Archive',
    'TwineKitError',
    'generate_ifid',
    'is_valid_ifid',
]
