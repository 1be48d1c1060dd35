"""
Story formats: the engine templates Twine compiles stories into.

A story format ships as a format.js file holding a JSONP-style call:

    window.storyFormat({"name": "Harlowe", "version": "3.3.9", "source": "..."});

See: https://github.com/iftechfoundation/twine-specs/blob/master/twine-2-storyformats-spec.md
"""

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict

from .errors import StoryFormatError
from .jsonutil import as_text, loads, to_compact_json

WRAPPER_PREFIX = 'window.storyFormat('
WRAPPER_SUFFIX = ');'

INVALID_JSON_MESSAGE = "ERROR: The story format data is not valid JSON."


@dataclass
class StoryFormat:
    """Fields of a story format object.

    source is the full HTML template of the format, normally containing the
    {{STORY_NAME}} and {{STORY_DATA}} placeholders.
    """
    name: str = 'Untitled Story Format'
    version: str = '0.0.0'
    author: str = ''
    description: str = ''
    image: str = ''
    url: str = ''
    license: str = ''
    proofing: bool = False
    source: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StoryFormat':
        """Build from a decoded format object; unknown keys are ignored.

        null keeps the field default, string fields coerce other values to
        text and a non-boolean proofing is treated as false.
        """
        values: Dict[str, Any] = {}
        for field in fields(cls):
            value = data.get(field.name)
            if value is None:
                continue
            if field.name == 'proofing':
                values[field.name] = value is True
            else:
                values[field.name] = as_text(value)
        return cls(**values)

    @classmethod
    def from_json(cls, text: str) -> 'StoryFormat':
        """Build a StoryFormat from a bare JSON object.

        Raises:
            StoryFormatError: text is not a JSON object
        """
        try:
            data = loads(text)
        except ValueError as e:
            raise StoryFormatError(INVALID_JSON_MESSAGE) from e

        if not isinstance(data, dict):
            raise StoryFormatError(INVALID_JSON_MESSAGE)

        return cls.from_dict(data)

    @classmethod
    def parse(cls, text: str) -> 'StoryFormat':
        """Parse the contents of a format.js file.

        The wrapper is checked before the payload, prefix first, so input
        missing both ends reports the prefix.

        Raises:
            StoryFormatError: missing wrapper, or the payload is not a JSON object
        """
        if not text.startswith(WRAPPER_PREFIX):
            raise StoryFormatError(
                "ERROR: The story format data does not start with 'window.storyFormat('."
            )
        text = text[len(WRAPPER_PREFIX):]

        if not text.endswith(WRAPPER_SUFFIX):
            raise StoryFormatError("ERROR: The story format data does not end with ');'.")
        text = text[:-len(WRAPPER_SUFFIX)]

        return cls.from_json(text)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return to_compact_json(self.to_dict())

    def write(self) -> str:
        """Return the format as format.js contents."""
        return f"{WRAPPER_PREFIX}{self.to_json()}{WRAPPER_SUFFIX}"
