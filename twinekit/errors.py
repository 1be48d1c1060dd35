"""
Exception types raised by twinekit.

Message text is part of the public contract: callers (and other Twine
tooling) match on it, so the literal messages below are reproduced exactly.
"""

NO_PASSAGES_MESSAGE = "ERROR: The document does not contain any passages."
INVALID_PASSAGE_MESSAGE = "ERROR: The document contains invalid passage."
EMPTY_PASSAGE_NAME_MESSAGE = "Passage name cannot be empty."
MISSING_STORYDATA_MESSAGE = "ERROR: The document does not contain a <tw-storydata> element."


class TwineKitError(Exception):
    """Base class for every error raised by this package."""


class NoPassagesError(TwineKitError, ValueError):
    def __init__(self, message: str = NO_PASSAGES_MESSAGE):
        super().__init__(message)


class InvalidPassageError(TwineKitError, ValueError):
    def __init__(self, message: str = INVALID_PASSAGE_MESSAGE):
        super().__init__(message)


class EmptyPassageNameError(TwineKitError, ValueError):
    def __init__(self, message: str = EMPTY_PASSAGE_NAME_MESSAGE):
        super().__init__(message)


class MissingHTMLElementError(TwineKitError, ValueError):
    def __init__(self, message: str = "HTML Element cannot be found."):
        super().__init__(message)


class StoryFormatError(TwineKitError, ValueError):
    """The story format wrapper or its JSON payload is malformed."""


class InvalidJSONError(TwineKitError, ValueError):
    """A Twine 2 JSON document could not be decoded."""


class StoryDataError(TwineKitError, ValueError):
    """A StoryData passage carries a value of the wrong shape."""


class CompileError(TwineKitError, ValueError):
    """Preconditions for compiling a story into playable HTML are not met."""


class TWSFormatError(TwineKitError, ValueError):
    """A legacy Twine 1 TWS file could not be decoded."""


class InvalidOperationError(TwineKitError, TypeError):
    """A value is present but has an unusable type (e.g. a non-numeric zoom)."""


class InvalidArgumentError(TwineKitError, TypeError):
    """A required argument was None."""
