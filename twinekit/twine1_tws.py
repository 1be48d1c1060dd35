"""
Twine 1 TWS: best-effort reader for the legacy Twine 1 project file.

A .tws file is a Python 2 pickle of the editor state. The parts read here:

    {
        'storyPanel': {
            'scale': 1.0,
            'widgets': [
                {'pos': [10, 10], 'passage': <tiddlywiki.Tiddler title, tags, text>},
                ...
            ],
        },
        ...
    }

The file names classes from the Twine 1 code base (and the stdlib) that are
never imported here: every class reference is replaced by an inert
PickledObject subclass that only records its state. Only copyreg's object
reconstructor is resolved for real, so loading a TWS file cannot run code.
"""

import copyreg
import io
import logging
import pickle
from typing import Any, List

from .errors import TWSFormatError
from .jsonutil import as_text, format_number, is_number
from .passage import Passage
from .story import Story

logger = logging.getLogger(__name__)

INVALID_TWS_MESSAGE = "ERROR: The document is not a valid TWS file."

# Python 2 module names are listed as well: overriding find_class bypasses
# the unpickler's own name mapping.
SAFE_GLOBALS = {
    ('copyreg', '_reconstructor'): copyreg._reconstructor,
    ('copy_reg', '_reconstructor'): copyreg._reconstructor,
    ('builtins', 'object'): object,
    ('__builtin__', 'object'): object,
}


class PickledObject:
    """Inert stand-in for an instance of a class named in the pickle."""

    pickled_name = ''

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.args = args

    def __setstate__(self, state: Any) -> None:
        # Protocol 2 may send (dict, slot_dict)
        if isinstance(state, tuple) and len(state) == 2:
            state = {**(state[0] or {}), **(state[1] or {})}
        if isinstance(state, dict):
            self.__dict__.update(state)
        else:
            self.state = state

    def __repr__(self) -> str:
        return f"<PickledObject {self.pickled_name}>"


class RestrictedUnpickler(pickle.Unpickler):
    def find_class(self, module: str, name: str) -> Any:
        if (module, name) in SAFE_GLOBALS:
            return SAFE_GLOBALS[(module, name)]
        return type(name, (PickledObject,), {'pickled_name': f'{module}.{name}'})


def load(data: bytes) -> Any:
    """Unpickle TWS bytes without importing any of the classes they name.

    Raises:
        TWSFormatError: the bytes are not a readable pickle
    """
    try:
        return RestrictedUnpickler(io.BytesIO(data), encoding='utf-8', errors='replace').load()
    except Exception as e:
        raise TWSFormatError(f"{INVALID_TWS_MESSAGE} {e}") from e


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from a dict or an unpickled object."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, '__dict__', {}).get(name, default)


def _position(pos: Any) -> str:
    if isinstance(pos, (list, tuple)) and len(pos) == 2 and all(is_number(v) for v in pos):
        return ','.join(format_number(v) for v in pos)
    return ''


def _widget_to_passage(widget: Any) -> Passage:
    tiddler = _field(widget, 'passage', {})

    tags = _field(tiddler, 'tags') or []
    if isinstance(tags, str):
        tags = tags.split(' ')

    passage = Passage(
        as_text(_field(tiddler, 'title')),
        as_text(_field(tiddler, 'text')),
        tags=[as_text(tag) for tag in tags if tag],
    )

    position = _position(_field(widget, 'pos'))
    if position:
        passage.set_metadata('position', position)

    return passage


def parse(data: bytes) -> Story:
    """Parse a Twine 1 TWS file into a Story.

    Passages are read from the story panel widgets in file order; the
    panel scale becomes the story zoom.

    Raises:
        TWSFormatError: the file cannot be unpickled or is not a TWS state dict
    """
    state = load(data)
    if not isinstance(state, dict):
        raise TWSFormatError(f"{INVALID_TWS_MESSAGE} Expected a dictionary of story data.")

    story = Story()

    story_panel = state.get('storyPanel')
    if not isinstance(story_panel, dict):
        story.warn("TWS file has no story panel. No passages read.")
        return story

    scale = story_panel.get('scale')
    if is_number(scale):
        story.zoom = float(scale)

    widgets: List[Any] = story_panel.get('widgets') or []
    for widget in widgets:
        story.passages.append(_widget_to_passage(widget))

    logger.debug("Parsed %d TWS passages", story.count)
    return story
