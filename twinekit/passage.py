"""
Passage: the atomic unit of a Twine story.

A passage has a name, a set of tags, a metadata mapping and body text, and
knows how to render itself as a fragment of each output format. Fragments
are written verbatim: attribute values and text are NOT HTML-escaped, which
matches what Twine 1/2 tooling expects when round-tripping.
"""

from typing import Any, Dict, Iterable, List, Optional

from .errors import EmptyPassageNameError
from .jsonutil import JSONValue, to_compact_json

DEFAULT_PASSAGE_NAME = 'Untitled Passage'
DEFAULT_TWINE1_POSITION = '10,10'

_MISSING = object()


class Passage:
    """A named unit of story content with tags, metadata and text."""

    def __init__(self, name: str = DEFAULT_PASSAGE_NAME, text: str = '',
                 tags: Optional[Iterable[str]] = None,
                 metadata: Optional[Dict[str, JSONValue]] = None) -> None:
        self.name = name
        self.text = text
        # Insertion-ordered set: keeps serialization deterministic.
        self.tags: List[str] = []
        for tag in tags or []:
            self.add_tag(tag)
        self.metadata: Dict[str, JSONValue] = dict(metadata) if metadata else {}

    def __repr__(self) -> str:
        return f"Passage(name={self.name!r}, tags={self.tags!r})"

    # -------------------------------------------------------------------------
    # Tags
    # -------------------------------------------------------------------------

    def add_tag(self, tag: str) -> bool:
        """Add a tag. Returns False if the passage already had it."""
        if tag in self.tags:
            return False
        self.tags.append(tag)
        return True

    def remove_tag(self, tag: str) -> bool:
        """Remove a tag. Returns False if the passage did not have it."""
        if tag not in self.tags:
            return False
        self.tags.remove(tag)
        return True

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    def add_metadata(self, key: str, value: JSONValue) -> bool:
        """Insert a metadata entry unless the key exists.

        Returns:
            True if inserted, False if the key was already present (the
            existing value is kept)
        """
        if key in self.metadata:
            return False
        self.metadata[key] = value
        return True

    def set_metadata(self, key: str, value: JSONValue) -> None:
        self.metadata[key] = value

    def get_metadata(self, key: str) -> JSONValue:
        """Return a metadata value; raises KeyError if absent."""
        return self.metadata[key]

    def has_metadata(self, key: str) -> bool:
        return key in self.metadata

    def remove_metadata(self, key: str) -> bool:
        return self.metadata.pop(key, _MISSING) is not _MISSING

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def _require_name(self) -> None:
        if not self.name:
            raise EmptyPassageNameError()

    def _joined_tags(self) -> str:
        return ' '.join(self.tags)

    def to_twee(self) -> str:
        """Render as a Twee 3 passage (header line plus text).

        No trailing newline is added; callers separate passages.
        """
        self._require_name()

        twee = f":: {self.name}"

        if self.tags:
            twee += f" [{self._joined_tags()}]"

        if self.metadata:
            twee += " " + to_compact_json(self.metadata)

        return twee + f"\n{self.text}"

    def to_dict(self) -> Dict[str, Any]:
        """Return the Twine 2 JSON passage object."""
        self._require_name()
        return {
            'name': self.name,
            'tags': list(self.tags),
            'metadata': dict(self.metadata),
            'text': self.text,
        }

    def to_json(self) -> str:
        return to_compact_json(self.to_dict())

    def to_twine2_html(self, pid: int = 1) -> str:
        """Render as a Twine 2 <tw-passagedata> element."""
        self._require_name()

        html = f'<tw-passagedata pid="{pid}" name="{self.name}" tags="{self._joined_tags()}"'

        if 'position' in self.metadata:
            html += f' position="{self.metadata["position"]}"'

        if 'size' in self.metadata:
            html += f' size="{self.metadata["size"]}"'

        return html + f'>{self.text}</tw-passagedata>'

    def to_twine1_html(self) -> str:
        """Render as a Twine 1 tiddler <div>."""
        self._require_name()

        html = f'<div tiddler="{self.name}" tags="{self._joined_tags()}" modifier="extwee"'
        position = self.metadata.get('position', DEFAULT_TWINE1_POSITION)
        html += f' twine-position="{position}"'

        return html + f'>{self.text}</div>'

