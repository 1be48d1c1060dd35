"""
Tag colors: the tag name to color mapping Twine 2 shows in its editor.

Tag names are unique per story, so the mapping is a plain dict; assigning a
color to an existing tag replaces its color.
"""

from typing import Dict, Iterator, Mapping, Optional, Tuple

from .jsonutil import to_compact_json


class TagColors:
    def __init__(self, colors: Optional[Mapping[str, str]] = None) -> None:
        self._colors: Dict[str, str] = dict(colors) if colors else {}

    @property
    def count(self) -> int:
        return len(self._colors)

    def __len__(self) -> int:
        return len(self._colors)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(self._colors.items())

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TagColors):
            return self._colors == other._colors
        if isinstance(other, Mapping):
            return self._colors == dict(other)
        return NotImplemented

    def add_tag(self, tag: str, color: str) -> None:
        self._colors[tag] = color

    def has_tag(self, tag: str) -> bool:
        return tag in self._colors

    def get_color(self, tag: str) -> Optional[str]:
        return self._colors.get(tag)

    def remove_tag(self, tag: str) -> bool:
        return self._colors.pop(tag, None) is not None

    def clear(self) -> None:
        self._colors.clear()

    def to_dict(self) -> Dict[str, str]:
        return dict(self._colors)

    def to_twine2_html(self) -> str:
        """Render one <tw-tag> line per tag."""
        return ''.join(
            f'<tw-tag name="{tag}" color="{color}" />\n'
            for tag, color in self._colors.items()
        )

    def __str__(self) -> str:
        return to_compact_json(self._colors)
