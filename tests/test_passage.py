#!/usr/bin/env python3
"""
Tests for twinekit/passage.py

Covers tag/metadata set semantics and the per-format fragment serializers.
"""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from twinekit.errors import EmptyPassageNameError
from twinekit.passage import Passage


class TestDefaults:
    """Tests for a freshly constructed Passage."""

    def test_default_name_and_text(self):
        passage = Passage()
        assert passage.name == 'Untitled Passage'
        assert passage.text == ''
        assert passage.tags == []
        assert passage.metadata == {}

    def test_duplicate_constructor_tags_collapse(self):
        passage = Passage('A', tags=['one', 'two', 'one'])
        assert passage.tags == ['one', 'two']


class TestTags:
    """Tests for add_tag/remove_tag/has_tag."""

    def test_add_new_tag(self):
        passage = Passage('A')
        assert passage.add_tag('tag1') is True
        assert passage.has_tag('tag1')

    def test_add_existing_tag(self):
        passage = Passage('A', tags=['tag1'])
        assert passage.add_tag('tag1') is False
        assert passage.tags == ['tag1']

    def test_remove_tag(self):
        passage = Passage('A', tags=['tag1'])
        assert passage.remove_tag('tag1') is True
        assert not passage.has_tag('tag1')

    def test_remove_missing_tag(self):
        assert Passage('A').remove_tag('tag1') is False

    def test_insertion_order_kept(self):
        passage = Passage('A')
        for tag in ('zeta', 'alpha', 'mid'):
            passage.add_tag(tag)
        assert passage.tags == ['zeta', 'alpha', 'mid']


class TestMetadata:
    """Tests for the metadata accessors."""

    def test_add_metadata_inserts(self):
        passage = Passage('A')
        assert passage.add_metadata('position', '100,100') is True
        assert passage.get_metadata('position') == '100,100'

    def test_add_metadata_does_not_overwrite(self):
        passage = Passage('A', metadata={'position': '1,1'})
        assert passage.add_metadata('position', '2,2') is False
        assert passage.get_metadata('position') == '1,1'

    def test_set_metadata_overwrites(self):
        passage = Passage('A', metadata={'position': '1,1'})
        passage.set_metadata('position', '2,2')
        assert passage.get_metadata('position') == '2,2'

    def test_get_missing_metadata_raises(self):
        with pytest.raises(KeyError):
            Passage('A').get_metadata('missing')

    def test_has_and_remove_metadata(self):
        passage = Passage('A', metadata={'size': None})
        assert passage.has_metadata('size')
        assert passage.remove_metadata('size') is True
        assert passage.remove_metadata('size') is False
        assert not passage.has_metadata('size')


class TestToTwee:
    """Tests for Passage.to_twee()."""

    def test_name_and_text(self):
        assert Passage('Start', 'Hello').to_twee() == ':: Start\nHello'

    def test_tags(self):
        passage = Passage('Start', 'Hello', tags=['tag1', 'tag2'])
        assert passage.to_twee() == ':: Start [tag1 tag2]\nHello'

    def test_metadata_is_compact(self):
        passage = Passage('Start', 'Hello', metadata={'position': '600,400', 'size': '100,200'})
        assert passage.to_twee() == ':: Start {"position":"600,400","size":"100,200"}\nHello'

    def test_tags_then_metadata(self):
        passage = Passage('Start', 'Hello', tags=['a'], metadata={'position': '1,1'})
        assert passage.to_twee() == ':: Start [a] {"position":"1,1"}\nHello'

    def test_empty_name_raises(self):
        with pytest.raises(EmptyPassageNameError, match='Passage name cannot be empty.'):
            Passage('', 'text').to_twee()


class TestToJson:
    """Tests for Passage.to_json()/to_dict()."""

    def test_key_order_and_compact(self):
        passage = Passage('Start', 'Hello', tags=['a', 'b'], metadata={'position': '1,1'})
        assert passage.to_json() == (
            '{"name":"Start","tags":["a","b"],"metadata":{"position":"1,1"},"text":"Hello"}'
        )

    def test_non_ascii_is_kept(self):
        data = json.loads(Passage('Café', 'naïve').to_json())
        assert data['name'] == 'Café'
        assert data['text'] == 'naïve'

    def test_empty_name_raises(self):
        with pytest.raises(EmptyPassageNameError):
            Passage('').to_dict()


class TestToTwine2HTML:
    """Tests for Passage.to_twine2_html()."""

    def test_default_pid(self):
        html = Passage('Start', 'Hello', tags=['tag1', 'tag2']).to_twine2_html()
        assert html == '<tw-passagedata pid="1" name="Start" tags="tag1 tag2">Hello</tw-passagedata>'

    def test_position_and_size(self):
        passage = Passage('Start', 'Hello', metadata={'size': '100,200', 'position': '600,400'})
        assert passage.to_twine2_html(3) == (
            '<tw-passagedata pid="3" name="Start" tags="" position="600,400" size="100,200">'
            'Hello</tw-passagedata>'
        )

    def test_text_not_escaped(self):
        html = Passage('A', '<b>"bold" & more</b>').to_twine2_html()
        assert '>' + '<b>"bold" & more</b>' + '</tw-passagedata>' in html

    def test_empty_name_raises(self):
        with pytest.raises(EmptyPassageNameError):
            Passage('').to_twine2_html()


class TestToTwine1HTML:
    """Tests for Passage.to_twine1_html()."""

    def test_default_position(self):
        assert Passage('Start', 'Hello').to_twine1_html() == (
            '<div tiddler="Start" tags="" modifier="extwee" twine-position="10,10">Hello</div>'
        )

    def test_position_from_metadata(self):
        passage = Passage('Start', 'Hello', tags=['a'], metadata={'position': '50,60'})
        assert passage.to_twine1_html() == (
            '<div tiddler="Start" tags="a" modifier="extwee" twine-position="50,60">Hello</div>'
        )

    def test_empty_name_raises(self):
        with pytest.raises(EmptyPassageNameError):
            Passage('').to_twine1_html()


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
