#!/usr/bin/env python3
"""
Tests for twinekit/twee.py

Tests the Twee 3 parser (passage headers, bodies, error cases) and the
Twee document emitter.
"""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from twinekit import twee
from twinekit.babel import generate_ifid, is_valid_ifid
from twinekit.errors import InvalidPassageError, NoPassagesError
from twinekit.passage import Passage
from twinekit.story import Story

NO_PASSAGES = 'ERROR: The document does not contain any passages.'
INVALID_PASSAGE = 'ERROR: The document contains invalid passage.'


# =============================================================================
# PARSING
# =============================================================================

class TestParseErrors:
    """Documents that cannot hold passages."""

    def test_empty_document(self):
        with pytest.raises(NoPassagesError, match=NO_PASSAGES):
            twee.parse('')

    def test_no_colons(self):
        with pytest.raises(NoPassagesError, match=NO_PASSAGES):
            twee.parse('This is just text without any colons')

    def test_colon_at_end(self):
        with pytest.raises(NoPassagesError, match=NO_PASSAGES):
            twee.parse('Text ending with:')

    def test_double_colon_at_end(self):
        with pytest.raises(NoPassagesError, match=NO_PASSAGES):
            twee.parse('Text ending with::')

    def test_header_without_body(self):
        with pytest.raises(InvalidPassageError, match=INVALID_PASSAGE):
            twee.parse(':: PassageName\n')

    def test_single_colon_is_not_a_passage(self):
        """A lone colon yields an empty story rather than an error."""
        story = twee.parse('Time: 10:30 and more text')
        assert story.count == 0


class TestParseHeaders:
    """Passage names, tags and metadata."""

    def test_name(self):
        story = twee.parse(':: Test\nThis is a passage.')
        assert story.passages[0].name == 'Test'

    def test_name_is_stripped(self):
        story = twee.parse('::   Passage With Spaces   \nContent')
        assert story.passages[0].name == 'Passage With Spaces'

    def test_empty_name(self):
        story = twee.parse('::\nContent')
        assert story.passages[0].name == ''
        assert story.passages[0].text == 'Content'

    def test_special_characters_in_name(self):
        story = twee.parse(':: Passage@#$%\nContent with special characters!')
        assert story.passages[0].name == 'Passage@#$%'
        assert story.passages[0].text == 'Content with special characters!'

    def test_tags(self):
        story = twee.parse(':: Test [tag1 tag2]\nThis is a passage.')
        assert story.passages[0].name == 'Test'
        assert story.passages[0].tags == ['tag1', 'tag2']

    def test_empty_brackets_give_one_empty_tag(self):
        story = twee.parse(':: PassageName []\nContent')
        assert story.passages[0].tags == ['']

    def test_no_brackets_no_tags(self):
        story = twee.parse(':: PassageName\nContent')
        assert story.passages[0].tags == []

    def test_metadata(self):
        story = twee.parse(':: Test {"tag1": "value1", "tag2": "value2"}\nThis is a passage.')
        assert story.passages[0].metadata == {'tag1': 'value1', 'tag2': 'value2'}

    def test_empty_metadata(self):
        story = twee.parse(':: PassageName {}\nContent')
        assert story.passages[0].metadata == {}
        assert story.diagnostics == []

    def test_tags_and_metadata(self):
        story = twee.parse(':: Test [a b] {"position":"600,400","size":"100,200"}\nBody')
        passage = story.passages[0]
        assert passage.tags == ['a', 'b']
        assert passage.metadata == {'position': '600,400', 'size': '100,200'}
        assert passage.text == 'Body'

    def test_bad_metadata_is_a_warning(self):
        """Malformed metadata is reported and dropped, the passage survives."""
        story = twee.parse(':: Test {"position": }\nBody\n\n:: Next\nMore')
        assert story.count == 2
        assert story.passages[0].metadata == {}
        assert story.passages[0].text == 'Body'
        assert len(story.diagnostics) == 1
        assert 'Test' in story.diagnostics[0]

    def test_unterminated_metadata_is_a_warning(self):
        story = twee.parse(':: Test {\nBody')
        assert story.passages[0].metadata == {}
        assert len(story.diagnostics) == 1

    @pytest.mark.parametrize('literal', ['NaN', 'Infinity', '-Infinity', '1e400'])
    def test_non_finite_metadata_is_a_warning(self, literal):
        """Only strict JSON is accepted, so metadata always serializes back."""
        story = twee.parse(f':: A {{"x": {literal}}}\nBody')
        passage = story.passages[0]
        assert passage.metadata == {}
        assert passage.text == 'Body'
        assert len(story.diagnostics) == 1
        assert "'A'" in story.diagnostics[0]
        json.loads(passage.to_json())


class TestParseBodies:
    """Passage text and passage boundaries."""

    def test_end_to_end(self):
        story = twee.parse(':: A\nHello\n\n:: B\nWorld')
        assert [p.name for p in story.passages] == ['A', 'B']
        assert [p.text for p in story.passages] == ['Hello', 'World']

    def test_multiline_body(self):
        story = twee.parse(':: PassageName\nLine 1\nLine 2\nLine 3')
        assert story.passages[0].text == 'Line 1\nLine 2\nLine 3'

    def test_single_colons_in_body(self):
        story = twee.parse(':: PassageName\nContent with: colons in it\nMore content: here')
        assert story.passages[0].text == 'Content with: colons in it\nMore content: here'

    def test_trailing_newlines_stripped(self):
        story = twee.parse(':: A\nHello\n\n\n\n')
        assert story.passages[0].text == 'Hello'

    def test_leading_blank_line_kept(self):
        story = twee.parse(':: Test\nThis is a passage.\n\n:: Another\n\nThis is another passage.')
        assert story.count == 2
        assert story.passages[1].text == '\nThis is another passage.'

    def test_mixed_headers(self):
        source = (
            ':: Passage1\nContent 1\n'
            ':: Passage2 [tag]\nContent 2\n'
            ':: Passage3 {"meta": "data"}\nContent 3\n'
            ':: Passage4 [tag1 tag2] {"key": "value"}\nContent 4'
        )
        story = twee.parse(source)
        assert [p.name for p in story.passages] == ['Passage1', 'Passage2', 'Passage3', 'Passage4']
        assert story.passages[1].tags == ['tag']
        assert story.passages[2].metadata == {'meta': 'data'}
        assert story.passages[3].metadata == {'key': 'value'}
        assert story.passages[3].text == 'Content 4'

    def test_text_before_first_passage_ignored(self):
        story = twee.parse('Some preamble\n:: Start\nBody')
        assert story.count == 1
        assert story.passages[0].name == 'Start'

    def test_multibyte_text(self):
        story = twee.parse(':: Café [été]\nNaïve résumé 日本語\n\n:: Ünïcode\n✓')
        assert story.passages[0].name == 'Café'
        assert story.passages[0].tags == ['été']
        assert story.passages[0].text == 'Naïve résumé 日本語'
        assert story.passages[1].text == '✓'


class TestParseSpecialPassages:
    """StoryData/StoryTitle/Start are kept as plain passages."""

    def test_story_data_not_applied(self):
        ifid = generate_ifid()
        source = f':: StoryTitle\nMy Story\n\n:: StoryData\n{{"ifid": "{ifid}"}}\n\n:: Start\nGo'
        story = twee.parse(source)

        assert [p.name for p in story.passages] == ['StoryTitle', 'StoryData', 'Start']
        assert story.name == 'Untitled'
        assert story.ifid == ''
        assert story.start == ''


class TestRoundTrip:
    """Passage.to_twee() output parses back to the same passage."""

    def test_single_passage(self):
        original = Passage('Room', 'A dark room.\nExits: north.', tags=['dark', 'indoor'],
                           metadata={'position': '100,200', 'size': '100,100'})
        parsed = twee.parse(original.to_twee()).passages[0]

        assert parsed.name == original.name
        assert parsed.tags == original.tags
        assert parsed.metadata == original.metadata
        assert parsed.text == original.text


# =============================================================================
# EMITTING
# =============================================================================

class TestCreate:
    """Tests for twee.create()."""

    def test_generates_story_data(self):
        story = Story()
        story.ifid = generate_ifid()
        story.format = 'Harlowe'
        story.format_version = '3.3.9'
        story.start = 'Start'
        story.add_passage(Passage('Start', 'Go'))

        output = twee.create(story)

        assert output.startswith(':: StoryData\n{\n  "ifid": "')
        assert f'"ifid": "{story.ifid}"' in output
        assert ':: Start\nGo\n\n' in output
        assert ':: StoryTitle' not in output

    def test_story_data_json(self):
        story = Story()
        story.ifid = generate_ifid()
        header, _, rest = twee.create(story).partition('\n')
        data = json.loads(rest.strip())
        assert header == ':: StoryData'
        assert data == {'ifid': story.ifid, 'zoom': 1}

    def test_invalid_ifid_regenerated(self):
        story = Story()
        story.ifid = '12345'
        output = twee.create(story)
        assert is_valid_ifid(story.ifid)
        assert story.ifid in output
        assert story.diagnostics

    def test_existing_story_data_written_verbatim(self):
        parsed = twee.parse(':: StoryData\n{"ifid": "X"}\n\n:: A\nHello')
        output = twee.create(parsed)
        assert output == ':: StoryData\n{"ifid": "X"}\n\n:: A\nHello\n\n'

    def test_story_data_moves_first(self):
        parsed = twee.parse(':: A\nHello\n\n:: StoryData\n{"ifid": "X"}')
        output = twee.create(parsed)
        assert output.index(':: StoryData') < output.index(':: A')
        assert output.count(':: StoryData') == 1

    def test_parsed_document_round_trips(self):
        source = (
            ':: StoryTitle\nMy Story\n\n'
            ':: StoryData\n{"ifid": "D674C58C-DEFA-4F70-B7A2-27742230C0FC"}\n\n'
            ':: Start [intro] {"position":"100,100"}\nWelcome.\n\n'
            ':: End\nThe end.\n\n'
        )
        first = twee.parse(source)
        second = twee.parse(twee.create(first))

        assert [p.name for p in second.passages] == ['StoryData', 'StoryTitle', 'Start', 'End']
        for name in ('StoryTitle', 'Start', 'End'):
            assert second.get_passage_by_name(name).text == first.get_passage_by_name(name).text
        assert second.get_passage_by_name('Start').metadata == {'position': '100,100'}


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
