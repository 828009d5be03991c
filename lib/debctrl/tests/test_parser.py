import io
import logging
import os.path

import pytest

from debctrl.errors import (
    ControlFileError,
    ControlSyntaxError,
    ParameterError,
    Status,
)
from debctrl.parser import (
    ControlDocument,
    Field,
    ParserContext,
    Section,
    ValueLine,
    ValueLineType,
    parse_control_file,
    parse_control_lines,
)

from typing import List


def find_test_file(filename):
    # type: (str) -> str
    """ find a test file that is located within the test suite """
    return os.path.join(os.path.dirname(__file__), filename)


def _lines(text):
    # type: (str) -> List[str]
    return text.splitlines(keepends=True)


def _parse(text, handler):
    # type: (str, object) -> ControlDocument
    return parse_control_lines(_lines(text), handler=handler)  # type: ignore


class TestValueLine:

    def test_types(self):
        # type: () -> None
        assert ValueLine().line_type is ValueLineType.EMPTY
        assert ValueLine('foo').line_type is ValueLineType.MERGE
        assert ValueLine('foo', ValueLineType.FIXED).line_type is ValueLineType.FIXED
        with pytest.raises(ParameterError):
            ValueLine('foo', ValueLineType.EMPTY)

    def test_convert_to_text(self):
        # type: () -> None
        assert ValueLine().convert_to_text() == ' .'
        assert ValueLine('text').convert_to_text() == ' text'
        assert ValueLine('literal', ValueLineType.FIXED).convert_to_text() == '  literal'


class TestField:

    def test_first_line_is_mandatory(self):
        # type: () -> None
        field = Field('Depends')
        assert len(field) == 1
        assert field.first_line is field.last_line
        assert field.first_line.line_type is ValueLineType.EMPTY
        assert field.convert_to_text() == 'Depends:\n'

    def test_append_prepend_delete(self):
        # type: () -> None
        first = ValueLine('first', ValueLineType.FIXED)
        field = Field('Description', first)
        middle = ValueLine('middle')
        last = ValueLine('last')
        field.append(middle)
        field.append(last)
        head = ValueLine('head')
        field.prepend(head)
        assert [v.text for v in field] == ['head', 'first', 'middle', 'last']
        assert middle.field is field

        field.delete(middle)
        assert middle.field is None
        assert [v.text for v in field] == ['head', 'first', 'last']

        field.delete(head)
        assert field.first_line is first
        field.delete(last)
        assert field.last_line is first
        assert list(field) == [first]

        # Lines can be re-added once they are no longer owned
        field.append(last)
        assert field.last_line is last

    def test_lines_have_a_single_owner(self):
        # type: () -> None
        line = ValueLine('shared')
        field = Field('A', line)
        with pytest.raises(ParameterError):
            Field('B', line)
        other = Field('C')
        with pytest.raises(ParameterError):
            other.delete(line)
        assert list(field) == [line]

    def test_convert_to_text(self):
        # type: () -> None
        field = Field('Description', ValueLine('short', ValueLineType.FIXED))
        field.append(ValueLine('one'))
        field.append(ValueLine('literal text', ValueLineType.FIXED))
        field.append(ValueLine())
        field.append(ValueLine('two'))
        assert field.convert_to_text() == ('Description: short\n'
                                           ' one\n'
                                           '  literal text\n'
                                           ' .\n'
                                           ' two\n')
        assert field.value == 'short\none\nliteral text\n\ntwo'

    def test_matches(self):
        # type: () -> None
        field = Field('Build-Depends')
        assert field.matches('build-depends')
        assert field.matches('BUILD-DEPENDS')
        assert not field.matches('Build-Depends-Indep')


class TestSection:

    def test_find(self):
        # type: () -> None
        section = Section()
        assert not section
        assert section.find('Source') is None
        source = Field('Source', ValueLine('foo', ValueLineType.FIXED))
        section.append(source)
        section.append(Field('Section', ValueLine('devel', ValueLineType.FIXED)))
        assert section.find('source') is source
        assert section['SOURCE'] is source
        assert 'section' in section
        assert 'Priority' not in section
        assert section.keys() == ['Source', 'Section']
        with pytest.raises(KeyError):
            section['Priority']

    def test_remove(self):
        # type: () -> None
        section = Section()
        section.append(Field('A'))
        section.append(Field('B'))
        section.append(Field('C'))
        removed = section.remove('b')
        assert removed.name == 'B'
        assert section.keys() == ['A', 'C']
        assert section.last_field.name == 'C'
        section.remove('C')
        assert section.last_field.name == 'A'
        with pytest.raises(KeyError):
            section.remove('C')


class TestControlDocument:

    def test_new_document_has_one_section(self):
        # type: () -> None
        document = ControlDocument()
        assert len(document) == 1
        assert not document.current_section
        assert document.line == 0
        assert document.status is Status.OK

    def test_single_field(self, recording_handler):
        # type: (object) -> None
        document = _parse("Name: value\n", recording_handler)
        assert len(document) == 1
        section = document.sections[0]
        assert section.keys() == ['Name']
        field = section['Name']
        assert len(field) == 1
        assert field.first_line.line_type is ValueLineType.FIXED
        assert field.first_line.text == 'value'
        assert field.first_line.context == ParserContext(None, 1)
        assert recording_handler.warnings == []

    def test_continuation_types(self, recording_handler):
        # type: (object) -> None
        document = _parse("Description: short\n"
                          " one\n"
                          "  literal text\n"
                          "\t\ttabbed\n"
                          " .\n"
                          "\ttwo\n",
                          recording_handler)
        field = document.sections[0]['Description']
        assert [(v.line_type, v.text) for v in field] == [
            (ValueLineType.FIXED, 'short'),
            (ValueLineType.MERGE, 'one'),
            (ValueLineType.FIXED, 'literal text'),
            (ValueLineType.FIXED, 'tabbed'),
            (ValueLineType.EMPTY, None),
            (ValueLineType.MERGE, 'two'),
        ]
        assert [v.context.line for v in field] == [1, 2, 3, 4, 5, 6]

    def test_round_trip(self):
        # type: () -> None
        text = "Description: short\n one\n two\n"
        document = parse_control_lines(_lines(text))
        assert document.sections[0]['Description'].convert_to_text() == text
        assert document.convert_to_text() == text

    def test_round_trip_file(self):
        # type: () -> None
        text = ("Source: foo\n"
                "Build-Depends: a,\n"
                "   b\n"
                "\n"
                "Package: foo\n"
                "Depends:\n"
                " bar\n"
                "Description: thing\n"
                " para\n"
                " .\n"
                "  fixed\n")
        document = parse_control_lines(_lines(text))
        assert document.convert_to_text() == text
        fd = io.BytesIO()
        document.dump(fd)
        assert fd.getvalue() == text.encode('utf-8')

    def test_empty_inline_value(self, recording_handler):
        # type: (object) -> None
        document = _parse("Depends:\n foo,\n bar\n", recording_handler)
        field = document.sections[0]['Depends']
        assert field.first_line.line_type is ValueLineType.EMPTY
        assert field.first_line.text is None
        assert field.value == '\nfoo,\nbar'

    def test_value_leading_whitespace_and_trailing_whitespace(self, recording_handler):
        # type: (object) -> None
        document = _parse("Source: \t foo \t\r\n", recording_handler)
        assert document.sections[0]['Source'].first_line.text == 'foo'

    def test_value_split_on_first_colon(self, recording_handler):
        # type: (object) -> None
        document = _parse("Homepage: https://example.org:8080/\n", recording_handler)
        assert document.sections[0]['Homepage'].first_line.text == 'https://example.org:8080/'

    def test_sections(self, recording_handler):
        # type: (object) -> None
        document = _parse("A: 1\n"
                          "\n"
                          "B: 2\n"
                          "\n"
                          "\n"
                          "\n"
                          "C: 3\n",
                          recording_handler)
        assert [s.keys() for s in document] == [['A'], ['B'], ['C']]
        assert len(recording_handler.warnings) == 2
        assert [ctx.line for ctx, _ in recording_handler.warnings] == [5, 6]

    def test_leading_and_trailing_blank_lines(self, recording_handler):
        # type: (object) -> None
        document = _parse("\nA: 1\n\n", recording_handler)
        # The trailing blank line opens a (still empty) section
        assert len(document) == 2
        assert document.sections[0].keys() == ['A']
        assert not document.sections[1]
        assert len(recording_handler.warnings) == 1
        assert document.convert_to_text() == "A: 1\n"

    def test_comments(self, recording_handler):
        # type: (object) -> None
        document = _parse("# comment\n"
                          "A: 1\n"
                          "# comment inside a field\n"
                          " continued\n",
                          recording_handler)
        field = document.sections[0]['A']
        assert [v.text for v in field] == ['1', 'continued']
        # Comment lines still count as lines
        assert field.last_line.context.line == 4
        assert document.line == 4

    def test_duplicate_fields_are_merged(self, recording_handler):
        # type: (object) -> None
        document = _parse("Source: a\n"
                          "Section: devel\n"
                          "source: b\n",
                          recording_handler)
        section = document.sections[0]
        assert section.keys() == ['Source', 'Section']
        assert [v.text for v in section['Source']] == ['a', 'b']
        assert len(recording_handler.warnings) == 1
        context, message = recording_handler.warnings[0]
        assert context.line == 3
        assert 'Duplicate field' in message

    def test_same_field_in_different_sections(self, recording_handler):
        # type: (object) -> None
        document = _parse("Package: a\n\nPackage: b\n", recording_handler)
        assert [s['Package'].value for s in document] == ['a', 'b']
        assert recording_handler.warnings == []

    def test_invalid_field_name_warns(self, recording_handler):
        # type: (object) -> None
        document = _parse("-Foo: bar\n", recording_handler)
        assert document.sections[0].keys() == ['-Foo']
        assert len(recording_handler.warnings) == 1
        assert 'Invalid field name' in recording_handler.warnings[0][1]

    def test_missing_colon(self, recording_handler):
        # type: (object) -> None
        with pytest.raises(ControlSyntaxError) as excinfo:
            _parse("Source: foo\nno colon here\n", recording_handler)
        assert excinfo.value.context == ParserContext(None, 2)
        assert excinfo.value.status is Status.SYNTAX_ERROR
        assert len(recording_handler.criticals) == 1
        assert 'pseudoheader' in recording_handler.criticals[0][1]

    def test_reserved_full_stop(self, recording_handler):
        # type: (object) -> None
        document = ControlDocument(handler=recording_handler)
        document.consume_line("Description: foo\n")
        with pytest.raises(ControlSyntaxError):
            document.consume_line(" .foo\n")
        assert document.status is Status.SYNTAX_ERROR
        assert "reserved" in recording_handler.criticals[0][1]
        # The field keeps what was read before the error
        assert len(document.sections[0]['Description']) == 1

    def test_continuation_without_field(self, recording_handler):
        # type: (object) -> None
        document = ControlDocument(handler=recording_handler)
        document.consume_line("A: 1\n")
        document.consume_line("\n")
        with pytest.raises(ControlSyntaxError) as excinfo:
            document.consume_line(" orphan\n")
        assert excinfo.value.context.line == 3
        assert len(document) == 2
        assert document.sections[0].keys() == ['A']
        assert len(recording_handler.criticals) == 1
        # Reading does not resume after a fatal error
        with pytest.raises(ParameterError):
            document.consume_line("B: 2\n")

    def test_continuation_at_start(self, recording_handler):
        # type: (object) -> None
        with pytest.raises(ControlSyntaxError):
            _parse(" foo\n", recording_handler)

    def test_bytes_lines(self):
        # type: () -> None
        document = parse_control_lines(["Maintainer: J\xf6rg <j@example.org>\n".encode('utf-8')])
        assert document.sections[0]['Maintainer'].value == 'J\xf6rg <j@example.org>'

    def test_undecodable_bytes_line(self, recording_handler):
        # type: (object) -> None
        document = ControlDocument(handler=recording_handler)
        document.consume_line(b"Source: foo\n")
        with pytest.raises(ControlSyntaxError) as excinfo:
            document.consume_line(b"A: \xff\n")
        assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)
        assert excinfo.value.context == ParserContext(None, 2)
        assert document.status is Status.SYNTAX_ERROR
        assert len(recording_handler.criticals) == 1
        assert recording_handler.criticals[0][1].startswith("Line is not valid utf-8")
        assert document.sections[0].keys() == ['Source']
        with pytest.raises(ParameterError):
            document.consume_line(b"B: 2\n")

    def test_bytes_lines_with_encoding(self):
        # type: () -> None
        document = parse_control_lines([b"Maintainer: J\xf6rg\n"], encoding='latin-1')
        assert document.sections[0]['Maintainer'].value == 'J\xf6rg'

    def test_none_line(self):
        # type: () -> None
        with pytest.raises(ParameterError):
            ControlDocument().consume_line(None)  # type: ignore

    def test_default_handler_logs(self, caplog):
        # type: (pytest.LogCaptureFixture) -> None
        with caplog.at_level(logging.WARNING):
            parse_control_lines(["A: 1\n", "a: 2\n"], path='debian/control')
        assert caplog.record_tuples == [(
            "debctrl.errors",
            logging.WARNING,
            "Duplicate field names are not permitted (Sec. 5.1), contents will be"
            " merged together at debian/control line 2",
        )]


class TestReadFile:

    def test_read_file(self, recording_handler):
        # type: (object) -> None
        path = find_test_file('test_control')
        document = parse_control_file(path, handler=recording_handler)
        assert len(document) == 3
        source, binary, doc = document.sections
        assert source['Source'].value == 'hello'
        assert source['Source'].first_line.context == ParserContext(path, 2)
        build_depends = source['Build-Depends']
        assert [v.line_type for v in build_depends] == [ValueLineType.FIXED,
                                                          ValueLineType.FIXED]
        assert build_depends.last_line.text == '             libfoo-dev (>= 1.2)'
        description = binary['Description']
        assert description.first_line.text == 'example package based on GNU hello'
        assert [v.line_type for v in description][-3:] == [ValueLineType.MERGE,
                                                            ValueLineType.FIXED,
                                                            ValueLineType.FIXED]
        assert description.last_line.text == ' Hello, world!'
        assert doc['Section'].value == 'doc'
        # One warning for the doubled blank line before the last paragraph
        assert [ctx.line for ctx, _ in recording_handler.warnings] == [26]

    def test_missing_file(self, tmp_path, recording_handler):
        # type: (object, object) -> None
        path = str(tmp_path / 'does-not-exist')
        document = ControlDocument(handler=recording_handler)
        with pytest.raises(ControlFileError) as excinfo:
            document.read_file(path)
        assert excinfo.value.filename == path
        assert excinfo.value.strerror
        assert excinfo.value.status is Status.FILE_ERROR
        assert isinstance(excinfo.value, OSError)
        assert recording_handler.criticals == [
            (None, "Can't open file '{path}': {error}".format(
                path=path, error=excinfo.value.strerror)),
        ]
        assert document.status is Status.FILE_ERROR

    def test_syntax_error_in_file(self, tmp_path, recording_handler):
        # type: (object, object) -> None
        path = tmp_path / 'control'
        path.write_text("Source: foo\n\nPackage: foo\nbroken\nPackage: bar\n")
        with pytest.raises(ControlSyntaxError) as excinfo:
            parse_control_file(str(path), handler=recording_handler)
        assert excinfo.value.context == ParserContext(str(path), 4)
        assert str(excinfo.value).endswith("at {path} line 4".format(path=path))

    def test_undecodable_file(self, tmp_path, recording_handler):
        # type: (object, object) -> None
        path = tmp_path / 'control'
        path.write_bytes(b"Source: foo\nMaintainer: J\xf6rg\nSection: devel\n")
        document = ControlDocument(handler=recording_handler)
        with pytest.raises(ControlSyntaxError) as excinfo:
            document.read_file(str(path))
        assert excinfo.value.context == ParserContext(str(path), 2)
        assert document.status is Status.SYNTAX_ERROR
        assert [ctx for ctx, _ in recording_handler.criticals] == [ParserContext(str(path), 2)]
        assert document.sections[0].keys() == ['Source']

    def test_file_encoding(self, tmp_path):
        # type: (object) -> None
        path = tmp_path / 'control'
        path.write_bytes(b"Maintainer: J\xf6rg\r\n")
        document = parse_control_file(str(path), encoding='latin-1')
        assert document.sections[0]['Maintainer'].value == 'J\xf6rg'

    def test_single_file_per_document(self, tmp_path):
        # type: (object) -> None
        path = tmp_path / 'control'
        path.write_text("Source: foo\n")
        document = parse_control_file(str(path))
        with pytest.raises(ParameterError):
            document.read_file(str(path))
