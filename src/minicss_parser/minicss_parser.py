"""
Minimal CSS parser for a restricted subset of stylesheets.

This module provides a hand-written scanner and recursive-descent parser for
rules of the form ``selector { name: value; ... }``. Scanning and parsing are
fused: every primitive works on the raw input and an explicit position. The
first error stops the parse and is reported through a diagnostic that points at
the offending character via the 'error_found' event.
"""

import logging
from enum import Enum
from typing import (
    Callable,
    Dict,
    Final,
    FrozenSet,
    Iterator,
    List,
    NoReturn,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Type,
    TypedDict,
)

# === Constants ===


class Constants:
    """Centralized character classes and static text used by the scanner."""

    WHITESPACE: Final[FrozenSet[str]] = frozenset(" \t\n\r\x0b\x0c")
    IDENTIFIER_CHARS: Final[FrozenSet[str]] = frozenset(
        "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
    )
    CARET_MARKER: Final[str] = "^ Near here."
    INDENT: Final[str] = "    "


class ParserEvent:
    """Names of the events emitted by :class:`CSSParser`."""

    RULE_ADDED: Final[str] = "rule_added"
    ERROR_FOUND: Final[str] = "error_found"
    PARSE_COMPLETED: Final[str] = "parse_completed"


# === Protocols ===


class ErrorHandlerProtocol(Protocol):
    """Protocol for handling errors."""

    def dispatch_error(self, error: str) -> None:
        """
        Dispatch an error message to registered handlers.

        Args:
            error: The rendered diagnostic to dispatch.
        """
        ...


# === Errors ===


class CSSParseError(Exception):
    """Base class for every failure raised while parsing a stylesheet."""

    def __init__(self, diagnostic: "Diagnostic") -> None:
        """
        Initialize the error from the diagnostic built at the failure site.

        Args:
            diagnostic: Location and message of the failure.
        """
        super().__init__(diagnostic.render())
        self.diagnostic: Diagnostic = diagnostic

    @property
    def position(self) -> int:
        """Offset of the offending character in the input."""
        return self.diagnostic.offset

    @property
    def line(self) -> int:
        return self.diagnostic.line

    @property
    def column(self) -> int:
        return self.diagnostic.column


class NoSuchSyntaxError(CSSParseError):
    """An expected single-character token was not found."""


class InvalidIdentifierError(CSSParseError):
    """An identifier was required but no letters were available."""


class UnknownPropertyError(CSSParseError):
    """A declaration name is not one of the recognized properties."""

    def __init__(self, diagnostic: "Diagnostic", name: str) -> None:
        super().__init__(diagnostic)
        self.name: str = name


# === Core Data Structures ===


class TextSpan:
    """A view of ``source[start:end]`` that stores offsets instead of a copy."""

    def __init__(self, source: str, start: int, end: int) -> None:
        """
        Initialize the span.

        Args:
            source: The full input the span points into.
            start: Offset of the first character.
            end: Offset one past the last character.
        """
        self._source: str = source
        self.start: int = start
        self.end: int = end

    @property
    def text(self) -> str:
        """The characters covered by the span."""
        return self._source[self.start : self.end]

    def __len__(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"TextSpan({self.text!r}, {self.start}, {self.end})"

    def __eq__(self, other: object) -> bool:
        """
        Compare by text with another span or with a plain string.

        Args:
            other: A TextSpan or str.

        Returns:
            True if both cover the same characters, else False.
        """
        if isinstance(other, TextSpan):
            return self.text == other.text
        if isinstance(other, str):
            return self.text == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.text)


class PropertyName(Enum):
    """Closed set of declaration names the grammar accepts."""

    UNKNOWN = "unknown"
    COLOR = "color"
    BACKGROUND = "background"

    @classmethod
    def known(cls) -> List["PropertyName"]:
        """
        Return the recognized property names, leaving out the placeholder.

        Returns:
            List[PropertyName]: Every member except UNKNOWN, in definition order.
        """
        return [member for member in cls if member is not cls.UNKNOWN]

    @classmethod
    def from_identifier(cls, name: str) -> Optional["PropertyName"]:
        """
        Match an identifier against the recognized property names.

        Args:
            name: The declaration name as written in the input.

        Returns:
            Optional[PropertyName]: The matching member, or None if the name is
            not recognized. UNKNOWN is never returned.
        """
        for member in cls.known():
            if member.value == name:
                return member
        return None


class CSSPropertyDict(TypedDict):
    """Typed dictionary for representing a CSS property."""

    name: str
    value: str


class CSSProperty:
    """A single recognized declaration: its kind and its value."""

    def __init__(self, kind: PropertyName, value: TextSpan) -> None:
        """
        Initialize a property.

        Args:
            kind: The recognized property name.
            value: The declaration value as a view into the input.
        """
        self.kind: PropertyName = kind
        self.value: TextSpan = value

    @property
    def name(self) -> str:
        """The property name as written in the stylesheet (e.g., 'color')."""
        return self.kind.value

    def __repr__(self) -> str:
        """Return a string representation of the property."""
        return f"{self.name}: {self.value}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CSSProperty):
            return False
        return self.kind is other.kind and self.value == other.value

    def __hash__(self) -> int:
        return hash((self.kind, self.value.text))

    def to_dict(self) -> CSSPropertyDict:
        """Convert the property to a dictionary."""
        return {"name": self.name, "value": self.value.text}


class CSSRule:
    """A selector with its ordered declarations."""

    def __init__(self, selector: TextSpan, properties: Sequence[CSSProperty]) -> None:
        """
        Initialize a rule.

        Args:
            selector: The selector identifier as a view into the input.
            properties: The declarations in source order.
        """
        self.selector: TextSpan = selector
        self.properties: Tuple[CSSProperty, ...] = tuple(properties)

    def __repr__(self) -> str:
        """Return a string representation of the rule."""
        props = "\n\t".join(str(p) for p in self.properties)
        return f"{self.selector} {{\n\t{props}\n}}"

    def __hash__(self) -> int:
        return hash((self.selector.text, self.properties))

    def __eq__(self, other: object) -> bool:
        """
        Compare this rule with another for equality.

        Args:
            other: Another object to compare with.

        Returns:
            True if the rules have the same selector and properties, else False.
        """
        if not isinstance(other, CSSRule):
            return False
        return self.selector == other.selector and self.properties == other.properties


class CSSSheet:
    """The parsed document: rules in source order."""

    def __init__(self, rules: Sequence[CSSRule] = ()) -> None:
        self.rules: Tuple[CSSRule, ...] = tuple(rules)

    def __iter__(self) -> Iterator[CSSRule]:
        return iter(self.rules)

    def __len__(self) -> int:
        return len(self.rules)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CSSSheet):
            return False
        return self.rules == other.rules

    def __hash__(self) -> int:
        return hash(self.rules)

    def __repr__(self) -> str:
        return f"CSSSheet({len(self.rules)} rules)"


# === Diagnostics ===


class Diagnostic:
    """Location of a parse failure with the text needed to point at it."""

    def __init__(
        self,
        message: str,
        offset: int,
        line: int,
        column: int,
        line_start: int,
        line_end: int,
        source_line: str,
    ) -> None:
        """
        Initialize a diagnostic. Use :meth:`locate` to build one from an input.

        Args:
            message: Human-readable description of the failure.
            offset: Offset of the offending character.
            line: 1-based line number containing the offset.
            column: 0-based column of the offset within its line.
            line_start: Offset of the first character of the line.
            line_end: Offset of the newline ending the line, or the input length.
            source_line: Text of the line, without its line terminator.
        """
        self.message: str = message
        self.offset: int = offset
        self.line: int = line
        self.column: int = column
        self.line_start: int = line_start
        self.line_end: int = line_end
        self.source_line: str = source_line

    @classmethod
    def locate(cls, source: str, offset: int, message: str) -> "Diagnostic":
        """
        Compute line, column and line text for an offset by scanning the input
        from the start.

        The computation depends only on ``source`` and ``offset``, never on
        positions tracked while parsing. An offset on a newline belongs to the
        line that newline terminates; an offset at or past the end of input
        points just after the last character.

        Args:
            source: The complete input.
            offset: Offset of the offending character.
            message: Description of the failure.

        Returns:
            Diagnostic: The located diagnostic.
        """
        offset = max(0, min(offset, len(source)))
        line = 1
        line_start = 0
        index = 0
        while index < offset:
            if source[index] == "\n":
                line += 1
                line_start = index + 1
            index += 1

        line_end = index
        while line_end < len(source) and source[line_end] != "\n":
            line_end += 1

        source_line = source[line_start:line_end]
        if source_line.endswith("\r"):
            source_line = source_line[:-1]
        return cls(
            message=message,
            offset=offset,
            line=line,
            column=offset - line_start,
            line_start=line_start,
            line_end=line_end,
            source_line=source_line,
        )

    def render(self) -> str:
        """
        Render the diagnostic as a header, the source line and a caret line.

        Returns:
            str: The formatted diagnostic.
        """
        header = f"Error at line {self.line}, column {self.column}. {self.message}"
        caret = " " * self.column + Constants.CARET_MARKER
        return f"{header}\n\n{self.source_line}\n{caret}"

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return (
            f"Diagnostic(line={self.line}, column={self.column}, "
            f"message={self.message!r})"
        )


# === Scanner ===


class CSSScanner:
    """Scanning primitives over a fully materialized input."""

    def __init__(
        self, source: str, error_handler: Optional[ErrorHandlerProtocol] = None
    ) -> None:
        """
        Initialize the scanner.

        Args:
            source: The complete stylesheet text.
            error_handler: Receives the rendered diagnostic of a failure, by default None.
        """
        self.source: str = source
        self._error_handler: Optional[ErrorHandlerProtocol] = error_handler
        self._logger: logging.Logger = logging.getLogger(__name__)

    def skip_whitespace(self, pos: int) -> int:
        """
        Advance past consecutive whitespace characters.

        Args:
            pos: Position to start from.

        Returns:
            int: The first non-whitespace position, possibly the input length.
        """
        source = self.source
        while pos < len(source) and source[pos] in Constants.WHITESPACE:
            pos += 1
        return pos

    def expect_char(self, pos: int, char: str) -> int:
        """
        Match a single syntax character.

        Args:
            pos: Position where the character is expected.
            char: The expected character (e.g., '{').

        Returns:
            int: The position just past the character.

        Raises:
            NoSuchSyntaxError: If the input ends or holds another character.
        """
        if pos < len(self.source) and self.source[pos] == char:
            return pos + 1
        self._fail(NoSuchSyntaxError, pos, f"Expected syntax: '{char}'.")

    def parse_identifier(self, pos: int) -> Tuple[TextSpan, int]:
        """
        Consume the longest run of letters starting at ``pos``.

        Args:
            pos: Position where the identifier starts.

        Returns:
            Tuple[TextSpan, int]: The identifier and the position after it.

        Raises:
            InvalidIdentifierError: If no letter is found at ``pos``.
        """
        source = self.source
        end = pos
        while end < len(source) and source[end] in Constants.IDENTIFIER_CHARS:
            end += 1
        if end == pos:
            self._fail(InvalidIdentifierError, pos, "Expected valid identifier.")
        return TextSpan(source, pos, end), end

    def _fail(
        self, error_class: Type[CSSParseError], pos: int, message: str
    ) -> NoReturn:
        """Emit the diagnostic for ``pos`` and raise ``error_class``."""
        diagnostic = Diagnostic.locate(self.source, pos, message)
        self._emit(diagnostic)
        raise error_class(diagnostic)

    def _emit(self, diagnostic: Diagnostic) -> None:
        self._logger.debug(
            f"Parse failed at offset {diagnostic.offset}: {diagnostic.message}"
        )
        if self._error_handler is not None:
            self._error_handler.dispatch_error(diagnostic.render())


# === Grammar ===


class CSSGrammar(CSSScanner):
    """Recursive-descent productions for sheets, rules and declarations."""

    def parse_property(self, pos: int) -> Tuple[CSSProperty, int]:
        """
        Parse one ``name: value;`` declaration.

        Args:
            pos: Position of the declaration, leading whitespace allowed.

        Returns:
            Tuple[CSSProperty, int]: The property and the position after ';'.

        Raises:
            InvalidIdentifierError: If the name or value is not an identifier.
            NoSuchSyntaxError: If ':' or ';' is missing.
            UnknownPropertyError: If the name is not a recognized property.
        """
        start = pos
        name, pos = self.parse_identifier(self.skip_whitespace(pos))
        pos = self.expect_char(self.skip_whitespace(pos), ":")

        kind = PropertyName.from_identifier(name.text)
        if kind is None:
            diagnostic = Diagnostic.locate(
                self.source, start, f"Unknown property: '{name}'."
            )
            self._emit(diagnostic)
            raise UnknownPropertyError(diagnostic, name.text)

        value, pos = self.parse_identifier(self.skip_whitespace(pos))
        pos = self.expect_char(self.skip_whitespace(pos), ";")
        return CSSProperty(kind, value), pos

    def parse_rule(self, pos: int) -> Tuple[CSSRule, int]:
        """
        Parse a selector followed by its declaration block.

        Args:
            pos: Position of the rule, leading whitespace allowed.

        Returns:
            Tuple[CSSRule, int]: The rule and the position after '}'.
        """
        selector, pos = self.parse_identifier(self.skip_whitespace(pos))
        pos = self.expect_char(self.skip_whitespace(pos), "{")

        properties: List[CSSProperty] = []
        while True:
            pos = self.skip_whitespace(pos)
            if pos >= len(self.source) or self.source[pos] == "}":
                break
            prop, pos = self.parse_property(pos)
            properties.append(prop)

        pos = self.expect_char(self.skip_whitespace(pos), "}")
        self._logger.debug(
            f"Parsed rule '{selector}' with {len(properties)} properties"
        )
        return CSSRule(selector, properties), pos

    def parse_sheet(self) -> CSSSheet:
        """
        Parse the whole input as a sequence of rules.

        Returns:
            CSSSheet: All rules in source order; empty for blank input.

        Raises:
            CSSParseError: The first failure of any production.
        """
        rules: List[CSSRule] = []
        pos = self.skip_whitespace(0)
        while pos < len(self.source):
            rule, pos = self.parse_rule(pos)
            rules.append(rule)
            pos = self.skip_whitespace(pos)
        return CSSSheet(rules)


# === Formatting ===


class CSSFormatter:
    """Utility class for formatting parsed rules and sheets."""

    @staticmethod
    def format_rule(rule: CSSRule) -> str:
        """
        Format a rule in standardized CSS format.

        Args:
            rule: The rule to format.

        Returns:
            str: The formatted rule string.
        """
        props = "\n".join(
            f"{Constants.INDENT}{p.name}: {p.value};" for p in rule.properties
        )
        if not props:
            return f"{rule.selector} {{\n}}\n"
        return f"{rule.selector} {{\n{props}\n}}\n"

    @staticmethod
    def format_sheet(sheet: CSSSheet) -> str:
        """Format every rule of the sheet, separated by blank lines."""
        return "\n".join(CSSFormatter.format_rule(rule) for rule in sheet)

    @staticmethod
    def display_sheet(sheet: CSSSheet) -> str:
        """
        List each rule's selector followed by one line per declaration, with a
        blank line after every rule.

        Args:
            sheet: The sheet to list.

        Returns:
            str: The listing, empty for an empty sheet.
        """
        lines: List[str] = []
        for rule in sheet:
            lines.append(f"selector: {rule.selector}")
            for prop in rule.properties:
                lines.append(f" {prop.name}: {prop.value}")
            lines.append("")
        return "".join(f"{line}\n" for line in lines)


# === Parser ===


class CSSParser:
    """Main CSS parser: runs the grammar and reports rules and errors to listeners."""

    def __init__(self) -> None:
        """Initialize the parser with an empty sheet and no event handlers."""
        self._sheet: CSSSheet = CSSSheet()
        self._event_handlers: Dict[str, List[Callable[..., None]]] = {
            ParserEvent.RULE_ADDED: [],
            ParserEvent.ERROR_FOUND: [],
            ParserEvent.PARSE_COMPLETED: [],
        }
        self._logger: logging.Logger = logging.getLogger(__name__)

    @property
    def sheet(self) -> CSSSheet:
        """The sheet produced by the last successful parse."""
        return self._sheet

    def dispatch_error(self, error: str) -> None:
        """
        Dispatch an error message to registered handlers.

        Args:
            error: The rendered diagnostic to dispatch.
        """
        self._logger.warning(f"Error: {error}")
        for handler in self._event_handlers[ParserEvent.ERROR_FOUND]:
            handler(error)

    def on(self, event: str, handler: Callable[..., None]) -> None:
        """
        Register an event handler for parser events.

        Args:
            event: The event to listen for ('rule_added', 'error_found', 'parse_completed').
            handler: The function to call when the event occurs.
        """
        if event in self._event_handlers:
            self._event_handlers[event].append(handler)
            self._logger.debug(f"Registered handler for event: {event}")

    def parse(self, css_text: str) -> CSSSheet:
        """
        Parse CSS text into a CSSSheet.

        Parsing stops at the first error. Its diagnostic is dispatched to the
        'error_found' handlers before the error propagates, and no rule is
        reported for a failed parse.

        Args:
            css_text: The complete stylesheet text.

        Returns:
            CSSSheet: The parsed rules.

        Raises:
            CSSParseError: If the text does not follow the grammar.
        """
        self._sheet = CSSSheet()
        grammar = CSSGrammar(css_text, error_handler=self)
        sheet = grammar.parse_sheet()
        self._sheet = sheet
        for rule in sheet:
            for handler in self._event_handlers[ParserEvent.RULE_ADDED]:
                handler(rule)
        for handler in self._event_handlers[ParserEvent.PARSE_COMPLETED]:
            handler()
        self._logger.debug(
            f"Parsing completed with {len(sheet)} rules and parse_completed event dispatched"
        )
        return sheet

    def __repr__(self) -> str:
        """Return a string representation of the parser."""
        return self.to_string()

    def to_string(self) -> str:
        """
        Return the last parsed sheet in standardized CSS format.

        Returns:
            str: The formatted CSS string.
        """
        return CSSFormatter.format_sheet(self._sheet)
