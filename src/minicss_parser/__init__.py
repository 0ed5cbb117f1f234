from .minicss_parser import (
    Constants,
    CSSFormatter,
    CSSGrammar,
    CSSParseError,
    CSSParser,
    CSSProperty,
    CSSPropertyDict,
    CSSRule,
    CSSScanner,
    CSSSheet,
    Diagnostic,
    ErrorHandlerProtocol,
    InvalidIdentifierError,
    NoSuchSyntaxError,
    ParserEvent,
    PropertyName,
    TextSpan,
    UnknownPropertyError,
)

__version__ = "0.1.0"

__all__ = [
    "Constants",
    "CSSFormatter",
    "CSSGrammar",
    "CSSParseError",
    "CSSParser",
    "CSSProperty",
    "CSSPropertyDict",
    "CSSRule",
    "CSSScanner",
    "CSSSheet",
    "Diagnostic",
    "ErrorHandlerProtocol",
    "InvalidIdentifierError",
    "NoSuchSyntaxError",
    "ParserEvent",
    "PropertyName",
    "TextSpan",
    "UnknownPropertyError",
]
