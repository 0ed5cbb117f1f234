import sys
from typing import List, Optional

from minicss_parser import CSSFormatter, CSSParseError, CSSParser, CSSRule


def on_rule_added(rule: CSSRule) -> None:
    """
    Callback for each rule of a successfully parsed stylesheet.

    Args:
        rule (CSSRule): The parsed rule.
    """
    print(f"New rule parsed: {rule.selector}", file=sys.stderr)


def on_error_found(error: str) -> None:
    """
    Callback for the diagnostic of a failed parse.

    Args:
        error (str): The rendered diagnostic.
    """
    print(error, file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    """Read a stylesheet, parse it and list its rules."""
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: python examples/main.py <stylesheet.css>", file=sys.stderr)
        return 2

    try:
        with open(args[0], "r", encoding="utf-8") as f:
            css_text = f.read()
    except OSError as e:
        print(f"Error: cannot read {args[0]}: {e}", file=sys.stderr)
        return 1

    parser = CSSParser()
    parser.on("rule_added", on_rule_added)
    parser.on("error_found", on_error_found)
    try:
        sheet = parser.parse(css_text)
    except CSSParseError:
        return 1

    print(CSSFormatter.display_sheet(sheet), end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())
