import re
import sys
from pathlib import Path
from typing import Optional

import tomlkit

PYPROJECT_FILE = Path("pyproject.toml")
INIT_FILE = Path("src/minicss_parser/__init__.py")


def validate_version(version: str) -> None:
    """Validates that the version follows MAJOR.MINOR.PATCH format."""
    if not re.match(r"^\d+\.\d+\.\d+$", version):
        raise ValueError("Version must be in MAJOR.MINOR.PATCH format (e.g., 0.1.0)")


def update_pyproject_version(filepath: Path, new_version: str) -> None:
    """Updates the version in the pyproject.toml file, keeping its formatting."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    data = tomlkit.parse(filepath.read_text(encoding="utf-8"))
    if "project" not in data or "version" not in data["project"]:
        raise KeyError("Invalid pyproject.toml: missing 'project.version' field")

    data["project"]["version"] = new_version
    filepath.write_text(tomlkit.dumps(data), encoding="utf-8")
    print(f"Updated {filepath} to version {new_version}")


def update_init_version(filepath: Path, new_version: str) -> None:
    """Updates the __version__ assignment in the package's __init__.py."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    content = filepath.read_text(encoding="utf-8")
    pattern = r'__version__ = ["\'].*?["\']'
    if not re.search(pattern, content):
        raise ValueError(f"No __version__ found in {filepath}")

    filepath.write_text(
        re.sub(pattern, f'__version__ = "{new_version}"', content), encoding="utf-8"
    )
    print(f"Updated {filepath} to version {new_version}")


def get_current_version(filepath: Path) -> Optional[str]:
    """Reads the current version from pyproject.toml."""
    filepath = Path(filepath)
    if not filepath.exists():
        return None
    data = tomlkit.parse(filepath.read_text(encoding="utf-8"))
    return data.get("project", {}).get("version")


def main(argv: Optional[list] = None) -> int:
    """Bump the version in pyproject.toml and __init__.py; returns the exit status."""
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: python update_version.py <new_version>")
        return 1

    new_version = args[0]
    try:
        validate_version(new_version)

        if get_current_version(PYPROJECT_FILE) == new_version:
            print(f"Version {new_version} already set in pyproject.toml, skipping update")
            return 0

        update_pyproject_version(PYPROJECT_FILE, new_version)
        update_init_version(INIT_FILE, new_version)
    except (ValueError, FileNotFoundError, KeyError) as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
