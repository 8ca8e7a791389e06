"""List the visible entries of a directory, marking subdirectories."""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator


def is_hidden(name: str) -> bool:
    """True for names starting with a dot."""
    return name.startswith(".")


def list_entries(path: str = ".") -> Iterator[str]:
    """Yield visible entries of path; directories are shown as <name>.

    Raises OSError if the directory cannot be opened. Entries that cannot
    be examined are reported on stderr and skipped.
    """
    with os.scandir(path) as entries:
        for entry in entries:
            if entry.name in (".", "..") or is_hidden(entry.name):
                continue
            full = os.path.join(path, entry.name)
            try:
                info = os.stat(full)
            except OSError as exc:
                print(f"Error getting file stats: {exc.strerror}", file=sys.stderr)
                continue
            if os.path.isdir(full) and _is_dir_mode(info.st_mode):
                yield f"<{entry.name}>"
            else:
                yield entry.name


def _is_dir_mode(mode: int) -> bool:
    import stat

    return stat.S_ISDIR(mode)


def main(argv: list[str] | None = None) -> int:
    """Print the listing of a directory (the current one by default)."""
    args = sys.argv[1:] if argv is None else argv
    path = args[0] if args else "."
    try:
        lines = list_entries(path)
        first = next(lines, None)
    except OSError as exc:
        print(f"Error opening directory: {exc.strerror}", file=sys.stderr)
        return 1
    if first is not None:
        print(first)
        for line in lines:
            print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())