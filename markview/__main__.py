"""markview CLI entry point.

Allows running via `python -m markview` and provides the console script
defined in `pyproject.toml`.
"""

from __future__ import annotations

import argparse
import importlib.metadata
import logging
import os
import sys


def get_version_string() -> str:
    try:
        return f"markview {importlib.metadata.version('markview')}"
    except importlib.metadata.PackageNotFoundError:
        return "markview (not installed)"


def _escape_bytes(s: str) -> str:
    """Return a printable representation of raw key string."""
    return s.encode('unicode_escape').decode('ascii')


def run_keyboard_test() -> None:
    """Print parsed key and mouse events until ESC is pressed."""
    import termios
    from .terminal import TerminalInterface
    from .keyboard import KeyboardHandler, KeyEvent, KeyType

    print("Keyboard test mode: press keys or click to see parsed events.")
    print("Quit with ESC.")

    term = TerminalInterface()
    term.setup()

    old_settings = None
    try:
        old_settings = termios.tcgetattr(sys.stdin)
        new_settings = list(old_settings)
        new_settings[0] &= ~(termios.IXON | termios.IXOFF)
        new_settings[3] &= ~termios.ISIG
        termios.tcsetattr(sys.stdin, termios.TCSANOW, new_settings)
    except (termios.error, AttributeError, OSError):
        # Keyboard test should keep running even if termios tweaks fail
        pass

    kb = KeyboardHandler(term)

    try:
        while True:
            ev = kb.get_event(timeout=None)
            if ev is None:
                continue
            if not isinstance(ev, KeyEvent):
                print(f"mouse kind={ev.kind.value} button={ev.button.value} "
                      f"column={ev.column} row={ev.row}\r")
                continue
            if ev.key_type == KeyType.SPECIAL and ev.value == 'escape':
                print("Exiting keyboard test.\r")
                break
            parts = [f"type={ev.key_type.value}", f"value={ev.value}", f"raw='{_escape_bytes(ev.raw)}'"]
            flags = [name for name, on in (('alt', ev.is_alt), ('ctrl', ev.is_ctrl),
                                           ('shift', ev.is_shift), ('seq', ev.is_sequence)) if on]
            if flags:
                parts.append(f"flags={'+'.join(flags)}")
            print(' '.join(parts) + '\r')
    finally:
        if old_settings is not None:
            try:
                termios.tcsetattr(sys.stdin, termios.TCSANOW, old_settings)
            except (termios.error, OSError):
                pass
        term.cleanup()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="markview", description="Interactive terminal markdown viewer.")
    parser.add_argument("file", nargs="?", help="markdown file to view")
    parser.add_argument("-V", "--version", action="store_true", help="print the version and exit")
    parser.add_argument("--keytest", "--keyboard-test", action="store_true",
                        help="print parsed input events instead of viewing a file")
    parser.add_argument("--minimap", action="store_true", default=None, help="show the minimap")
    parser.add_argument("--line-numbers", action="store_true", default=None,
                        help="number the lines of code blocks")
    parser.add_argument("--fold-code", type=int, metavar="N", default=None,
                        help="fold code blocks longer than N lines")
    parser.add_argument("--compact-frontmatter", action="store_true",
                        help="show frontmatter as a single summary line")
    return parser


def configure_logging() -> None:
    """Log to the file named by MARKVIEW_LOG; stay silent otherwise."""
    path = os.environ.get("MARKVIEW_LOG")
    if not path:
        logging.getLogger("markview").addHandler(logging.NullHandler())
        return
    logging.basicConfig(filename=path, level=logging.DEBUG,
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.version:
        print(get_version_string())
        return 0
    if args.keytest:
        run_keyboard_test()
        return 0
    if not args.file:
        print("markview: a FILE argument is required", file=sys.stderr)
        return 2

    configure_logging()

    # Lazy import to avoid importing UI deps for --version
    from .viewer import Viewer
    from .widget import MarkdownView

    try:
        view = MarkdownView.from_file(args.file, compact_frontmatter=args.compact_frontmatter,
                                      fold_code_over=args.fold_code)
    except OSError as e:
        print(f"markview: cannot read {args.file}: {e.strerror or e}", file=sys.stderr)
        return 1

    viewer = Viewer(view)
    viewer.load_settings()
    # Command-line flags win over persisted settings
    if args.minimap is not None:
        view.set_show_minimap(True)
    if args.line_numbers is not None:
        view.set_show_line_numbers(True)
    viewer.run(load_settings=False)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
