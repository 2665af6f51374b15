"""Allow ``python -m qr_session`` to launch the command-line scanner."""

from __future__ import annotations

import sys


def main() -> None:
    from qr_session import run

    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
