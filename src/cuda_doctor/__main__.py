"""Support ``python -m cuda_doctor``.

Usage::

    python -m cuda_doctor --verbose
    python -m cuda_doctor --export env.json
"""

from __future__ import annotations


def main() -> None:
    from cuda_doctor.cli import main as cli_main
    cli_main()


if __name__ == "__main__":
    main()
