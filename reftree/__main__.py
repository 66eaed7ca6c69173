"""Module entrypoint for ``python -m reftree``.

All argument parsing and query setup happen in ``reftree.cli``.
"""

from .cli import main


if __name__ == "__main__":
    main()
