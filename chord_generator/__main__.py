"""Entry point wrapper for ``python -m chord_generator``.

Execution is forwarded to :func:`chord_generator.main` so ``python -m
chord_generator`` and the installed ``chord-generator`` console script behave
identically.

Example
-------
::

    python -m chord_generator --key A --mode aeolian --length 6 --output out.mid
"""

from . import main

if __name__ == "__main__":
    main()
