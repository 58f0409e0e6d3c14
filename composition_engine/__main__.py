"""Entry point wrapper for ``python -m composition_engine``.

Execution is forwarded to :func:`composition_engine.main` so ``python -m``
and the installed ``composition-engine`` console script behave identically.

Example
-------
::

    python -m composition_engine --style Rock --emotion Energetic \
        --seed 1 --output rock.mid
"""

from . import main

if __name__ == "__main__":
    main()
