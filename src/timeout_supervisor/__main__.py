"""timeout-supervisor entry point.

Supports: python -m timeout_supervisor
"""

from .app import main

if __name__ == "__main__":
    main()
