"""Entry point for 'python -m crudbase' command.

This module allows the CrudBase CLI to be invoked using
'python -m crudbase'.
"""

from crudbase.cli import main

if __name__ == "__main__":
    main()
