"""Allow ``python -m stackup``."""

from .cli import main

if __name__ == "__main__":
    main()
