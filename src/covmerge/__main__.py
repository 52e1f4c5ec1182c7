"""Allow ``python -m covmerge``."""

from covmerge.cli.main import main

if __name__ == "__main__":
    main()
