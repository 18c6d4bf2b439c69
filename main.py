import sys

from nomex_meta.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
