import sys

from .menu import main

if __name__ == "__main__":
    sys.exit(main())
