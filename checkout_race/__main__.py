import sys

from checkout_race.cli import main


if __name__ == "__main__":
    sys.exit(main())
