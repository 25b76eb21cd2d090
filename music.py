"""Music Terminal UI — entry point."""
import sys

from musictui.app import main

if __name__ == "__main__":
    sys.exit(main())
