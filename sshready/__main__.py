"""Allow ``python -m sshready``."""

from sshready.cli import main

if __name__ == "__main__":
    main()
