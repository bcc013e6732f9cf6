"""Main entry point for scenewright CLI when run as a module."""

from scenewright.cli.main import main

if __name__ == "__main__":  # pragma: no cover
    main()
