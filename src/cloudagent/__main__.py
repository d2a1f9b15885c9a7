"""Entry point for running cloudagent as a module.

This allows running the CLI with:
    python -m cloudagent
"""

from cloudagent.cli.main import main

if __name__ == "__main__":
    main()
