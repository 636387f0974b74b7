"""Module entrypoint for `python -m patrolbot`.

Purpose: Delegate to `patrolbot.server.main` to start the bot and health server.
"""

from .server import main


if __name__ == "__main__":
    main()
