"""Module entrypoint.

Allows:
    python -m event_log_query
"""

from __future__ import annotations

from event_log_query.server.event_server import main

if __name__ == "__main__":
    main()
