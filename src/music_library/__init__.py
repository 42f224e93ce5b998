"""
Sheet music library backend.

Tracks which sheet music items are checked out to whom, applies check-in and
check-out form submissions to the Items sheet, and sends daily due-date
reminders. The FastAPI app lives in ``music_library.main`` and the cron-style
command line in ``music_library.cli``.
"""

__version__ = "0.1.0"
