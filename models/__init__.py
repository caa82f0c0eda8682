"""
Persistence package: exposes the process-wide DBStorage instance.

create_app() calls storage.reload() with the configured DATABASE_URL before
the first request; tests get a fresh in-memory database that way.
"""
from models.db_storage import DBStorage

storage = DBStorage()
