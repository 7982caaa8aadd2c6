from .async_db import (
    build_engine,
    build_session_factory,
    check_database_health,
    create_db_and_tables,
    get_async_db,
    wait_for_database,
)

__all__ = [
    "build_engine",
    "build_session_factory",
    "check_database_health",
    "create_db_and_tables",
    "get_async_db",
    "wait_for_database",
]
