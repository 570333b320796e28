"""Small CLI helpers wired to the project scripts for developer convenience.

Usage (from project root, after `pip install -e .`):
  runserver --host=0.0.0.0 --port=8000 --no-reload
  run-tests
  migrate        # defaults to `alembic upgrade head`
  init-env       # copies .env.example -> .env if missing
  seed           # demo user with sample connections and sessions
"""
from __future__ import annotations

import logging
import sys
import shutil
import subprocess
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger("app.cli")

DEMO_USERNAME = "demo"
DEMO_PASSWORD = "password"

# (name, host, port, os, status, last accessed ago)
DEMO_CONNECTIONS = [
    ("Development Workstation", "192.168.1.100", 3389, "Windows", "online", timedelta(hours=2)),
    ("Production Server", "10.0.0.15", 22, "Linux", "online", timedelta(days=1)),
    ("Design Workstation", "192.168.1.105", 5900, "MacOS", "away", timedelta(days=3)),
]

# (connection index, status, started ago, duration, protocol, connected time)
DEMO_SESSIONS = [
    (0, "active", timedelta(hours=1), "1h 24m", "RDP", "9:32 AM"),
    (1, "active", timedelta(minutes=45), "45m", "SSH", "10:12 AM"),
    (2, "idle", timedelta(hours=2), "2h 11m", "VNC", "8:45 AM"),
]


def _args() -> List[str]:
    return sys.argv[1:]


def runserver() -> None:
    """Run Uvicorn programmatically. Accepts simple flags:

    --host=<host>  (default 127.0.0.1)
    --port=<port>  (default 8000)
    --no-reload    (disable auto-reload)
    --reload       (enable auto-reload)
    """
    import uvicorn

    host = "127.0.0.1"
    port = 8000
    reload = True

    for a in _args():
        if a.startswith("--host="):
            host = a.split("=", 1)[1]
        elif a.startswith("--port="):
            try:
                port = int(a.split("=", 1)[1])
            except ValueError:
                print(f"Ignoring invalid port: {a}")
        elif a == "--no-reload":
            reload = False
        elif a == "--reload":
            reload = True

    print(f"Starting uvicorn on {host}:{port} (reload={reload})")
    uvicorn.run("app.main:app", host=host, port=port, reload=reload)


def run_tests() -> None:
    """Run pytest with any forwarded args."""
    args = _args()
    cmd = ["pytest"] + args
    subprocess.run(cmd, check=True)


def run_migrations() -> None:
    """Run alembic. If no args provided, runs `alembic upgrade head`."""
    args = _args()
    if args:
        cmd = ["alembic"] + args
    else:
        cmd = ["alembic", "upgrade", "head"]
    subprocess.run(cmd, check=True)


def init_env() -> None:
    """Copy `.env.example` to `.env` if `.env` is missing."""
    root = Path(__file__).resolve().parents[1]
    src = root / ".env.example"
    dst = root / ".env"
    if dst.exists():
        print(f".env already exists at {dst}")
        return
    if not src.exists():
        print(f".env.example not found at {src}")
        return
    shutil.copy(src, dst)
    print(f"Created .env from .env.example at {dst}")


def seed_demo_data(db, now: Optional[datetime] = None):
    """Create the demo user with three connections and three sessions.

    Returns the new user, or ``None`` when the demo user already exists.
    """
    from sqlalchemy.exc import SQLAlchemyError

    from app.core.security import hash_password
    from app.models.connection import Connection
    from app.models.remote_session import RemoteSession
    from app.models.user import User

    if db.query(User).filter(User.username == DEMO_USERNAME).first():
        return None

    now = now or datetime.utcnow()
    try:
        user = User(username=DEMO_USERNAME, password_hash=hash_password(DEMO_PASSWORD))
        db.add(user)
        db.flush()

        connections = []
        for name, host, port, os_name, status, ago in DEMO_CONNECTIONS:
            connection = Connection(
                user_id=user.id,
                name=name,
                host=host,
                port=port,
                os=os_name,
                status=status,
                last_accessed=now - ago,
            )
            db.add(connection)
            connections.append(connection)
        db.flush()

        for index, status, ago, duration, protocol, connected_time in DEMO_SESSIONS:
            db.add(RemoteSession(
                user_id=user.id,
                connection_id=connections[index].id,
                status=status,
                start_time=now - ago,
                duration=duration,
                protocol=protocol,
                connected_time=connected_time,
                connected_date="Today",
            ))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    db.refresh(user)
    return user


def seed() -> None:
    """Insert demo data; skipped when the demo user exists."""
    from app.core.database import SessionLocal
    from app.core.logger import setup_logging

    setup_logging()
    with SessionLocal() as db:
        user = seed_demo_data(db)
    if user is None:
        logger.info("Demo user already exists, skipping seed")
    else:
        logger.info(
            "Created demo user %r with %d connections and %d sessions",
            user.username, len(DEMO_CONNECTIONS), len(DEMO_SESSIONS),
        )


if __name__ == "__main__":
    # Allow running the helpers directly: python -m app.cli runserver
    if len(sys.argv) <= 1:
        print(__doc__)
        sys.exit(0)
    cmd = sys.argv[1]
    sys.argv.pop(1)
    if cmd == "runserver":
        runserver()
    elif cmd in ("run-tests", "tests", "test"):
        run_tests()
    elif cmd in ("migrate", "alembic"):
        run_migrations()
    elif cmd in ("init-env", "initenv"):
        init_env()
    elif cmd == "seed":
        seed()
    else:
        print(f"Unknown command: {cmd}")
