# manage.py
import sys

from app import create_app
from songlib.database import db

USAGE = "Usage: python manage.py [create_db|drop_db]"


def create_db():
    """Creates the songs table for local development (production uses migrations)."""
    app = create_app({'AUTO_CREATE_TABLES': False})
    with app.app_context():
        db.create_all()
        print("Database tables created!")


def drop_db():
    """Drops every table known to the models."""
    app = create_app({'AUTO_CREATE_TABLES': False})
    with app.app_context():
        db.drop_all()
        print("Database tables dropped!")


COMMANDS = {
    'create_db': create_db,
    'drop_db': drop_db,
}


if __name__ == '__main__':
    if len(sys.argv) > 1:
        command = COMMANDS.get(sys.argv[1])
        if command is None:
            print(f"Unknown command: {sys.argv[1]}")
            print(USAGE)
            sys.exit(1)
        command()
    else:
        print(f"No command provided. {USAGE}")
        sys.exit(1)
