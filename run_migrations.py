#!/usr/bin/env python
"""
Apply pending Alembic migrations before the web process starts.

Usage (release phase / container entrypoint):
    python run_migrations.py && gunicorn run:app
"""
import os
import sys
import traceback


def main():
    db_url = os.getenv('DATABASE_URL')
    if not db_url:
        print("ERROR: DATABASE_URL environment variable is not set!")
        return 1

    host = db_url.split('@')[1].split('/')[0] if '@' in db_url else 'local'
    print(f"Migrating database on {host}")

    from flask_migrate import upgrade
    from sqlalchemy import text
    from qualitivate import create_app
    from qualitivate.extensions import db

    app = create_app()
    with app.app_context():
        try:
            with db.engine.connect() as connection:
                connection.execute(text('SELECT 1'))
            print("Database connection successful")

            upgrade()
        except Exception as exc:
            print(f"Migration failed: {exc}")
            traceback.print_exc()
            return 1

    print("Migrations completed successfully")
    return 0


if __name__ == '__main__':
    sys.exit(main())
