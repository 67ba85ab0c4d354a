"""
Initialize database tables for the SQL quiz store.
Run this on first deploy when QUIZ_STORE=sql.

Set RESET_DB=1 environment variable to drop and recreate all tables.
"""
import os

from smartquiz import create_app, db
from smartquiz.store import SqlQuizStore


def init_db():
    """Create all database tables."""
    app = create_app(os.getenv('FLASK_ENV', 'production'), store=SqlQuizStore())

    with app.app_context():
        if os.getenv('RESET_DB', '').strip() in ('1', 'true', 'yes'):
            print("RESET_DB is set - dropping all tables...")
            db.drop_all()
            print("Tables dropped.")

        print("Creating database tables...")
        db.create_all()
        print("Database tables created successfully!")


if __name__ == '__main__':
    init_db()
