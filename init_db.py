import argparse

from app import create_app, seed_defaults
from models import db


def init_db(drop=False):
    app = create_app({'SEED_DEFAULTS': False})
    with app.app_context():
        if drop:
            print("Dropping database tables...")
            db.drop_all()
        # Create all database tables
        print("Creating database tables...")
        db.create_all()

        print("Creating firm profile and admin account...")
        seed_defaults(app)
        print(f"Admin username: '{app.config['ADMIN_USERNAME']}'")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Create the database schema and default rows.")
    parser.add_argument('--drop', action='store_true', help="drop every table first")
    args = parser.parse_args()
    init_db(drop=args.drop)
    print("Database initialization complete!")
