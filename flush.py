# flush.py
import sys

from models.database import db


def reset_tables(app):
    """Drop every table and recreate the schema from the models."""
    with app.app_context():
        db.drop_all()
        db.create_all()
        return sorted(db.metadata.tables)


if __name__ == "__main__":
    from app import create_app

    app = create_app()
    target = app.config["SQLALCHEMY_DATABASE_URI"].split("@")[-1]
    if "--yes" not in sys.argv:
        answer = input(f"Drop and recreate all tables on {target}? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Aborted")
            sys.exit(1)

    tables = reset_tables(app)
    print(f"Recreated {len(tables)} tables: {', '.join(tables)}")
