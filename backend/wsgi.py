# backend/wsgi.py
import atexit

from restopos import create_app
from restopos.extensions import db

app = create_app()


@atexit.register
def _dispose_engine():
    # Close pooled connections on interpreter shutdown.
    with app.app_context():
        db.engine.dispose()


if __name__ == "__main__":
    app.run(debug=True)
