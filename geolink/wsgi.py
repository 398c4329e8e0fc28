"""
WSGI entry point for production servers (``gunicorn geolink.wsgi:app``).

State is held in process memory, so run a single worker process; threads
are safe.
"""

import os
from geolink.app import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=False, host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
