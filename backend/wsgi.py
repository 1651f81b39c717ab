# backend/wsgi.py
import os

from vterm import create_app

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.environ.get("PORT", app.config["PORT"])))
