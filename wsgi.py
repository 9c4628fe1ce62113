"""WSGI entry point for the Gemini relay server."""

import sys

from jobfit import create_app

# Log the full traceback if the app fails during boot, then exit
try:
    app = create_app()
except Exception:
    import traceback

    print("\nFATAL: Failed to create Flask application during startup:\n", file=sys.stderr)
    traceback.print_exc()
    raise

if __name__ == "__main__":
    from config.settings import settings

    settings.display_config()
    app.run()
