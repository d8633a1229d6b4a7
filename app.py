"""Development entry point: ``python app.py`` (set APP_ENV to pick the settings module)."""

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent / "src" / "academy_attendance"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from academy_attendance.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=app.config["DEBUG"])
