"""Development entry point: `python app.py` serves the JSON API."""

from src.college_attendance.college_attendance.main import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=app.config["DEBUG"])
