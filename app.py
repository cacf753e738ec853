from src.timeclock.timeclock.main import create_app

if __name__ == "__main__":
    app = create_app()
    app.run(debug=bool(app.config.get("DEBUG", False)))
