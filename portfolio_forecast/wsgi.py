#setup: python -m venv .venv
#setup: source .venv/bin/activate   # (windows: .venv\Scripts\activate)
#setup: pip install -U pip -e ".[test]"
#setup: flask --app portfolio_forecast.wsgi run --port 3000 --debug

from portfolio_forecast.app import create_app

app = create_app()


if __name__ == "__main__":
    app.run(port=3000, debug=True)
