# Overview: WSGI entry point; `flask --app wsgi` and production servers load `app` from here.

from verger import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=True)
