"""Launch the ReMove Streamlit app and open the browser."""

import importlib.util
import threading
import time
import webbrowser

import requests


PORT = 8501
URL = f"http://localhost:{PORT}"


def _wait_and_open_browser() -> None:
    """Wait for the Streamlit server to become ready, then open the browser."""
    for _ in range(30):  # up to 30 seconds
        try:
            resp = requests.get(URL, timeout=2)
            if resp.status_code == 200:
                webbrowser.open(URL)
                return
        except requests.RequestException:
            pass
        time.sleep(1)


def main() -> None:
    from streamlit.web import bootstrap

    app_path = importlib.util.find_spec("ReMove.app").origin

    # Open browser in a background thread once the server is up
    threading.Thread(target=_wait_and_open_browser, daemon=True).start()

    bootstrap.run(
        app_path,
        is_hello=False,
        args=[],
        flag_options={
            "server.headless": True,
            "server.port": PORT,
            "browser.gatherUsageStats": False,
        },
    )


if __name__ == "__main__":
    main()
