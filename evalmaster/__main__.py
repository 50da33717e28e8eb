"""``python -m evalmaster`` starts the Streamlit app."""
from __future__ import annotations
import os
import sys

from streamlit.web import cli as stcli

def main() -> None:
    sys.argv = ["streamlit", "run", os.path.join(os.path.dirname(__file__), "app.py"), *sys.argv[1:]]
    sys.exit(stcli.main())

if __name__ == "__main__":
    main()
