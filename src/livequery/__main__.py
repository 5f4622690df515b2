"""Entry point for running livequery as a module.

Usage:
    python -m livequery data.json
    curl -s https://api.example.com/items | python -m livequery -c jq
"""

from livequery.cli import main

if __name__ == "__main__":
    main()
