"""
Entry point for running Exam Vocab Boost as a module.

Usage:
    python -m src.delivery drill
    python -m src.delivery dashboard
    python -m src.delivery --help
"""
from .cli import main

if __name__ == "__main__":
    main()
