"""Allow running as ``python -m diffreader``."""
from diffreader.cli import run

if __name__ == "__main__":
    run()
