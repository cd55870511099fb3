"""Generate resource modules from an entity schema file.

Usage:
  python scripts/generate_resources.py examples/blog.yaml --out ./generated
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.cli import main

if __name__ == "__main__":
    sys.exit(main())
