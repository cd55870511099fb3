"""Command-line entry point for resource generation."""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from app.core.config import settings
from app.core.logging import configure_logging
from app.generators.resource_gen import generate_resources
from app.generators.resource_gen.errors import GenerationFailedError, ResourceGenerationError


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Generate resource modules from an entity schema")
    parser.add_argument("schema", type=Path, help="Path to a JSON or YAML entity schema")
    parser.add_argument(
        "--out",
        type=Path,
        default=Path(settings.output_dir),
        help=f"Output directory (default: {settings.output_dir})",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    if not args.schema.exists():
        print(f"Error: schema file not found: {args.schema}")
        return 1

    try:
        modules = generate_resources(args.schema, args.out)
    except ResourceGenerationError as e:
        errors = e.errors if isinstance(e, GenerationFailedError) else [e]
        print("Error: resource generation failed")
        for error in errors:
            print(f"  - {error}")
        return 1

    print(f"Generated {len(modules)} modules in {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
