"""Write generated modules under an output directory."""
import logging
from pathlib import Path
from typing import List, Sequence
from app.core.workflow import ResourceStage
from app.generators.resource_gen.types import GeneratedModule

log = logging.getLogger(__name__)


def _target_path(out_dir: Path, module: GeneratedModule) -> Path:
    target = (out_dir / module.path).resolve()
    if Path(module.path).is_absolute() or not target.is_relative_to(out_dir.resolve()):
        raise ValueError(f"Module path {module.path!r} escapes output directory {out_dir}")
    return target


def write_files(modules: Sequence[GeneratedModule], out_dir: Path) -> List[Path]:
    """
    Write generated modules to the output directory.

    Every path is checked before anything is written, so a bad path leaves
    the output directory untouched. Files whose content is already current
    are not rewritten.

    Args:
        modules: Generated modules, paths relative to out_dir
        out_dir: Base output directory path

    Returns:
        Paths of the files that were written
    """
    targets = [(_target_path(out_dir, module), module) for module in modules]
    out_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for file_path, module in targets:
        if file_path.is_file() and file_path.read_text(encoding="utf-8") == module.content:
            continue
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(module.content, encoding="utf-8")
        written.append(file_path)

    log.debug(
        "Wrote %d of %d modules", len(written), len(targets),
        extra={"stage": ResourceStage.WRITE.value},
    )
    return written
