"""Path helpers shared by cache resolution and target resolution."""
from pathlib import Path
from typing import Iterable, Optional, Tuple, Union


def absolute_path(root: Union[Path, str], path: Union[Path, str]) -> Path:
    """
    Return ``path`` unchanged when absolute, otherwise joined onto ``root``.

    No symlink resolution is performed so the result stays predictable
    for paths that do not exist yet (cache directories, generated files).

    Examples:
        >>> absolute_path(Path("/workspace"), "/tmp/x")
        PosixPath('/tmp/x')
        >>> absolute_path(Path("/workspace"), "cache")
        PosixPath('/workspace/cache')
    """
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    return Path(root) / candidate


def join_path_fragments(*fragments: Union[Path, str]) -> Path:
    """
    Join workspace path fragments, treating later absolute fragments as relative.

    Target options such as ``customWebpackConfig.path`` are written
    relative to the workspace root but sometimes start with ``/``; they
    must never escape the root they are joined to.

    Examples:
        >>> join_path_fragments("/workspace", "/apps/app/webpack.py")
        PosixPath('/workspace/apps/app/webpack.py')
    """
    if not fragments:
        raise ValueError("join_path_fragments requires at least one fragment")

    result = Path(fragments[0])
    for fragment in fragments[1:]:
        text = str(fragment).replace("\\", "/")
        result = result / text.lstrip("/")
    return result


def to_posix(path: Union[Path, str]) -> str:
    """Return ``path`` as a forward-slash string."""
    return str(path).replace("\\", "/")


def find_owning_root(
    path: Union[Path, str],
    workspace_root: Union[Path, str],
    roots: Iterable[Tuple[str, str]],
) -> Optional[str]:
    """
    Find the entry whose root directory contains ``path``.

    Args:
        path: Absolute or workspace-relative path (usually the cwd).
        workspace_root: Workspace root directory.
        roots: ``(name, root)`` pairs with roots relative to the workspace.

    Returns:
        Name owning the deepest matching root, or None.
    """
    workspace_root = Path(workspace_root)
    candidate = absolute_path(workspace_root, path)
    try:
        relative = candidate.relative_to(workspace_root)
    except ValueError:
        return None

    rel_parts = relative.parts
    best_name: Optional[str] = None
    best_depth = -1
    for name, root in roots:
        root_parts = Path(to_posix(root)).parts if root not in ("", ".") else ()
        if rel_parts[: len(root_parts)] == root_parts and len(root_parts) > best_depth:
            best_name = name
            best_depth = len(root_parts)
    return best_name
