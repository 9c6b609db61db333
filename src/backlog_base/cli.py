from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .errors import BacklogError, TaskNotFoundError
from .generate import BacklogGenerator, GeneratorConfig
from .graph import compute_ready_tasks, validate_backlog
from .io import dump_backlog, load_backlog, mark_task_done, save_backlog
from .model import Backlog, Task


DEFAULT_FILENAME = "backlog.yaml"


def _find_repo_root(start: Path) -> Path:
    """
    Very simple heuristic: walk up until we find a backlog.yaml, pyproject.toml, or .git.
    """
    p = start.resolve()
    for parent in [p] + list(p.parents):
        if (parent / DEFAULT_FILENAME).exists() or (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent
    return start


def _add_location_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--repo", type=str, default=".", help="Path to repo root (default: .)")
    parser.add_argument("--filename", type=str, default=DEFAULT_FILENAME, help="Backlog filename (default: backlog.yaml)")
    parser.add_argument("--verbose", action="store_true", help="Log recovery and validation details to stderr.")


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _backlog_path(args: argparse.Namespace) -> Optional[Path]:
    repo = _find_repo_root(Path(args.repo))
    path = repo / args.filename
    if not path.exists():
        print(f"ERROR: {path} not found", file=sys.stderr)
        return None
    return path


# ---------------------- init ----------------------


def main_init(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Initialize an empty backlog.yaml.")
    parser.add_argument("--repo", type=str, default=".", help="Path to repo root (default: .)")
    parser.add_argument("--filename", type=str, default=DEFAULT_FILENAME, help="Backlog filename (default: backlog.yaml)")
    parser.add_argument("--project", type=str, default=None, help="Project name (default: repo directory name)")
    args = parser.parse_args(argv)

    repo = Path(args.repo).resolve()
    repo.mkdir(parents=True, exist_ok=True)

    out_path = repo / args.filename
    if out_path.exists():
        print(f"{out_path} already exists; refusing to overwrite.", file=sys.stderr)
        return 1

    backlog = Backlog(project=args.project or repo.name)
    save_backlog(backlog, out_path)
    print(f"Initialized backlog at {out_path}")
    return 0


# ---------------------- validate ----------------------


def main_validate(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Check a backlog for dangling dependencies and cycles.")
    _add_location_args(parser)
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    path = _backlog_path(args)
    if path is None:
        return 1

    try:
        backlog = load_backlog(path)
        validate_backlog(backlog)
    except BacklogError as e:
        print("Validation failed:", file=sys.stderr)
        print(" -", e, file=sys.stderr)
        return 1

    print(f"{args.filename} is valid ({len(backlog.all_tasks())} tasks).")
    return 0


# ---------------------- next ----------------------


def _print_task(t: Task) -> None:
    print(f"{t.id}: {t.title}")
    if t.description:
        for line in t.description.splitlines():
            print(f"  {line}")
    if isinstance(t.deliverable, str):
        print(f"  Deliverable: {t.deliverable}")
    elif t.deliverable:
        print("  Deliverables:")
        for p in t.deliverables():
            print(f"    - {p}")
    print()


def main_next(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="List tasks that are ready to work on (Todo, all dependencies Done)."
    )
    _add_location_args(parser)
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    path = _backlog_path(args)
    if path is None:
        return 1

    try:
        backlog = load_backlog(path)
        validate_backlog(backlog)
    except BacklogError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    ready = compute_ready_tasks(backlog)
    if not ready:
        print("No tasks are ready to work on.")
        return 0

    print("Tasks ready to work on:")
    for t in ready:
        _print_task(t)
    return 0


# ---------------------- mark-done ----------------------


def main_mark_done(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Mark a task as done.")
    _add_location_args(parser)
    parser.add_argument("--task", required=True, help="ID of the task to mark as done.")
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    path = _backlog_path(args)
    if path is None:
        return 1

    try:
        mark_task_done(path, args.task)
    except TaskNotFoundError as e:
        print(str(e), file=sys.stderr)
        return 1
    except BacklogError as e:
        print(f"Error parsing backlog file: {e}", file=sys.stderr)
        return 1

    print(f"Task {args.task} marked as done.")
    return 0


# ---------------------- gen ----------------------


def main_gen(argv: Optional[list[str]] = None) -> int:
    """
    Generate a backlog from a specification file with an LLM.

    Usage:
        backlog-gen spec.md --lang fr > backlog.yaml
    """
    parser = argparse.ArgumentParser(description="Generate a task backlog from a specification.")
    parser.add_argument("spec_file", type=str, help="Path to the specification file.")
    parser.add_argument("--lang", type=str, default="en", help="Language for prompts (en, fr).")
    parser.add_argument("--style", type=str, default="standard", help="Style of the generated backlog.")
    parser.add_argument("--model", type=str, default=None, help="Model name (default: gpt-4.1).")
    parser.add_argument("--prompt-dir", type=str, default=None, help="Directory holding system_<lang>.txt overrides.")
    parser.add_argument("--output", type=str, default=None, help="Write the backlog here instead of stdout.")
    parser.add_argument("--verbose", action="store_true", help="Log recovery details to stderr.")
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    spec_path = Path(args.spec_file)
    try:
        spec = spec_path.read_text(encoding="utf-8")
    except OSError as e:
        print(f"Error reading specification file: {e}", file=sys.stderr)
        return 1

    config = GeneratorConfig.from_env(
        language=args.lang,
        style=args.style,
        model=args.model,
        prompt_dir=args.prompt_dir,
    )
    try:
        backlog = BacklogGenerator(config).generate(spec)
    except BacklogError as e:
        print(f"Error generating backlog: {e}", file=sys.stderr)
        return 1

    if args.output:
        save_backlog(backlog, args.output)
        print(f"Wrote backlog to {args.output}", file=sys.stderr)
    else:
        print(dump_backlog(backlog), end="")
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main_next())
