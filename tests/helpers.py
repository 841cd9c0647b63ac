"""Shared helpers for building test repositories."""

from pathlib import Path

from git import Actor, Repo

AUTHOR = Actor("Test User", "test@example.com")


def commit_file(repo: Repo, name: str, content: str) -> str:
    """Write a file in the working tree, commit it and return the new sha."""
    path = Path(repo.working_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.index.add([name])
    return repo.index.commit(f"Add {name}", author=AUTHOR, committer=AUTHOR).hexsha
