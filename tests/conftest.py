"""Shared test fixtures for formactions."""

from __future__ import annotations

from pathlib import Path

import pytest

from formactions.config import FormActionsConfig

LOGIN = (
    "from app.auth import check_password\n"
    "\n"
    "\n"
    "async def handler(request):\n"
    "    form = await request.form()\n"
    "    return check_password(form)\n"
)

PROFILE = (
    '"""Profile page actions."""\n'
    "\n"
    "from app.db import fetch_user, save_user\n"
    "\n"
    "\n"
    "async def loader(request) -> dict[str, str]:\n"
    "    user = await fetch_user(request)\n"
    '    return {"name": user.name}\n'
)

SEARCH = (
    "from app.search import index_document, run_query\n"
    "\n"
    "\n"
    "async def handler(request):\n"
    "    form = await request.form()\n"
    "    return await index_document(form)\n"
    "\n"
    "\n"
    "async def loader(request) -> list[str]:\n"
    '    return await run_query(request.query_params.get("q", ""))\n'
)


def write_action(actions_dir: Path, name: str, content: str) -> Path:
    """Write an action module and return its path."""
    p = actions_dir / name
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
    return p


@pytest.fixture
def config(tmp_path: Path) -> FormActionsConfig:
    """A FormActionsConfig rooted at a temp directory with an empty actions dir."""
    cfg = FormActionsConfig(root=tmp_path)
    cfg.actions_path.mkdir(parents=True)
    return cfg


@pytest.fixture
def project(config: FormActionsConfig) -> FormActionsConfig:
    """The three-action project: login (handler), profile (loader), search (both)."""
    write_action(config.actions_path, "login.py", LOGIN)
    write_action(config.actions_path, "profile.py", PROFILE)
    write_action(config.actions_path, "search.py", SEARCH)
    return config
