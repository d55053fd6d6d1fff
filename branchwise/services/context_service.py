"""
Project context loader: derives the boolean facts that [IF: ...] guards test.

Sources, in order (later sources can only turn a fact on, never off):
- .planning/PROJECT.md keyword scan (has_database, has_api, serverless, monorepo)
- package.json dependencies (typescript, has_tests, has_database, has_api)
- pyproject.toml / requirements.txt dependencies (same keys, Python package names)
"""

import json
import logging
import re
import tomllib
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

PROJECT_KEYWORDS: dict[str, re.Pattern] = {
    "has_database": re.compile(r"database|postgres|mysql|mongodb", re.IGNORECASE),
    "has_api": re.compile(r"api|endpoint|rest|graphql", re.IGNORECASE),
    "serverless": re.compile(r"serverless|lambda|cloud function", re.IGNORECASE),
    "monorepo": re.compile(r"monorepo|workspace", re.IGNORECASE),
}

NODE_TEST_PACKAGES = {"mocha", "jest", "vitest"}
NODE_DATABASE_PACKAGES = {"pg", "mysql", "mongodb"}
NODE_API_PACKAGES = {"express", "fastify", "koa"}

PY_TEST_PACKAGES = {"pytest", "nose2", "hypothesis"}
PY_DATABASE_PACKAGES = {"sqlalchemy", "psycopg2", "psycopg", "pymysql", "pymongo", "asyncpg"}
PY_API_PACKAGES = {"fastapi", "flask", "django", "starlette", "aiohttp"}

_REQUIREMENT_NAME_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


def _requirement_name(requirement: str) -> str:
    m = _REQUIREMENT_NAME_RE.match(requirement)
    return m.group(1).lower().replace("_", "-") if m else ""


def _merge_flags(context: dict[str, bool], deps: set[str], tests: set[str], dbs: set[str], apis: set[str]) -> None:
    context["has_tests"] = context.get("has_tests", False) or bool(deps & tests)
    context["has_database"] = context.get("has_database", False) or bool(deps & dbs)
    context["has_api"] = context.get("has_api", False) or bool(deps & apis)


def _node_dependencies(path: Path) -> set[str]:
    pkg = json.loads(path.read_text(encoding="utf-8"))
    deps = dict(pkg.get("dependencies") or {})
    deps.update(pkg.get("devDependencies") or {})
    return set(deps)


def _python_dependencies(root: Path) -> set[str]:
    names: set[str] = set()
    pyproject = root / "pyproject.toml"
    if pyproject.exists():
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        project = data.get("project") or {}
        requirements = list(project.get("dependencies") or [])
        for extra in (project.get("optional-dependencies") or {}).values():
            requirements.extend(extra)
        names.update(_requirement_name(r) for r in requirements)
    req_file = root / "requirements.txt"
    if req_file.exists():
        for line in req_file.read_text(encoding="utf-8").splitlines():
            line = line.split("#", 1)[0].strip()
            if line and not line.startswith("-"):
                names.add(_requirement_name(line))
    names.discard("")
    return names


def load_project_context(project_root: Union[str, Path] = ".") -> dict[str, bool]:
    """Build a context dict for condition evaluation from files under project_root."""
    root = Path(project_root)
    context: dict[str, bool] = {}

    project_md = root / ".planning" / "PROJECT.md"
    if project_md.exists():
        try:
            content = project_md.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable PROJECT.md at %s: %s", project_md, e)
        else:
            for key, pattern in PROJECT_KEYWORDS.items():
                context[key] = bool(pattern.search(content))

    package_json = root / "package.json"
    if package_json.exists():
        try:
            deps = _node_dependencies(package_json)
        except (OSError, ValueError) as e:
            logger.warning("Skipping unreadable package.json at %s: %s", package_json, e)
        else:
            context["typescript"] = "typescript" in deps
            _merge_flags(context, deps, NODE_TEST_PACKAGES, NODE_DATABASE_PACKAGES, NODE_API_PACKAGES)

    try:
        py_deps = _python_dependencies(root)
    except (OSError, ValueError) as e:
        logger.warning("Skipping unreadable Python manifest under %s: %s", root, e)
        py_deps = set()
    if py_deps:
        _merge_flags(context, py_deps, PY_TEST_PACKAGES, PY_DATABASE_PACKAGES, PY_API_PACKAGES)

    logger.debug("Loaded project context from %s: %s", root, context)
    return context
