"""Tests for deriving a condition context from project files."""

import json

from branchwise.engine.conditions import evaluate
from branchwise.services.context_service import load_project_context


def test_empty_project_gives_empty_context(tmp_path):
    assert load_project_context(tmp_path) == {}


def test_project_md_keywords(tmp_path):
    planning = tmp_path / ".planning"
    planning.mkdir()
    (planning / "PROJECT.md").write_text("A serverless REST service backed by Postgres.", encoding="utf-8")
    context = load_project_context(tmp_path)
    assert context == {"has_database": True, "has_api": True, "serverless": True, "monorepo": False}


def test_package_json_dependencies(tmp_path):
    (tmp_path / "package.json").write_text(
        json.dumps({"dependencies": {"express": "^4", "pg": "^8"}, "devDependencies": {"typescript": "^5", "jest": "^29"}}),
        encoding="utf-8",
    )
    context = load_project_context(tmp_path)
    assert context["typescript"] is True
    assert context["has_tests"] is True
    assert context["has_database"] is True
    assert context["has_api"] is True
    assert evaluate("has_api AND typescript", context) is True


def test_python_manifests(tmp_path):
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "x"\ndependencies = ["FastAPI>=0.110", "SQLAlchemy[asyncio]>=2"]\n'
        '[project.optional-dependencies]\ntest = ["pytest"]\n',
        encoding="utf-8",
    )
    context = load_project_context(tmp_path)
    assert context == {"has_tests": True, "has_database": True, "has_api": True}

    other = tmp_path / "reqs"
    other.mkdir()
    (other / "requirements.txt").write_text("# web\nflask==3.0\n-r base.txt\n", encoding="utf-8")
    assert load_project_context(other) == {"has_tests": False, "has_database": False, "has_api": True}


def test_unreadable_package_json_is_skipped(tmp_path):
    (tmp_path / "package.json").write_text("{not json", encoding="utf-8")
    assert load_project_context(tmp_path) == {}


def test_non_utf8_project_md_is_skipped(tmp_path):
    planning = tmp_path / ".planning"
    planning.mkdir()
    (planning / "PROJECT.md").write_bytes(b"database \xff\xfe api")
    (tmp_path / "package.json").write_text(json.dumps({"dependencies": {"express": "^4"}}), encoding="utf-8")
    context = load_project_context(tmp_path)
    assert "serverless" not in context
    assert context["has_api"] is True
    assert context["has_database"] is False
