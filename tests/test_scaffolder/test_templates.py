"""Tests for template substitution and tracked file writes."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from rails_react_graphql.recovery import CreationLedger
from rails_react_graphql.scaffolder.templates import (
    TemplateRenderer,
    build_variables,
    make_dirs,
    output_name,
    substitute,
    write_file,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    root = tmp_path / "templates"
    (root / "demo" / "bin").mkdir(parents=True)
    (root / "demo" / "lib").mkdir()
    (root / "demo" / "README.md").write_text("# <%= appName %>\n", encoding="utf-8")
    (root / "demo" / "bin" / "run").write_text("#!/bin/sh\necho <%= projectName %>\n", encoding="utf-8")
    (root / "demo" / "lib" / "__app_name__.__ext__").write_text("export {};\n", encoding="utf-8")
    (root / "demo" / "dot_gitignore").write_text("node_modules/\n", encoding="utf-8")
    return root


@pytest.fixture
def variables() -> dict[str, str]:
    return {"appName": "MyApp", "appNameSnake": "my_app", "projectName": "my-app", "ext": "ts"}


# ---------------------------------------------------------------------------
# substitute / output_name
# ---------------------------------------------------------------------------


class TestSubstitute:
    def test_replaces_known_tokens(self):
        assert substitute("class <%= appName %>", {"appName": "Shop"}) == "class Shop"

    def test_tolerates_missing_whitespace(self):
        assert substitute("<%=appName%>-<%=  appName  %>", {"appName": "X"}) == "X-X"

    def test_leaves_unknown_tokens(self):
        assert substitute("<%= mystery %>", {"appName": "X"}) == "<%= mystery %>"

    def test_multiline_values(self):
        content = "gems:\n<%= GEMS %>\nend"
        assert substitute(content, {"GEMS": 'gem "a"\ngem "b"'}) == 'gems:\ngem "a"\ngem "b"\nend'


class TestOutputName:
    def test_app_name_placeholder(self, variables):
        assert output_name("app/graphql/__app_name___schema.rb", variables) == (
            "app/graphql/my_app_schema.rb"
        )

    def test_extension_placeholder(self, variables):
        assert output_name("src/main.__ext__x", variables) == "src/main.tsx"
        assert output_name("src/main.__ext__x", {**variables, "ext": "js"}) == "src/main.jsx"

    def test_dot_prefix(self, variables):
        assert output_name("dot_gitignore", variables) == ".gitignore"
        assert output_name("config/dot_env.example", variables) == "config/.env.example"

    def test_dot_only_at_segment_start(self, variables):
        assert output_name("lib/not_dot_file.rb", variables) == "lib/not_dot_file.rb"


# ---------------------------------------------------------------------------
# build_variables
# ---------------------------------------------------------------------------


class TestBuildVariables:
    def test_names_and_versions(self, make_config):
        variables = build_variables(make_config("my-cool-app", rails_version="7.0.8"))
        assert variables["appName"] == "MyCoolApp"
        assert variables["appNameSnake"] == "my_cool_app"
        assert variables["railsVersion"] == "7.0.8"
        assert variables["rubyVersion"] == "3.2.2"
        assert variables["ext"] == "ts"

    def test_postgresql(self, make_config):
        variables = build_variables(make_config())
        assert variables["databaseAdapter"] == "postgresql"
        assert '"pg"' in variables["DATABASE_GEM"]

    def test_sqlite(self, make_config):
        variables = build_variables(make_config(database="sqlite"))
        assert variables["databaseAdapter"] == "sqlite3"
        assert '"sqlite3"' in variables["DATABASE_GEM"]

    def test_disabled_features_produce_empty_blocks(self, make_config):
        variables = build_variables(
            make_config(
                authentication=False,
                api_documentation=False,
                linting=False,
                testing=False,
                typescript=False,
            )
        )
        for key in ("AUTHENTICATION_GEMS", "API_DOCS_GEMS", "LINTING_GEMS", "TESTING_GEMS",
                    "AUTH_ROUTES", "API_DOCS_ROUTES"):
            assert variables[key] == "", key
        assert variables["ext"] == "js"

    def test_enabled_features(self, make_config):
        variables = build_variables(make_config())
        assert "jwt" in variables["AUTHENTICATION_GEMS"]
        assert "rswag-ui" in variables["API_DOCS_GEMS"]
        assert "auth#login" in variables["AUTH_ROUTES"]


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TestTemplateRenderer:
    def test_render(self, template_dir, variables):
        renderer = TemplateRenderer(template_dir)
        assert renderer.render("demo/README.md", variables) == "# MyApp\n"

    def test_render_missing_template(self, template_dir, variables):
        with pytest.raises(FileNotFoundError, match="Template not found"):
            TemplateRenderer(template_dir).render("demo/nope.txt", variables)

    def test_list_templates(self, template_dir):
        assert TemplateRenderer(template_dir).list_templates("demo") == [
            "demo/README.md",
            "demo/bin/run",
            "demo/dot_gitignore",
            "demo/lib/__app_name__.__ext__",
        ]

    def test_list_templates_unknown_prefix(self, template_dir):
        assert TemplateRenderer(template_dir).list_templates("nothing-here") == []

    async def test_render_tree(self, template_dir, variables, tmp_path):
        out = tmp_path / "out"
        ledger = CreationLedger()

        written = await TemplateRenderer(template_dir).render_tree("demo", out, variables, ledger)

        assert sorted(p.relative_to(out).as_posix() for p in written) == [
            ".gitignore",
            "README.md",
            "bin/run",
            "lib/my_app.ts",
        ]
        assert (out / "bin" / "run").read_text(encoding="utf-8") == "#!/bin/sh\necho my-app\n"
        assert os.access(out / "bin" / "run", os.X_OK)
        assert not os.access(out / "README.md", os.X_OK)
        assert set(ledger.list_files()) == set(written)
        assert ledger.list_directories() == [out, out / "bin", out / "lib"]

    def test_default_template_tree_is_packaged(self):
        templates = TemplateRenderer().list_templates()
        assert "rails/base/Gemfile" in templates
        assert "react/base/package.json" in templates
        assert "graphql/backend/app/graphql/__app_name___schema.rb" in templates
        assert "docker/docker-compose.yml" in templates
        assert "git/dot_gitignore" in templates


# ---------------------------------------------------------------------------
# Tracked writes
# ---------------------------------------------------------------------------


class TestTrackedWrites:
    async def test_make_dirs_records_only_new_directories(self, tmp_path):
        (tmp_path / "exists").mkdir()
        ledger = CreationLedger()

        await make_dirs(tmp_path / "exists" / "a" / "b", ledger)

        assert ledger.list_directories() == [tmp_path / "exists" / "a", tmp_path / "exists" / "a" / "b"]

    async def test_write_file_records_file_and_parents(self, tmp_path):
        ledger = CreationLedger()
        path = await write_file(tmp_path / "x" / "y.txt", "hello", ledger)

        assert path.read_text(encoding="utf-8") == "hello"
        assert ledger.list_files() == [path]
        assert ledger.list_directories() == [tmp_path / "x"]

    async def test_write_without_ledger(self, tmp_path):
        path = await write_file(tmp_path / "plain.txt", "x")
        assert path.exists()
