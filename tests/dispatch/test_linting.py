"""Tests for the lint dispatcher."""

from conftest import FakeRunner, make_which, write
from polyci.core.config import Settings
from polyci.detector.types import Classification, Language
from polyci.dispatch.linting import LintDispatcher


def _dispatcher(tmp_path, runner, *languages, fix=False, tools=()):
    return LintDispatcher(
        tmp_path,
        Classification(languages=tuple(languages)),
        Settings(_env_file=None, fix=fix),
        runner=runner,
        which=make_which(*tools),
        env={"PATH": "/usr/bin"},
    )


class TestNodeLinters:
    def test_eslint_without_config_is_skipped(self, tmp_path, runner):
        summary = _dispatcher(tmp_path, runner, Language.JAVASCRIPT, tools=("eslint",)).run()

        assert runner.calls == []
        assert summary.run == 0
        assert summary.exit_code() == 0

    def test_local_eslint_with_fix(self, tmp_path, runner):
        write(tmp_path, "node_modules/.bin/eslint")
        write(tmp_path, "eslint.config.mjs")
        _dispatcher(tmp_path, runner, Language.JAVASCRIPT, fix=True).run()
        assert runner.lines == ["npx eslint . --fix"]

    def test_prettier_check_and_write(self, tmp_path, runner):
        write(tmp_path, ".prettierrc")
        _dispatcher(tmp_path, runner, Language.JAVASCRIPT, tools=("prettier",)).run()
        _dispatcher(tmp_path, runner, Language.JAVASCRIPT, fix=True, tools=("prettier",)).run()
        assert runner.lines == ["prettier --check .", "prettier --write ."]

    def test_typescript_type_check_runs_once(self, tmp_path, runner):
        write(tmp_path, "tsconfig.json", "{}")
        summary = _dispatcher(
            tmp_path, runner, Language.JAVASCRIPT, Language.TYPESCRIPT
        ).run()
        assert runner.lines == ["npx tsc --noEmit"]
        assert summary.run == 1

    def test_eslint_failure_does_not_stop_prettier(self, tmp_path):
        write(tmp_path, ".eslintrc.json", "{}")
        write(tmp_path, ".prettierrc.json", "{}")
        runner = FakeRunner(exit_codes={"eslint .": 1})
        summary = _dispatcher(
            tmp_path, runner, Language.JAVASCRIPT, tools=("eslint", "prettier")
        ).run()

        assert runner.lines == ["eslint .", "prettier --check ."]
        assert (summary.passed, summary.failed) == (1, 1)
        assert summary.exit_code() == 1


class TestPythonLinters:
    def test_first_available_linter_then_formatter_and_types(self, tmp_path, runner):
        write(tmp_path, "pyproject.toml")
        _dispatcher(
            tmp_path, runner, Language.PYTHON, tools=("ruff", "flake8", "black", "mypy")
        ).run()
        assert runner.lines == ["ruff check .", "black --check .", "mypy ."]

    def test_fix_mode(self, tmp_path, runner):
        _dispatcher(tmp_path, runner, Language.PYTHON, fix=True, tools=("ruff", "black")).run()
        assert runner.lines == ["ruff check --fix .", "black ."]

    def test_mypy_needs_config(self, tmp_path, runner):
        _dispatcher(tmp_path, runner, Language.PYTHON, tools=("flake8", "mypy")).run()
        assert runner.lines == ["flake8 ."]

    def test_pylint_skips_virtualenv_files(self, tmp_path, runner):
        write(tmp_path, "app/main.py")
        write(tmp_path, ".venv/lib/site.py")
        _dispatcher(tmp_path, runner, Language.PYTHON, tools=("pylint",)).run()
        assert runner.lines == ["pylint --exit-zero app/main.py"]


class TestOtherLinters:
    def test_rubocop_only_when_in_gemfile(self, tmp_path, runner):
        write(tmp_path, "Gemfile", "gem 'rails'\n")
        _dispatcher(tmp_path, runner, Language.RUBY).run()
        assert runner.calls == []

        write(tmp_path, "Gemfile", "gem 'rubocop', require: false\n")
        _dispatcher(tmp_path, runner, Language.RUBY, fix=True).run()
        assert runner.lines == ["bundle exec rubocop -a"]

    def test_go_vet_fallback_and_gofmt_clean(self, tmp_path):
        runner = FakeRunner(stdout={"gofmt -l .": ""})
        summary = _dispatcher(tmp_path, runner, Language.GO, tools=("go", "gofmt")).run()

        assert runner.lines == ["go vet ./...", "gofmt -l ."]
        assert runner.calls[1].capture is True
        assert summary.passed == 2

    def test_gofmt_reports_unformatted_outside_vendor(self, tmp_path):
        runner = FakeRunner(stdout={"gofmt -l .": "vendor/x/y.go\nmain.go\n"})
        summary = _dispatcher(tmp_path, runner, Language.GO, tools=("gofmt",)).run()

        assert summary.failed == 1
        assert summary.records[-1].detail == "main.go"

    def test_gofmt_ignores_vendor_only_output(self, tmp_path):
        runner = FakeRunner(stdout={"gofmt -l .": "vendor/x/y.go\n"})
        summary = _dispatcher(tmp_path, runner, Language.GO, tools=("gofmt",)).run()
        assert summary.exit_code() == 0

    def test_gofmt_fix_rewrites(self, tmp_path):
        runner = FakeRunner(stdout={"gofmt -l .": "main.go\n"})
        summary = _dispatcher(tmp_path, runner, Language.GO, fix=True, tools=("gofmt",)).run()

        assert runner.lines == ["gofmt -l .", "gofmt -w ."]
        assert summary.passed == 1

    def test_rust_fmt_and_clippy_are_independent(self, tmp_path):
        write(tmp_path, "Cargo.toml")
        runner = FakeRunner(exit_codes={"cargo fmt --check": 1})
        summary = _dispatcher(tmp_path, runner, Language.RUST).run()

        assert runner.lines == ["cargo fmt --check", "cargo clippy -- -D warnings"]
        assert (summary.passed, summary.failed) == (1, 1)

    def test_php_cs_fixer_dry_run(self, tmp_path, runner):
        write(tmp_path, "vendor/bin/php-cs-fixer")
        write(tmp_path, "vendor/bin/phpstan")
        _dispatcher(tmp_path, runner, Language.PHP).run()
        assert runner.lines == ["./vendor/bin/php-cs-fixer fix --dry-run --diff"]


class TestShellcheck:
    def test_runs_without_shell_language(self, tmp_path, runner):
        write(tmp_path, "scripts/deploy.sh")
        write(tmp_path, "node_modules/pkg/install.sh")
        write(tmp_path, "vendor/tool/run.bash")
        _dispatcher(tmp_path, runner, tools=("shellcheck",)).run()
        assert runner.lines == ["shellcheck scripts/deploy.sh"]

    def test_runs_once_with_shell_language(self, tmp_path, runner):
        write(tmp_path, "a.sh")
        _dispatcher(tmp_path, runner, Language.SHELL, tools=("shellcheck",)).run()
        assert runner.lines == ["shellcheck a.sh"]

    def test_not_installed(self, tmp_path, runner):
        write(tmp_path, "a.sh")
        summary = _dispatcher(tmp_path, runner, Language.SHELL).run()
        assert runner.calls == []
        assert summary.run == 0
