import ast
import sys
import unittest
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
_BACKEND = _REPO_ROOT / "backend"

# The only modules allowed to read `.env`; each must do so itself.
_DOTENV_ENTRYPOINTS = frozenset(
    {
        _BACKEND / "config" / "settings.py",
        _BACKEND / "infrastructure" / "config" / "settings.py",
    }
)


def _sources(root: Path):
    for path in sorted(root.rglob("*.py")):
        if "__pycache__" not in path.parts:
            yield path, ast.parse(path.read_text(encoding="utf-8"), filename=str(path))


def _imported_modules(tree: ast.AST) -> set[str]:
    found: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            found.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module and not node.level:
            found.add(node.module)
    return found


def _under(module: str, package: str) -> bool:
    return module == package or module.startswith(package + ".")


def _load_dotenv_calls(tree: ast.AST) -> list[ast.Call]:
    calls = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        func = node.func
        name = func.id if isinstance(func, ast.Name) else getattr(func, "attr", None)
        if name == "load_dotenv":
            calls.append(node)
    return calls


def _overrides(call: ast.Call) -> bool:
    return any(
        kw.arg == "override" and isinstance(kw.value, ast.Constant) and kw.value.value is True
        for kw in call.keywords
    )


class TestDotenvLoading(unittest.TestCase):
    def test_env_file_is_read_only_by_the_two_settings_modules(self) -> None:
        stray = [
            str(path.relative_to(_REPO_ROOT))
            for path, tree in _sources(_BACKEND)
            if path not in _DOTENV_ENTRYPOINTS and _load_dotenv_calls(tree)
        ]
        self.assertFalse(stray, msg=f"load_dotenv() outside the settings modules: {stray}")

    def test_settings_modules_load_env_with_override(self) -> None:
        for path in sorted(_DOTENV_ENTRYPOINTS):
            with self.subTest(module=str(path.relative_to(_REPO_ROOT))):
                tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
                calls = _load_dotenv_calls(tree)
                self.assertTrue(calls, msg="settings module must load `.env` itself")
                self.assertTrue(all(_overrides(c) for c in calls), msg="load_dotenv() needs override=True")


class TestSettingsOwnership(unittest.TestCase):
    def test_adapters_read_only_infrastructure_settings(self) -> None:
        offenders = [
            str(path.relative_to(_REPO_ROOT))
            for path, tree in _sources(_BACKEND / "infrastructure")
            if any(_under(m, "config") for m in _imported_modules(tree))
        ]
        self.assertFalse(
            offenders,
            msg=f"Adapters must use `infrastructure.config` (email, timezone), not `config.*`: {offenders}",
        )

    def test_http_and_services_never_read_adapter_settings(self) -> None:
        offenders = [
            str(path.relative_to(_REPO_ROOT))
            for root in (_BACKEND / "server", _BACKEND / "application")
            for path, tree in _sources(root)
            if any(_under(m, "infrastructure.config") for m in _imported_modules(tree))
        ]
        self.assertFalse(offenders, msg=f"Resend/timezone settings leaked upward: {offenders}")


class TestMovieDomainPurity(unittest.TestCase):
    def test_domain_movies_imports_only_stdlib_and_itself(self) -> None:
        stdlib = sys.stdlib_module_names
        offenders: list[str] = []
        for path, tree in _sources(_BACKEND / "domain" / "movies"):
            for module in sorted(_imported_modules(tree)):
                root = module.split(".", 1)[0]
                if root in stdlib or _under(module, "domain.movies"):
                    continue
                offenders.append(f"{path.relative_to(_REPO_ROOT)}: {module}")
        self.assertFalse(offenders, msg="domain.movies must stay free of I/O and frameworks:\n" + "\n".join(offenders))


if __name__ == "__main__":
    unittest.main()
