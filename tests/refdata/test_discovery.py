import sys
import textwrap

import pytest

from refdata.discovery import discover_resource_types, resolve_modules, scan

TABLES = textwrap.dedent(
    """
    from refdata import resource

    from helper_mod import Imported


    @resource(name="Weapon", indexes=["kind"])
    class Weapon:
        pass


    @resource(name="Armor")
    class Armor:
        pass


    class NotManaged:
        pass
    """
)

HELPER = textwrap.dedent(
    """
    from refdata import resource


    @resource(name="Imported")
    class Imported:
        pass
    """
)


@pytest.fixture
def game_package(tmp_path):
    pkg = tmp_path / "game_refdata"
    (pkg / "tables").mkdir(parents=True)
    (pkg / "__init__.py").write_text("")
    (pkg / "tables" / "__init__.py").write_text("")
    (pkg / "tables" / "gear.py").write_text(TABLES)
    (pkg / "tables" / "mobs.py").write_text(
        "from refdata import resource\n\n\n@resource(name='Mob')\nclass Mob:\n    pass\n"
    )
    (tmp_path / "helper_mod.py").write_text(HELPER)
    sys.path.insert(0, str(tmp_path))
    try:
        yield "game_refdata"
    finally:
        sys.path.remove(str(tmp_path))
        for name in list(sys.modules):
            if name.startswith("game_refdata") or name == "helper_mod":
                sys.modules.pop(name, None)


def test_scan_collects_marked_classes_defined_in_module(game_package):
    result = scan([f"{game_package}.tables.gear"])

    assert result.imported == [f"{game_package}.tables.gear"]
    assert [cls.__name__ for cls in result.types] == ["Weapon", "Armor"]


def test_missing_modules_are_skipped(game_package):
    types = discover_resource_types(["does_not_exist.tables", f"{game_package}.tables.mobs", ""])

    assert [cls.__name__ for cls in types] == ["Mob"]


def test_glob_patterns_expand_over_sys_path(game_package):
    modules = resolve_modules([f"{game_package}.tables.*"])

    assert f"{game_package}.tables.gear" in modules
    assert f"{game_package}.tables.mobs" in modules
    types = discover_resource_types([f"{game_package}.tables.*"])
    assert [cls.__name__ for cls in types] == ["Weapon", "Armor", "Mob"]


def test_duplicate_module_paths_are_scanned_once(game_package):
    result = scan([f"{game_package}.tables.mobs", f"{game_package}.tables.mobs"])
    assert result.imported == [f"{game_package}.tables.mobs"]
    assert len(result.types) == 1


def test_import_errors_in_existing_modules_propagate(tmp_path):
    (tmp_path / "broken_tables.py").write_text("raise RuntimeError('boom')\n")
    sys.path.insert(0, str(tmp_path))
    try:
        with pytest.raises(RuntimeError):
            scan(["broken_tables"])
    finally:
        sys.path.remove(str(tmp_path))
        sys.modules.pop("broken_tables", None)
