import pytest

from requirenav.features.definition import ModulePathError, resolve_module_path
from requirenav.loader_config import LoaderConfig

CONFIG = LoaderConfig(base_url="/project/src", paths={"jquery": "vendor/jquery"})
MAIN = "/project/src/main.js"


def test_relative_sibling():
    assert resolve_module_path("./sibling", MAIN, CONFIG) == "/project/src/sibling.js"


def test_relative_parent():
    path = resolve_module_path("../lib/a", "/project/src/app/main.js", CONFIG)
    assert path == "/project/src/lib/a.js"


def test_base_relative():
    assert resolve_module_path("app/view", MAIN, CONFIG) == "/project/src/app/view.js"


def test_dotted_module_name():
    path = resolve_module_path("lib/jquery.min", MAIN, CONFIG)
    assert path == "/project/src/lib/jquery.min.js"


def test_paths_mapping():
    assert resolve_module_path("jquery", MAIN, CONFIG) == "/project/src/vendor/jquery.js"


def test_plugin_extension_appended():
    path = resolve_module_path("text!./template", MAIN, CONFIG, {"text": ".html"})
    assert path == "/project/src/template.html"


def test_plugin_extension_already_present():
    path = resolve_module_path("text!./template.html", MAIN, CONFIG, {"text": ".html"})
    assert path == "/project/src/template.html"


def test_unconfigured_plugin_keeps_resource():
    path = resolve_module_path("text!./template.txt", MAIN, CONFIG, {"css": ".css"})
    assert path == "/project/src/template.txt"


def test_leading_bang_is_not_a_plugin():
    assert resolve_module_path("!x", MAIN, CONFIG) == "/project/src/!x.js"


def test_empty_module_path():
    with pytest.raises(ModulePathError) as exc_info:
        resolve_module_path("", MAIN, CONFIG)
    assert exc_info.value.best_effort_path == "/project/src"


def test_plugin_without_resource():
    with pytest.raises(ModulePathError) as exc_info:
        resolve_module_path("text!", MAIN, CONFIG)
    assert exc_info.value.best_effort_path == "/project/src/text.js"
