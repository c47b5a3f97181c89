"""
RequireJS loader configuration.

Maps module ids to file paths the way ``requirejs.toUrl`` does, using the
``baseUrl``, ``paths`` and ``packages`` options. The options come from the
``modulePath`` setting and, optionally, from a project file containing a
``require.config({...})`` call, which is evaluated statically.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from requirenav.ast import nodes
from requirenav.ast.parser import ParseError, parse
from requirenav.ast.visitor import first_match, is_identifier, walk
from requirenav.config import Settings

logger = logging.getLogger("requirenav")

_LOADER_NAMES = ("require", "requirejs")

# Module ids that RequireJS treats as plain URLs (jsExtRegExp)
_URL_LIKE = re.compile(r"^/|:|\?|\.js$")
_PROTOCOL = re.compile(r"^[\w+.\-]+:")

_UNEVALUATED = object()


@dataclass
class LoaderConfig:
    """
    The subset of RequireJS configuration used for path resolution.

    Attributes:
        base_url: Directory that module ids are resolved against.
        paths: Module id prefix to path mapping.
        packages: Package name to the module id of its main module.
    """

    base_url: str = ""
    paths: Dict[str, Union[str, List[str]]] = field(default_factory=dict)
    packages: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, root_path: Optional[str], settings: Settings) -> "LoaderConfig":
        """
        Initialize the loader configuration for a workspace.

        The ``configFile`` setting, when present, is read once here. Read or
        parse failures are logged and leave the ``modulePath`` base in place.
        """
        root = root_path or ""
        config = cls(base_url=os.path.join(root, settings.module_path))
        if not os.path.isabs(config.base_url):
            logger.warning(
                "No workspace root: module ids resolve against the working directory "
                "(base URL %r)",
                config.base_url,
            )
        if not settings.config_file:
            return config

        config_path = os.path.join(root, settings.config_file)
        try:
            content = Path(config_path).read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Cannot read RequireJS config %s: %s", config_path, e)
            return config
        try:
            options = find_config(content)
        except ParseError as e:
            logger.warning("Cannot parse RequireJS config %s: %s", config_path, e)
            return config
        if options is None:
            logger.warning("No RequireJS configuration found in %s", config_path)
            return config

        config.update(options, root)
        logger.info("Loaded RequireJS configuration from %s", config_path)
        return config

    def update(self, options: Mapping[str, Any], root: str = "") -> None:
        """Merge ``require.config()`` options, like repeated config calls do."""
        base_url = options.get("baseUrl")
        if isinstance(base_url, str):
            self.base_url = os.path.join(root, base_url)

        paths = options.get("paths")
        if isinstance(paths, Mapping):
            for prefix, target in paths.items():
                if isinstance(target, (str, list)):
                    self.paths[prefix] = target

        packages = options.get("packages")
        if isinstance(packages, list):
            for package in packages:
                self._add_package(package)

    def _add_package(self, package: Any) -> None:
        if isinstance(package, str):
            package = {"name": package}
        if not isinstance(package, Mapping) or not isinstance(package.get("name"), str):
            return
        name = package["name"]
        location = package.get("location")
        if isinstance(location, str):
            self.paths[name] = location
        main = package.get("main")
        if not isinstance(main, str):
            main = "main"
        main = re.sub(r"^\./", "", main)
        main = re.sub(r"\.js$", "", main)
        self.packages[name] = f"{name}/{main}"

    def to_url(self, module_name_plus_ext: str) -> str:
        """Convert a module id, optionally with an extension, to a path."""
        ext = ""
        module_name = module_name_plus_ext
        index = module_name_plus_ext.rfind(".")
        segment = module_name_plus_ext.split("/")[0]
        is_relative = segment in (".", "..")
        if index != -1 and (not is_relative or index > 1):
            ext = module_name_plus_ext[index:]
            module_name = module_name_plus_ext[:index]
        return self._name_to_url(module_name, ext)

    def _name_to_url(self, module_name: str, ext: str) -> str:
        module_name = self.packages.get(module_name, module_name)
        if _URL_LIKE.search(module_name):
            return module_name + ext

        segments = module_name.split("/")
        for i in range(len(segments), 0, -1):
            parent_path = self.paths.get("/".join(segments[:i]))
            if parent_path:
                if isinstance(parent_path, list):
                    parent_path = parent_path[0]
                segments[:i] = [parent_path]
                break
        url = "/".join(segments) + ext
        if url.startswith("/") or _PROTOCOL.match(url):
            return url
        return os.path.join(self.base_url, url)


def evaluate_literal(node: Optional[nodes.BaseNode]) -> Any:
    """Statically evaluate a JSON-like expression, skipping what cannot be."""
    if isinstance(node, nodes.Literal):
        return node.value
    if isinstance(node, nodes.ArrayExpression):
        items = (evaluate_literal(element) for element in node.elements)
        return [item for item in items if item is not _UNEVALUATED]
    if isinstance(node, nodes.ObjectExpression):
        result = {}
        for prop in node.properties:
            if not isinstance(prop, nodes.Property) or prop.computed:
                continue
            if isinstance(prop.key, nodes.Identifier):
                key = prop.key.name
            elif isinstance(prop.key, nodes.Literal):
                key = str(prop.key.value)
            else:
                continue
            value = evaluate_literal(prop.value)
            if value is not _UNEVALUATED:
                result[key] = value
        return result
    return _UNEVALUATED


def _config_object(node: nodes.BaseNode) -> Optional[nodes.ObjectExpression]:
    """Return the options object of a RequireJS configuration statement."""
    if isinstance(node, nodes.CallExpression) and node.arguments:
        options = node.arguments[0]
        if not isinstance(options, nodes.ObjectExpression):
            return None
        callee = node.callee
        # require.config({...}) / requirejs.config({...})
        if (
            isinstance(callee, nodes.MemberExpression)
            and not callee.computed
            and is_identifier(callee.property, "config")
            and any(is_identifier(callee.object, name) for name in _LOADER_NAMES)
        ):
            return options
        # require({...})
        if any(is_identifier(callee, name) for name in _LOADER_NAMES):
            return options
        return None
    # var require = {...}
    if isinstance(node, nodes.VariableDeclarator) and isinstance(
        node.init, nodes.ObjectExpression
    ):
        if any(is_identifier(node.id, name) for name in _LOADER_NAMES):
            return node.init
    return None


def find_config(source: str) -> Optional[Dict[str, Any]]:
    """
    Find the first RequireJS configuration in a source file.

    Raises:
        ParseError: If the file is not valid JavaScript.
    """
    tree = parse(source)
    statement = first_match(walk(tree), lambda node: _config_object(node) is not None)
    if statement is None:
        return None
    return evaluate_literal(_config_object(statement))
