"""
Requirenav - RequireJS Language Server.

This module provides the main entry point for the language server, which
answers go-to-definition requests for identifiers imported through AMD
``define``/``require`` dependency arrays.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Optional

from lsprotocol import types
from pygls import uris
from pygls.cli import start_server
from pygls.exceptions import JsonRpcException
from pygls.lsp.server import LanguageServer

from requirenav import __version__, utils
from requirenav.config import CONFIG_SECTION, Settings
from requirenav.features.definition import DefinitionProvider, SourceDocument
from requirenav.loader_config import LoaderConfig
from requirenav.logger_setup import parse_level, set_level, setup_logging

logger = logging.getLogger("requirenav")


def read_source_document(path: str) -> SourceDocument:
    """
    Read a file that is not open in the editor.

    The modification time stands in for the document version.

    Raises:
        OSError: If the file is missing or unreadable.
    """
    file = Path(path)
    revision = file.stat().st_mtime_ns
    return SourceDocument(path=path, text=file.read_text(encoding="utf-8"), revision=revision)


class RequireLanguageServer(LanguageServer):
    """Language server implementation for RequireJS (AMD) projects."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.logger = setup_logging(self)
        self.logger.info("RequireJS Language Server starting...")
        self.settings = Settings()
        self.provider = DefinitionProvider(self.load_document, self.settings)

    async def load_document(self, path: str) -> SourceDocument:
        """Return an open document's buffer, or the file contents from disk."""
        uri = uris.from_fs_path(path)
        doc = self.workspace.text_documents.get(uri) if uri else None
        if doc is not None:
            return SourceDocument(
                path=path,
                text=doc.source,
                revision=doc.version,
                language_id=doc.language_id,
            )
        return await asyncio.to_thread(read_source_document, path)

    def apply_settings(self, options: Optional[Any]) -> None:
        """
        (Re)initialize the server from client settings.

        Rebuilds the RequireJS loader configuration and clears all caches.
        """
        self.settings = Settings.from_client(options)
        set_level(parse_level(self.settings.log_level))
        loader_config = LoaderConfig.from_settings(self.workspace.root_path, self.settings)
        self.provider.configure(self.settings, loader_config)
        self.logger.debug("Applied settings: %s", self.settings)

    async def pull_settings(self) -> Optional[Any]:
        """
        Request the ``requireModuleSupport`` section with workspace/configuration.

        Returns None when the client cannot answer the request.
        """
        workspace_capabilities = self.client_capabilities.workspace
        if workspace_capabilities is None or not workspace_capabilities.configuration:
            return None
        params = types.ConfigurationParams(
            items=[types.ConfigurationItem(section=CONFIG_SECTION)]
        )
        try:
            results = await self.workspace_configuration_async(params)
        except JsonRpcException as e:
            self.logger.warning("Cannot fetch client configuration: %s", e)
            return None
        return results[0] if results else None


server = RequireLanguageServer("requirenav", f"v{__version__}")


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------


@server.feature(types.INITIALIZE)
def initialize(ls: RequireLanguageServer, params: types.InitializeParams) -> None:
    """Read settings passed as initialization options."""
    ls.apply_settings(params.initialization_options)


@server.feature(types.WORKSPACE_DID_CHANGE_CONFIGURATION)
async def did_change_configuration(
    ls: RequireLanguageServer, params: types.DidChangeConfigurationParams
) -> None:
    """Reinitialize the loader configuration and drop cached modules."""
    ls.logger.debug("Configuration changed")
    options = params.settings
    if options is None:
        # Pull-model clients send an empty notification
        options = await ls.pull_settings()
        if options is None:
            ls.logger.debug("No settings received, keeping the current configuration")
            return
    ls.apply_settings(options)


# -----------------------------------------------------------------------------
# Navigation Features
# -----------------------------------------------------------------------------


@server.feature(types.TEXT_DOCUMENT_DEFINITION)
async def goto_definition(
    ls: RequireLanguageServer, params: types.DefinitionParams
) -> Optional[types.Location]:
    """Jump to the definition of the dependency symbol at the cursor."""
    ls.logger.debug("Definition requested: %s", params.text_document.uri)
    doc = ls.workspace.get_text_document(params.text_document.uri)
    # Client columns are UTF-16 code units, tree columns are code points
    position = doc.position_codec.position_from_client_units(doc.lines, params.position)
    resolved = await ls.provider.provide_definition(
        doc.path,
        doc.source,
        doc.version,
        position.line,
        position.character,
    )
    if resolved is None:
        return None
    location = utils.location_from_resolved(resolved)
    if location is None or resolved.range is None:
        return location
    target = ls.workspace.get_text_document(location.uri)
    location.range = target.position_codec.range_to_client_units(target.lines, location.range)
    return location


# -----------------------------------------------------------------------------
# Entry Point
# -----------------------------------------------------------------------------


def main() -> None:
    """Start the RequireJS language server."""
    start_server(server)
