# main.py - Steam Grid Manager plugin entry
#
# Thin async layer the frontend calls into; all work lives in GridService.

import asyncio

import decky

import config
from grid_service import GridService


class Plugin:
    """Steam Grid Manager plugin."""

    grid_service = None

    async def _main(self):
        decky.logger.info("Steam Grid Manager plugin initialized")
        config.logger.info("Steam Grid Manager plugin initialized")

        self.grid_service = GridService()
        try:
            config.logger.info("Steam root: %s", self.grid_service.steam_root)
        except FileNotFoundError as exc:
            decky.logger.warning(f"Steam root not found yet: {exc}")

        while True:
            await asyncio.sleep(60)

    async def _unload(self):
        decky.logger.info("Unloading Steam Grid Manager plugin")
        self.grid_service = None

    async def _uninstall(self):
        decky.logger.info("Uninstalling Steam Grid Manager plugin")

    def _get_grid_service(self) -> GridService:
        if self.grid_service is None:
            self.grid_service = GridService()
        return self.grid_service

    # ------------------------- paths -------------------------

    async def get_grids_directory(self, user_id: str) -> dict:
        try:
            path = self._get_grid_service().get_grids_directory(user_id)
            return {"status": "success", "path": path}
        except Exception as exc:
            return {"status": "error", "message": str(exc), "path": ""}

    async def get_library_cache_directory(self) -> dict:
        try:
            path = self._get_grid_service().get_library_cache_directory()
            return {"status": "success", "path": path}
        except Exception as exc:
            return {"status": "error", "message": str(exc), "path": ""}

    async def get_appinfo_path(self) -> dict:
        try:
            path = self._get_grid_service().get_appinfo_path()
            return {"status": "success", "path": path}
        except Exception as exc:
            return {"status": "error", "message": str(exc), "path": ""}

    # ------------------------- VDF readers -------------------------

    async def read_appinfo_vdf(self) -> dict:
        """App id -> appinfo subtree."""
        try:
            return await self._get_grid_service().read_appinfo_vdf()
        except Exception as exc:
            decky.logger.error(f"Reading appinfo.vdf failed: {exc}")
            return {"error": str(exc)}

    async def read_shortcuts_vdf(self, user_id: str) -> dict:
        """Ordinal -> shortcut record."""
        try:
            return await self._get_grid_service().read_shortcuts_vdf(user_id)
        except Exception as exc:
            decky.logger.error(f"Reading shortcuts.vdf failed: {exc}")
            return {"error": str(exc)}

    async def read_localconfig_vdf(self, user_id: str):
        """App ids known to the user's local config."""
        try:
            return await self._get_grid_service().read_localconfig_vdf(user_id)
        except Exception as exc:
            decky.logger.error(f"Reading localconfig.vdf failed: {exc}")
            return {"error": str(exc)}

    # ------------------------- writers -------------------------

    async def save_changes(
        self,
        user_id: str,
        current_art=None,
        original_art=None,
        shortcuts=None,
        shortcut_icons=None,
        original_shortcut_icons=None,
        changed_logo_positions=None,
    ):
        """Apply grid edits; a list of changed paths, or ``{"error": ...}``."""
        try:
            return await self._get_grid_service().save_changes(
                user_id,
                current_art,
                original_art,
                shortcuts,
                shortcut_icons,
                original_shortcut_icons,
                changed_logo_positions,
            )
        except Exception as exc:
            decky.logger.error(f"Saving grid changes failed: {exc}")
            return {"error": str(exc)}

    async def write_shortcuts(self, user_id: str, shortcuts=None) -> bool:
        try:
            return await self._get_grid_service().write_shortcuts(user_id, shortcuts)
        except Exception as exc:
            decky.logger.error(f"Writing shortcuts failed: {exc}")
            return False

    async def download_grid(self, url: str, dest_path: str) -> bool:
        try:
            return await self._get_grid_service().download_grid(url, dest_path)
        except Exception as exc:
            decky.logger.error(f"Downloading grid failed: {exc}")
            return False
