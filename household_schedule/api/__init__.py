"""aiohttp HTTP surface for schedule materialization."""
