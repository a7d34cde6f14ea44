"""
Command-line interface for the Zotero Web MCP server.
"""

import argparse
import asyncio
import sys

from zotero_web_mcp.clients.translation import get_translation_client
from zotero_web_mcp.clients.zotero import get_cache_dir, get_zotero_client
from zotero_web_mcp.settings import ZoteroSettings, get_settings
from zotero_web_mcp.utils.errors import ZoteroMCPError
from zotero_web_mcp.utils.logging_config import initialize_logging


def obfuscate_sensitive_value(value: str | None, keep_chars: int = 4) -> str | None:
    """Obfuscate sensitive values by showing only the first few characters."""
    if not value or not isinstance(value, str):
        return value
    if len(value) <= keep_chars:
        return "*" * len(value)
    return value[:keep_chars] + "*" * (len(value) - keep_chars)


def describe_settings(settings: ZoteroSettings) -> dict[str, str]:
    """Settings as display strings, with the API key obfuscated."""
    return {
        "ZOTERO_API_KEY": obfuscate_sensitive_value(settings.api_key) or "<not set>",
        "ZOTERO_USER_ID": settings.user_id or "<not set>",
        "ZOTERO_GROUP_ID": settings.group_id or "<not set>",
        "Library": f"{settings.library_type}/{settings.library_id or '<unset>'}",
        "API base URL": settings.api_base_url,
        "Cache directory": str(get_cache_dir(settings.cache_dir)),
        "Translation server": settings.translation_server_url,
    }


async def _check(settings: ZoteroSettings) -> int:
    print("=== Zotero Web MCP Configuration ===")
    for name, value in describe_settings(settings).items():
        print(f"{name}: {value}")
    print()

    status = 0
    try:
        client = get_zotero_client()
        try:
            version = await client.get_library_version()
            print(f"Zotero Web API: OK (library version {version})")
        finally:
            await client.close()
    except ZoteroMCPError as e:
        print(f"Zotero Web API: FAILED - {e}")
        status = 1

    translation = get_translation_client()
    try:
        if await translation.is_available():
            print(f"Translation server: available at {translation.base_url}")
        else:
            print(
                f"Translation server: not reachable at {translation.base_url} "
                "(start it with: docker run -d -p 1969:1969 zotero/translation-server)"
            )
    finally:
        await translation.close()

    return status


async def _clear_cache(item_key: str | None) -> int:
    try:
        client = get_zotero_client()
    except ZoteroMCPError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    await client.clear_attachment_cache(item_key)
    target = item_key or "all attachments"
    print(f"Cleared attachment cache for {target} in {client.cache.library_dir}")
    return 0


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Zotero Web API Model Context Protocol server"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Server command
    subparsers.add_parser("serve", help="Run the MCP server over stdio (default)")

    # Check command
    subparsers.add_parser(
        "check", help="Show configuration and test the API and translation server"
    )

    # Clear cache command
    clear_parser = subparsers.add_parser(
        "clear-cache", help="Remove downloaded attachment files"
    )
    clear_parser.add_argument(
        "--item-key", help="Only clear this attachment (default: whole library)"
    )

    # Version command
    subparsers.add_parser("version", help="Print version information")

    args = parser.parse_args()

    initialize_logging()

    if not args.command:
        args.command = "serve"

    if args.command == "version":
        from zotero_web_mcp import __version__

        print(f"Zotero Web MCP v{__version__}")
        sys.exit(0)

    elif args.command == "check":
        sys.exit(asyncio.run(_check(get_settings())))

    elif args.command == "clear-cache":
        sys.exit(asyncio.run(_clear_cache(args.item_key)))

    elif args.command == "serve":
        from zotero_web_mcp.server import run

        run()


if __name__ == "__main__":
    main()
