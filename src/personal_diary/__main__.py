"""Entry point for the personal-diary MCP server."""

from personal_diary.server import create_server


def main() -> None:
    """Run the personal-diary MCP server."""
    server = create_server()
    server.run(transport="stdio")


if __name__ == "__main__":
    main()
