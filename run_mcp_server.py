"""
formgen MCP Server Entry Point.

Run the MCP server with either stdio or SSE transport.

Usage:
    # stdio mode (desktop clients)
    python run_mcp_server.py --transport stdio

    # SSE mode (for Docker/remote)
    python run_mcp_server.py --transport sse --port 8080

    # Use environment variables
    MCP_TRANSPORT=sse MCP_PORT=8080 python run_mcp_server.py
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add src to path for local development
sys.path.insert(0, str(Path(__file__).parent / "src"))

from formgen.config import get_config
from formgen.mcp_server import run_mcp_server
from formgen.providers.client import get_provider_client
from formgen.tracing import configure_logging

logger = logging.getLogger("formgen-mcp")


def main():
    """Main entry point."""
    config = get_config()

    parser = argparse.ArgumentParser(
        description="formgen MCP Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Desktop client (stdio)
  python run_mcp_server.py --transport stdio

  # Docker/Remote (SSE)
  python run_mcp_server.py --transport sse --port 8080

Environment Variables:
  MCP_TRANSPORT           Transport type: stdio or sse (default: stdio)
  MCP_PORT                Port for SSE transport (default: 8080)
  GEMINI_API_KEY          Gemini API key
  GROQ_API_KEY            Groq API key
  OPENAI_API_KEY          OpenAI API key
  FORMGEN_PROVIDER_ORDER  Provider priority (default: gemini,groq,openai)
        """,
    )

    parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default=config.mcp_transport,
        help=f"Transport type (default: {config.mcp_transport})",
    )

    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Host for SSE transport (default: 0.0.0.0)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=config.mcp_port,
        help=f"Port for SSE transport (default: {config.mcp_port})",
    )

    parser.add_argument(
        "--log-level",
        default=config.log_level,
        help=f"Logging level (default: {config.log_level})",
    )

    args = parser.parse_args()

    # Logs go to stderr; stdout belongs to the stdio transport
    configure_logging(args.log_level)
    logger.info("Transport: %s", args.transport)
    if args.transport == "sse":
        logger.info("Listening on %s:%d", args.host, args.port)
    logger.info("Providers: %s", ", ".join(get_provider_client().available_providers()) or "none")

    try:
        asyncio.run(
            run_mcp_server(
                transport=args.transport,
                host=args.host,
                port=args.port,
            )
        )
    except KeyboardInterrupt:
        logger.info("Server stopped.")
    except Exception as e:
        logger.error("Error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
