"""
CLI for running the advisor API server.
Thin wrapper around uvicorn and the application factory.
"""

import sys
import logging
import argparse

import uvicorn

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)


def main() -> int:
    """
    Main CLI entry point for the API server.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = argparse.ArgumentParser(description="Run the YC advisor chat API")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Bind address")
    parser.add_argument("--port", type=int, default=8000, help="Bind port")
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change",
    )
    args = parser.parse_args()

    try:
        logging.info(f"Starting advisor API on {args.host}:{args.port}")
        uvicorn.run(
            "yc_advisor.api.app:create_app_from_settings",
            factory=True,
            host=args.host,
            port=args.port,
            reload=args.reload,
        )
        return 0

    except ValueError as e:
        logging.error(f"Configuration error: {e}")
        return 1
    except Exception as e:
        logging.error(f"Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
