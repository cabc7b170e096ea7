"""Startup script for the Image Redaction Editor server."""

import argparse
import logging
import sys

from mosaiceditor.web.app import run_dev_server


def main() -> None:
    """Configure logging and start the development server."""
    parser = argparse.ArgumentParser(description="Run the image redaction server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    logger = logging.getLogger(__name__)
    logger.info("Image Redaction Editor")
    logger.info("API: http://%s:%d/api/redact", args.host, args.port)
    logger.info("Docs: http://%s:%d/docs", args.host, args.port)

    try:
        run_dev_server(host=args.host, port=args.port)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except (OSError, RuntimeError, ImportError) as e:
        logger.exception("Error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
