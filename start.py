"""
Start script for the sign alert API server.
"""
import argparse
import logging
import sys


def main():
    parser = argparse.ArgumentParser(description="Run the sign alert API server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger = logging.getLogger("signalert")

    try:
        import uvicorn
        from signalert.backend.api.routes import app
    except ImportError as e:
        logger.error("Import error: %s", e)
        logger.error("Please install dependencies: pip install -e .")
        sys.exit(1)

    logger.info("Starting server on http://%s:%d", args.host, args.port)
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level="info"
    )


if __name__ == "__main__":
    main()
