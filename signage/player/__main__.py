import argparse
import logging
import os

from signage.player.client import PlayerClient


def main() -> int:
    parser = argparse.ArgumentParser(description="Headless signage player")
    parser.add_argument("--server", default=os.getenv("SIGNAGE_SERVER_URL", "http://127.0.0.1:8000"))
    parser.add_argument("--screen-id", required=True, help="Screen to play")
    parser.add_argument("--log-level", default=os.getenv("SIGNAGE_LOG_LEVEL", "INFO"))
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    client = PlayerClient(args.server, args.screen_id)
    try:
        client.run()
    except KeyboardInterrupt:
        logging.info("Player stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
