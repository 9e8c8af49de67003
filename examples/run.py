import argparse
import logging
import tempfile
import time
from dataclasses import replace
from pathlib import Path

from camrouter.app import Application
from camrouter.config import load_config
from camrouter.utils import get_setting

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Cycle the robot zone and watch the aliases move")
    parser.add_argument("--config", type=str, default=str(Path(__file__).with_name("frc.json")),
                        help="Path to camera config")
    parser.add_argument("--zones", nargs="+", type=float, default=[1, 2, 3, 50],
                        help="Zone values to publish in order")
    parser.add_argument("--hold", type=float, default=None, help="Seconds to hold each zone")
    args = parser.parse_args()

    config = load_config(args.config)
    hold = float(get_setting(args.hold, None, 1.0))

    with tempfile.TemporaryDirectory() as alias_dir:
        # Keep the aliases out of /dev so no root access is needed
        routing = replace(config.routing,
                          left_alias=str(Path(alias_dir) / "leftCam"),
                          right_alias=str(Path(alias_dir) / "rightCam"),
                          use_sudo=False)
        app = Application(replace(config, routing=routing))
        app.start()
        try:
            for zone in args.zones:
                logger.info(f"Publishing zone {zone}")
                app.context.bus.put(routing.zone_key, zone)
                time.sleep(hold)
                logger.info(f"Routing state: {app.router.state}")
        finally:
            app.stop()


if __name__ == "__main__":
    main()
