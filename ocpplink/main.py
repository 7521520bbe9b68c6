"""
Main entry point for the OCPP 2.0.1 CSMS with its command line interface.
"""

import asyncio
import sys

from loguru import logger

from ocpplink import config
from ocpplink.csms_cli import CSMSCommandLine
from ocpplink.endpoint import CSMS
from ocpplink.handlers.csms import CSMSHandler

_logging_configured = False


def configure_logging(filename: str = "ocpp_server.log", level: str = config.LOG_LEVEL):
    """Log to stderr and to a daily rotated file under LOG_DIR."""
    global _logging_configured
    if _logging_configured:
        return
    logger.remove()
    logger.add(sys.stderr, level=level)
    logger.add(
        config.LOG_DIR / filename,
        rotation="1 day",
        retention="7 days",
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
    )
    _logging_configured = True


def check_basic_auth(station_id: str, username: str, password: str) -> bool:
    """Accept stations presenting the configured credentials."""
    return username == config.BASIC_AUTH_USER and password == (config.BASIC_AUTH_PASSWORD or "")


def build_csms(handler: CSMSHandler) -> CSMS:
    csms = CSMS()
    handler.register(csms)
    csms.set_new_charging_station_handler(
        lambda station_id: logger.info(f"New charging station {station_id} connected")
    )
    csms.set_charging_station_disconnected_handler(handler.station_disconnected)
    if config.BASIC_AUTH_USER:
        csms.set_basic_auth_handler(check_basic_auth)
    return csms


async def main(with_cli: bool = True):
    """Start the CSMS, and the command interface when requested."""
    configure_logging()
    handler = CSMSHandler()
    csms = build_csms(handler)
    await csms.start(config.HOST, config.PORT, config.LISTEN_PATH)

    try:
        if with_cli:
            await CSMSCommandLine(csms, handler).start()
        else:
            await asyncio.Event().wait()
    finally:
        await csms.stop()


if __name__ == "__main__":
    try:
        asyncio.run(main(with_cli="--no-cli" not in sys.argv))
    except KeyboardInterrupt:
        print("\n👋 Server stopped.")
