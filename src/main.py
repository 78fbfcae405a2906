"""
Touchless Cursor - Main Application
=====================================

Entry point for both processes of the system:

    track   camera -> hand landmarks -> classify/stabilize -> WebSocket
    relay   WebSocket -> OS pointer moves and clicks

Run the relay first (it owns the pointer), then the tracker.
"""

import argparse
import asyncio
import logging
import signal

from core.events import EventBus
from utils.config import Config, DEFAULT_CONFIG_PATH
from utils.logger import setup_logging, StatusLogger

logger = logging.getLogger(__name__)


def _install_stop_handlers(stop_event: asyncio.Event) -> None:
    """Route SIGINT/SIGTERM to stop_event."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops: fall back to plain signal handlers
            signal.signal(sig, lambda signum, frame: loop.call_soon_threadsafe(stop_event.set))


async def run_tracker(config: Config) -> int:
    """Run a tracker session until interrupted."""
    from capture.camera import Camera, CameraConfig
    from detection.hand_detector import HandDetector, HandDetectorConfig
    from recognition.geometry import GeometryClassifier, GeometryConfig
    from recognition.stabilizer import StabilizerConfig, TemporalStabilizer
    from session.tracker import TrackerSession, TrackingConfig
    from transport.publisher import DetectionPublisher, TransportConfig

    bus = EventBus()
    StatusLogger().attach(bus)

    session = TrackerSession(
        camera=Camera(CameraConfig.from_dict(config.camera)),
        detector=HandDetector(HandDetectorConfig.from_dict(config.mediapipe)),
        publisher=DetectionPublisher(TransportConfig.from_dict(config.transport), bus=bus),
        bus=bus,
        config=TrackingConfig.from_dict(config.tracking),
        classifier=GeometryClassifier(GeometryConfig.from_dict(config.tracking)),
        stabilizer=TemporalStabilizer(StabilizerConfig.from_dict(config.tracking)),
    )

    stop_event = asyncio.Event()
    _install_stop_handlers(stop_event)

    if not await session.start():
        await session.stop()
        return 1

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down tracker...")
        await session.stop()
    return 0


async def run_cursor_relay(config: Config) -> int:
    """Run the cursor relay until interrupted."""
    from control.cursor_actuator import ActuatorConfig, CursorActuator
    from transport.publisher import TransportConfig
    from transport.relay import run_relay

    actuator = CursorActuator(ActuatorConfig.from_dict(config.actuator))

    stop_event = asyncio.Event()
    _install_stop_handlers(stop_event)

    await run_relay(TransportConfig.from_dict(config.transport), actuator, stop_event)
    logger.info("Relay shut down after %d clicks", actuator.click_count)
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Touchless Cursor - hand tracking mouse control",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  relay     - Own the OS pointer; apply messages from the tracker
  track     - Run the webcam hand tracker and stream results to the relay

Examples:
  touchless-cursor --mode relay
  touchless-cursor --mode track --debug
  touchless-cursor --mode track --config custom_config.yaml
        """
    )

    parser.add_argument(
        "--mode", "-m",
        choices=["track", "relay"],
        default="track",
        help="Process to run"
    )

    parser.add_argument(
        "--config", "-c",
        default=DEFAULT_CONFIG_PATH,
        help="Path to configuration file"
    )

    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write a rotating log file"
    )

    args = parser.parse_args(argv)

    config = Config().load(args.config)

    level = "DEBUG" if args.debug else config.get("logging.level", "INFO")
    setup_logging(level=level, log_file=args.log_file or config.get("logging.file"))

    logger.info("Starting %s mode", args.mode)
    if args.mode == "relay":
        return asyncio.run(run_cursor_relay(config))
    return asyncio.run(run_tracker(config))


if __name__ == "__main__":
    raise SystemExit(main())
