"""
Retail occupancy monitor.

Starts one camera stream per configured branch, tracks people frame to frame
and keeps live in/out counters per branch, served over a small REST API.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --no-streams: Serve the API without starting camera streams
"""

import argparse
import logging
import sys
import threading
import time
from typing import Any, Dict, Optional, Tuple

import uvicorn

from models.branch import CAMERA_OFFLINE, CAMERA_ONLINE
from models.config import Config
from occupancy.store import OccupancyStore
from ops.logging import setup_logging
from runtime.streams import StreamManager
from web.app import create_app
from web.services.config_service import ConfigService
from web.state import state as web_state


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        return ConfigService.load_effective_config(config_path)
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['branches', 'detection', 'tracking', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Branches
    branches = config.get('branches')
    if not isinstance(branches, list) or not branches:
        return False, "branches must be a non-empty list"
    seen_ids = set()
    for i, branch in enumerate(branches):
        if not isinstance(branch, dict) or not branch.get('id'):
            return False, f"branches[{i}].id is required"
        branch_id = str(branch['id'])
        if branch_id in seen_ids:
            return False, f"Duplicate branch id: {branch_id}"
        seen_ids.add(branch_id)
        if branch.get('camera_status', CAMERA_ONLINE) not in (CAMERA_ONLINE, CAMERA_OFFLINE):
            return False, f"branches[{i}].camera_status must be one of: online, offline"
        camera = branch.get('camera')
        if camera is not None and not isinstance(camera, dict):
            return False, f"branches[{i}].camera must be a mapping"
        if camera and 'device_id' in camera and not isinstance(camera['device_id'], (int, str)):
            return False, f"branches[{i}].camera.device_id must be an integer (index) or string (URL/path)"

    # Camera defaults
    camera = config.get('camera', {}) or {}
    if camera.get('backend', 'opencv') != 'opencv':
        return False, "camera.backend must be: opencv"
    if 'resolution' in camera:
        res = camera['resolution']
        if not isinstance(res, list) or len(res) != 2 or not all(isinstance(x, int) and x > 0 for x in res):
            return False, "camera.resolution must be a list of two positive integers [width, height]"
    if 'fps' in camera and (not isinstance(camera['fps'], int) or camera['fps'] <= 0):
        return False, "camera.fps must be a positive integer"

    # Detection
    detection = config.get('detection', {}) or {}
    if detection.get('backend', 'yolo') != 'yolo':
        return False, "detection.backend must be: yolo"
    if not isinstance(detection.get('model'), str) or not detection.get('model'):
        return False, "detection.model is required"
    if 'score_threshold' in detection:
        thr = detection['score_threshold']
        if not _is_number(thr) or not (0 <= thr < 1):
            return False, "detection.score_threshold must be a number in [0, 1)"

    # Tracking
    tracking = config.get('tracking', {}) or {}
    if 'match_distance_px' in tracking:
        if not _is_number(tracking['match_distance_px']) or tracking['match_distance_px'] <= 0:
            return False, "tracking.match_distance_px must be a positive number"
    if 'inactivity_timeout_s' in tracking:
        if not _is_number(tracking['inactivity_timeout_s']) or tracking['inactivity_timeout_s'] <= 0:
            return False, "tracking.inactivity_timeout_s must be a positive number"

    # Web
    web = config.get('web', {}) or {}
    if 'port' in web and (not isinstance(web['port'], int) or not (0 < web['port'] < 65536)):
        return False, "web.port must be an integer between 1 and 65535"

    # Log settings
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Retail Occupancy Monitor')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--no-streams', action='store_true',
                        help='Serve the API without starting camera streams')
    args = parser.parse_args()

    raw_config = load_config(args.config)

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(raw_config['log_path'], raw_config['log_level'])
    config = Config.from_dict(raw_config)
    logging.info(f"Starting Retail Occupancy Monitor ({len(config.branches)} branches)")

    store = OccupancyStore.from_config(config)
    streams = StreamManager(config, store)

    web_state.set_store(store)
    web_state.set_streams(streams)
    web_state.set_config(raw_config, args.config)

    def run_web_app():
        uvicorn.run(
            create_app(),
            host=config.web.host,
            port=config.web.port,
            log_level="info",
        )

    web_thread = threading.Thread(target=run_web_app, daemon=True)
    web_thread.start()
    logging.info(f"Web API started on {config.web.host}:{config.web.port}")

    try:
        if not args.no_streams:
            streams.start()
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        streams.stop_all()
        logging.info("Retail Occupancy Monitor stopped")


if __name__ == "__main__":
    main()
