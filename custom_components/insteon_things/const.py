"""Constants for the INSTEON things integration."""

from __future__ import annotations

DOMAIN = "insteon_things"
MANUFACTURER = "INSTEON"

CONF_POLL_INTERVAL = "poll_interval"
CONF_LINK_TIMEOUT = "link_timeout"

DEFAULT_POLL_INTERVAL_HOURS = 3
DEFAULT_LINK_TIMEOUT = 30
MAX_LINK_TIMEOUT = 300

DATA_HUB = "hub"
DATA_COORDINATOR = "coordinator"

STORAGE_VERSION = 1
STORAGE_KEY = f"{DOMAIN}.links"

EVENT_DEVICE = f"{DOMAIN}_event"
EVENT_PAIRING = f"{DOMAIN}_pairing"

ATTR_ADDRESS = "address"
ATTR_DURATION = "duration"
ATTR_EVENT = "event"
ATTR_INSTEON_ID = "insteon_id"
ATTR_LEVEL = "level"
ATTR_MESSAGE = "message"
ATTR_TIMEOUT = "timeout"

SERVICE_SCAN = "scan"
SERVICE_PAIR = "pair"
SERVICE_CANCEL_PAIRING = "cancel_pairing"
SERVICE_LINK_HEARTBEAT = "link_heartbeat"
SERVICE_LINK_LOW_BATTERY = "link_low_battery"
SERVICE_REMOVE_DEVICE = "remove_device"
SERVICE_FADE = "fade"
SERVICE_POLL = "poll"
