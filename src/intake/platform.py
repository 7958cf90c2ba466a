"""
Platform detection and adapter selection. Adapters are chosen once, when
the host starts; workflow code never branches on the platform.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from src.intake.config import IntakeConfig
from src.intake.files import (
    BrowserFileOpener, BrowserFilePicker, FileOpener, FilePicker,
    PromptFilePicker, SystemFileOpener,
)
from src.intake.geolocation import (
    BrowserLocationProvider, LocationProvider, NativeLocationProvider,
)

logger = logging.getLogger(__name__)


class Platform(str, Enum):
    WEB = "web"
    NATIVE = "native"


@dataclass
class PlatformAdapters:
    platform: Platform
    files: FilePicker
    locator: LocationProvider
    opener: FileOpener


def detect_platform(config: IntakeConfig, default: Platform) -> Platform:
    """Use the configured platform, or the host's own when set to 'auto'."""
    if config.platform == "auto":
        return default
    return Platform(config.platform)


def build_adapters(
    platform: Platform,
    config: IntakeConfig,
    ask: Callable[[str], str] = input,
) -> PlatformAdapters:
    """Create the picker, locator and opener for a platform."""
    logger.info("Selecting %s adapters", platform.value)
    if platform is Platform.WEB:
        return PlatformAdapters(
            platform=platform,
            files=BrowserFilePicker(),
            locator=BrowserLocationProvider(),
            opener=BrowserFileOpener(),
        )
    return PlatformAdapters(
        platform=platform,
        files=PromptFilePicker(ask=ask),
        locator=NativeLocationProvider(config, ask=ask),
        opener=SystemFileOpener(),
    )
