"""Configuration and setup utilities.

This module contains the bootstrap configuration and the wizard:
- config: YAML bootstrap file loading and writing
- plan: Config to ordered SettingSpec list
- wizard: Interactive setup wizard helpers
- env_detector: Environment detection utilities
"""

from rigup.setup.config import BootstrapConfig, WriteResult, load_config, write_config
from rigup.setup.env_detector import DetectionResult, ToolInfo, detect_tools
from rigup.setup.plan import PlanContext, build_plan
from rigup.setup.wizard import format_config_review, run_wizard, validate_wizard_config

__all__ = [
    # Config
    "BootstrapConfig",
    "WriteResult",
    "load_config",
    "write_config",
    # Plan
    "PlanContext",
    "build_plan",
    # Wizard
    "format_config_review",
    "run_wizard",
    "validate_wizard_config",
    # Environment detection
    "DetectionResult",
    "ToolInfo",
    "detect_tools",
]
