"""
Editor option loading.

Options live in a YAML file (editor.yaml next to this module by default, or the
file named by VITAE_EDITOR_CONFIG). A user file only needs the keys it changes;
it is merged over the bundled defaults.

Examples:
    >>> options = load_editor_options()
    >>> options.key_attribute
    'data-src'

    >>> options = load_editor_options(overrides={"styling": {"inline_styles": True}})
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from omegaconf import OmegaConf

load_dotenv()

DEFAULT_EDITOR_CONFIG_PATH = Path(__file__).parent / "editor.yaml"
EDITOR_CONFIG_PATH = Path(os.getenv("VITAE_EDITOR_CONFIG", DEFAULT_EDITOR_CONFIG_PATH))


@dataclass
class EditorOptions:
    """
    Resolved editor configuration.

    Attributes:
        key_attribute: Attribute holding the stable field key
        max_length_attribute: Attribute holding the optional character limit
        selectors: CSS selectors restricting discovery (empty = attribute discovery)
        inline_styles: Apply edit affordance styles inline instead of via stylesheet
        storage_key: Store key of the persisted snapshot
        debounce_seconds: Quiet period before an edit is persisted
        panel_element_id: DOM id of the control panel (excluded from exports)
        reload_delay_seconds: Delay between reset acknowledgment and reload
        notification_seconds: How long a notification stays visible
    """

    key_attribute: str = "data-src"
    max_length_attribute: str = "data-max-length"
    selectors: List[str] = field(default_factory=list)
    inline_styles: bool = False
    storage_key: str = "cvData"
    debounce_seconds: float = 1.0
    panel_element_id: str = "control-panel"
    reload_delay_seconds: float = 1.0
    notification_seconds: float = 3.0

    @property
    def uses_selectors(self) -> bool:
        return bool(self.selectors)


def load_editor_options(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> EditorOptions:
    """
    Load editor options from YAML, merged over the bundled defaults.

    Args:
        config_path: Optional user config (defaults to VITAE_EDITOR_CONFIG env variable)
        overrides: Nested dict applied last (same shape as editor.yaml)

    Returns:
        EditorOptions
    """
    if config_path is None:
        config_path = EDITOR_CONFIG_PATH

    merged = OmegaConf.load(DEFAULT_EDITOR_CONFIG_PATH)
    if Path(config_path) != DEFAULT_EDITOR_CONFIG_PATH and Path(config_path).exists():
        merged = OmegaConf.merge(merged, OmegaConf.load(config_path))
    if overrides:
        merged = OmegaConf.merge(merged, OmegaConf.create(overrides))

    raw = OmegaConf.to_container(merged, resolve=True)

    return EditorOptions(
        key_attribute=raw["discovery"]["key_attribute"],
        max_length_attribute=raw["discovery"]["max_length_attribute"],
        selectors=list(raw["discovery"]["selectors"] or []),
        inline_styles=bool(raw["styling"]["inline_styles"]),
        storage_key=raw["persistence"]["storage_key"],
        debounce_seconds=float(raw["persistence"]["debounce_seconds"]),
        panel_element_id=raw["panel"]["element_id"],
        reload_delay_seconds=float(raw["panel"]["reload_delay_seconds"]),
        notification_seconds=float(raw["panel"]["notification_seconds"]),
    )
