"""Layout loader - YAML serialization and deserialization for TemplateLayout.

Provides round-trip save/load so template layouts can be reviewed,
version-controlled, and edited as human-readable YAML configuration files.
"""

from pathlib import Path

import yaml

from .layout import TemplateLayout


def save_layout(layout: TemplateLayout, path: str | Path) -> None:
    """Serialize a TemplateLayout to a YAML file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = layout.to_dict()
    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False,
                  allow_unicode=True, width=120)


def load_layout(path: str | Path) -> TemplateLayout:
    """Deserialize a TemplateLayout from a YAML file."""
    path = Path(path)
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return TemplateLayout.from_dict(data)
