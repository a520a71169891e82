"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    app_name:        str   = "sitepub"
    input_dir:       str   = Field(default="site",    description="Directory the site sources are read from")
    output_dir:      str   = Field(default="output",  description="Directory the generated site is written to")
    delete_output:   bool  = Field(default=False,     description="Delete the output directory before every pass")
    template_infix:  str   = Field(default=".tmpl.",  pattern=r"^\..*\.$", description="File name infix marking templates")
    render_markdown: bool  = Field(default=True,      description="Render *.md files to HTML")
    parser_config:   str   = Field(default="gfm-like", description="MarkdownIt parser preset name")
    settle_delay:    float = Field(default=0.1, ge=0, description="Seconds without events that end a change batch")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then SITEPUB_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"SITEPUB_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
