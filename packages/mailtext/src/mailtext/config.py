"""Configuration model for the mailtext conversion engine.

Provides ``HtmlTextConfig`` with all tunable parameters and sensible
defaults.  Supports loading overrides from YAML or JSON files via the
``from_file()`` classmethod.
"""

from __future__ import annotations

import json
import pathlib

from pydantic import BaseModel, Field


class HtmlTextConfig(BaseModel):
    """All tunable parameters with sensible defaults."""

    # --- Identity ---
    parser_version: str = "mailtext:1.0.0"

    # --- Conversion Paths ---
    use_tree_walker: bool = Field(
        default=True,
        description="If False, every conversion goes straight to the pattern-based fallback.",
    )
    ascii_only_numeric_entities: bool = Field(
        default=True,
        description="Decode &#NNN; / &#xHHHH; only for printable ASCII (32-126).",
    )

    # --- Layout Markers ---
    bullet: str = "• "
    quote_prefix: str = "> "

    # --- Annotations ---
    image_marker: str = "\U0001f5bc\ufe0f"
    link_marker: str = "\U0001f517"
    email_marker: str = "\U0001f4e7"
    phone_marker: str = "\U0001f4de"
    image_placeholder: str = "Image"
    image_link_placeholder: str = "Image Link"
    max_url_length: int = Field(
        default=50,
        ge=4,
        description="Bare URLs longer than this are truncated with an ellipsis.",
    )

    # --- Normalization ---
    degenerate_min_length: int = Field(
        default=50,
        ge=0,
        description=(
            "Pre-cleanup length above which a result reduced to the image "
            "placeholder is treated as over-cleaned."
        ),
    )

    # --- Message Bodies ---
    prefer_plain_text: bool = True

    # --- Logging / PII Safety ---
    log_sample_data: bool = Field(
        default=False,
        description="If True, input/output previews may appear in debug logs.",
    )

    @classmethod
    def from_file(cls, path: str) -> HtmlTextConfig:
        """Load configuration from a YAML or JSON file.

        File format is detected by extension: ``.yaml`` / ``.yml`` for YAML,
        ``.json`` for JSON.  Keys present in the file override the
        corresponding defaults; keys not present retain their defaults.
        """
        file_path = pathlib.Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = file_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            try:
                import yaml  # type: ignore[import-untyped]
            except ImportError as exc:
                raise ImportError(
                    "pyyaml is required to load YAML config files. "
                    "Install it with: pip install pyyaml"
                ) from exc
            with open(file_path, encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        elif suffix == ".json":
            with open(file_path, encoding="utf-8") as fh:
                data = json.load(fh)
        else:
            raise ValueError(
                f"Unsupported config file extension '{suffix}'. "
                "Use .yaml, .yml, or .json."
            )

        if data is None:
            data = {}

        return cls(**data)
