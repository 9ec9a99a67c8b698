from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from texmd.models import ConfigError

DEFAULT_MATH_OPEN = "\\["
DEFAULT_MATH_CLOSE = "\\]"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class Tex2JaxOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    inline_math: List[List[str]] = Field(
        default_factory=lambda: [["$", "$"], ["\\(", "\\)"]], alias="inlineMath"
    )
    display_math: List[List[str]] = Field(
        default_factory=lambda: [["$$", "$$"], ["\\[", "\\]"]], alias="displayMath"
    )
    process_escapes: bool = Field(True, alias="processEscapes")


class TeXOptions(BaseModel):
    extensions: List[str] = Field(
        default_factory=lambda: [
            "AMSmath.js",
            "AMSsymbols.js",
            "noErrors.js",
            "noUndefined.js",
        ]
    )


class MathRenderConfig(BaseModel):
    """Typesetting options handed to the math renderer with every math block.

    The core never interprets these; it only carries them so the renderer can
    be invoked exactly the way the document expects.
    """

    model_config = ConfigDict(populate_by_name=True)

    message_style: str = Field("none", alias="messageStyle")
    extensions: List[str] = Field(default_factory=lambda: ["tex2jax.js"])
    jax: List[str] = Field(default_factory=lambda: ["input/TeX", "output/HTML-CSS"])
    tex2jax: Tex2JaxOptions = Field(default_factory=Tex2JaxOptions)
    tex: TeXOptions = Field(default_factory=TeXOptions, alias="TeX")

    def to_mathjax_options(self) -> dict:
        """Dump with the camelCase keys MathJax expects."""
        return self.model_dump(by_alias=True)


@dataclass(frozen=True)
class PipelineConfig:
    """Configuration for segmentation and normalization.

    Notes:
        - ``math_open``/``math_close`` must be distinct, non-empty strings;
          display math does not nest, so identical markers would be ambiguous.
        - ``auto_number_enumerate`` numbers enumerate items 1., 2., ...;
          when off every item gets ``1.`` and the Markdown renderer numbers
          them.
    """

    math_open: str = DEFAULT_MATH_OPEN
    math_close: str = DEFAULT_MATH_CLOSE
    drop_empty_segments: bool = False
    auto_number_enumerate: bool = True
    quad_width: int = 4
    heading_level: int = 2
    math: MathRenderConfig = field(default_factory=MathRenderConfig)

    def __post_init__(self) -> None:
        if not self.math_open or not self.math_close:
            raise ConfigError("Math delimiters must be non-empty strings.")
        if self.math_open == self.math_close:
            raise ConfigError(
                f"Math open and close markers must differ (got {self.math_open!r} for both)."
            )
        if self.quad_width < 0:
            raise ConfigError(f"quad_width must be >= 0, got {self.quad_width}.")
        if not 1 <= self.heading_level <= 4:
            raise ConfigError(
                f"heading_level must be between 1 and 4, got {self.heading_level}."
            )

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build a config from ``TEXMD_*`` environment variables.

        Unset or blank variables keep their defaults.
        """
        kwargs = {}

        math_open = _env_str("TEXMD_MATH_OPEN")
        if math_open is not None:
            kwargs["math_open"] = math_open
        math_close = _env_str("TEXMD_MATH_CLOSE")
        if math_close is not None:
            kwargs["math_close"] = math_close

        drop_empty = _env_bool("TEXMD_DROP_EMPTY_SEGMENTS")
        if drop_empty is not None:
            kwargs["drop_empty_segments"] = drop_empty
        auto_number = _env_bool("TEXMD_AUTO_NUMBER_ENUMERATE")
        if auto_number is not None:
            kwargs["auto_number_enumerate"] = auto_number

        quad_width = _env_int("TEXMD_QUAD_WIDTH")
        if quad_width is not None:
            kwargs["quad_width"] = quad_width
        heading_level = _env_int("TEXMD_HEADING_LEVEL")
        if heading_level is not None:
            kwargs["heading_level"] = heading_level

        return cls(**kwargs)


def _env_str(name: str) -> Optional[str]:
    raw = (os.getenv(name) or "").strip()
    return raw or None


def _env_bool(name: str) -> Optional[bool]:
    raw = _env_str(name)
    if raw is None:
        return None
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}.")


def _env_int(name: str) -> Optional[int]:
    raw = _env_str(name)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}.") from e
