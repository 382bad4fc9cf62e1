"""Configuration for workflow YAML conversion."""

from dataclasses import dataclass
import os


@dataclass(frozen=True)
class CompilerConfig:
    """Settings shared by the converters and the serializer."""

    # Version written when the graph does not carry one
    default_version: str = "1.0"

    # YAML output formatting
    yaml_indent: int = 2
    yaml_line_width: int = 120

    # Round node positions to whole pixels on the write path
    round_positions: bool = True

    # Maximum position drift (pixels) tolerated by round-trip checks
    position_tolerance: float = 1.0

    @classmethod
    def from_env(cls) -> "CompilerConfig":
        """Create configuration from environment variables."""
        return cls(
            default_version=os.getenv("WORKFLOW_YAML_DEFAULT_VERSION", "1.0"),
            yaml_indent=int(os.getenv("WORKFLOW_YAML_INDENT", "2")),
            yaml_line_width=int(os.getenv("WORKFLOW_YAML_LINE_WIDTH", "120")),
            round_positions=os.getenv("WORKFLOW_YAML_ROUND_POSITIONS", "true").lower() == "true",
            position_tolerance=float(os.getenv("WORKFLOW_YAML_POSITION_TOLERANCE", "1.0")),
        )


# Default configuration instance
DEFAULT_CONFIG = CompilerConfig()


def get_config() -> CompilerConfig:
    """Get the current configuration."""
    return CompilerConfig.from_env()
