"""sketchpilot - drive arduino-cli builds and uploads for sketch projects."""

__version__ = "0.1.0"
