"""Build modes."""

from enum import Enum


class BuildMode(Enum):
    """Supported build intents. Values double as status labels."""

    VERIFY = "Verifying"
    ANALYZE = "Analyzing"
    UPLOAD = "Uploading"
    CLI_UPLOAD = "Uploading using Arduino CLI"
    UPLOAD_PROGRAMMER = "Uploading (programmer)"
    CLI_UPLOAD_PROGRAMMER = "Uploading (programmer) using Arduino CLI"

    @property
    def is_upload(self) -> bool:
        return self in UPLOAD_MODES

    @property
    def uses_programmer(self) -> bool:
        return self in (BuildMode.UPLOAD_PROGRAMMER, BuildMode.CLI_UPLOAD_PROGRAMMER)

    @property
    def requires_cli(self) -> bool:
        return self in (BuildMode.CLI_UPLOAD, BuildMode.CLI_UPLOAD_PROGRAMMER)

    @property
    def interactive(self) -> bool:
        """ANALYZE runs in the background and never prompts or notifies."""
        return self is not BuildMode.ANALYZE


UPLOAD_MODES = frozenset(
    {
        BuildMode.UPLOAD,
        BuildMode.CLI_UPLOAD,
        BuildMode.UPLOAD_PROGRAMMER,
        BuildMode.CLI_UPLOAD_PROGRAMMER,
    }
)
