"""Run-level errors. Per-file problems are logged and skipped instead."""


class AnalysisError(Exception):
    """An analysis run could not complete."""


class ConfigError(AnalysisError):
    """A configuration file is missing, unreadable or malformed."""


class BundleDirectoryNotFoundError(AnalysisError):
    """Bundle correlation was requested for a directory that does not exist."""

    def __init__(self, bundle_dir):
        self.bundle_dir = bundle_dir
        super().__init__(f"Bundle directory not found: {bundle_dir}")
