"""Exception taxonomy for the extraction pipeline."""


class RulebookExtractorError(Exception):
    """Base class for pipeline errors."""


class UnsupportedFormat(RulebookExtractorError, ValueError):
    """The file extension has no text loader."""

    def __init__(self, suffix: str):
        super().__init__(f"Unsupported file format: {suffix or '(none)'}")
        self.suffix = suffix


class ExtractionFailure(RulebookExtractorError):
    """Reading or parsing a source file failed."""


class ExtractionTimeout(ExtractionFailure):
    """A file exceeded its wall-clock extraction budget."""


class CandidateRejected(RulebookExtractorError):
    """A candidate record failed a quality gate.

    These are counted per rule and never logged one by one.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
