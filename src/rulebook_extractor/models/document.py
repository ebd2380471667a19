"""Source document model."""

from pydantic import BaseModel


class SourceDocument(BaseModel):
    """One input file's decoded text and its standardized source id."""

    path: str
    source_id: str
    raw_text: str

    def short_location(self) -> str:
        """Return a short location string."""
        return f"{self.source_id} ({len(self.raw_text):,} chars)"
