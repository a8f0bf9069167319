from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class IndexRecord(BaseModel):
    """Denormalized package listing entry derived from a DocumentationRecord."""

    model_config = ConfigDict(frozen=True)

    import_path: str
    synopsis: str = ""
    package_name: str = ""
    is_cmd: bool = False
    hide: bool = False
    index_tokens: list[str] = []

    def equal(self, other: IndexRecord) -> bool:
        """Compare the fields that matter for listings.

        ``import_path`` is the storage key. ``package_name`` only changes
        together with the index tokens.
        """
        return (
            self.synopsis == other.synopsis
            and self.hide == other.hide
            and self.is_cmd == other.is_cmd
            and self.index_tokens == other.index_tokens
        )
