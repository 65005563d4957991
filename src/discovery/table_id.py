"""
Table identifiers for tables discovered in the source database.

A TableId is the unit of work handed to ingestion tasks. It renders to
a fully-qualified name in quoted and unquoted form so user-supplied
filter strings can match either spelling.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class TableId:
    """Immutable catalog/schema/table triple."""

    catalog: str | None
    schema: str | None
    table: str

    def __post_init__(self) -> None:
        if not self.table:
            raise ValueError("Table name cannot be empty")

    @property
    def table_name(self) -> str:
        """Unqualified table name."""
        return self.table

    @property
    def parts(self) -> tuple[str, ...]:
        return tuple(p for p in (self.catalog, self.schema, self.table) if p)

    @property
    def sort_key(self) -> tuple[str, str, str]:
        return (self.catalog or "", self.schema or "", self.table)

    def qualified_name(
        self,
        quoted: bool = True,
        quote_open: str = '"',
        quote_close: str | None = None,
    ) -> str:
        """
        Render the fully-qualified name.

        Args:
            quoted: Wrap each part in quote characters
            quote_open: Opening quote character
            quote_close: Closing quote character (defaults to quote_open)

        Returns:
            Dotted name, e.g. '"public"."users"' or 'public.users'
        """
        if not quoted:
            return ".".join(self.parts)

        close = quote_close or quote_open
        # Embedded closing quotes are escaped by doubling them
        return ".".join(
            f"{quote_open}{part.replace(close, close * 2)}{close}" for part in self.parts
        )

    def __lt__(self, other: "TableId") -> bool:
        if not isinstance(other, TableId):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __str__(self) -> str:
        return self.qualified_name(quoted=True)
