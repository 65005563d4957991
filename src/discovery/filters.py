"""
Table filtering by whitelist or blacklist.

Whitelist and blacklist are mutually exclusive, and neither may be
combined with a custom query. Names in either list match a table by its
quoted fully-qualified name, its unquoted fully-qualified name or its
bare table name.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Sequence

from .errors import ConfigurationError
from .table_id import TableId

if TYPE_CHECKING:
    from .dialect import DatabaseDialect

WHITELIST_SETTING = "table.whitelist"
BLACKLIST_SETTING = "table.blacklist"
QUERY_SETTING = "query"


class FilterMode(str, Enum):
    """How the name set is applied."""

    ALLOW = "allow"
    DENY = "deny"
    ALL = "all"


@dataclass(frozen=True)
class TableFilter:
    """
    Filter applied to every raw table listing.

    Use TableFilter.from_settings() to build one from connector settings;
    it enforces the exclusivity rules before any polling starts.
    """

    mode: FilterMode = FilterMode.ALL
    names: frozenset[str] = field(default_factory=frozenset)
    query_mode: bool = False
    whitelist_setting: str = WHITELIST_SETTING
    blacklist_setting: str = BLACKLIST_SETTING

    @classmethod
    def from_settings(
        cls,
        whitelist: Iterable[str] | None = None,
        blacklist: Iterable[str] | None = None,
        query: str | None = None,
        whitelist_setting: str = WHITELIST_SETTING,
        blacklist_setting: str = BLACKLIST_SETTING,
        query_setting: str = QUERY_SETTING,
    ) -> "TableFilter":
        """
        Build a filter from connector settings.

        Empty collections and empty strings count as "not set".

        Raises:
            ConfigurationError: If whitelist and blacklist are both set, or
                if a query is combined with either of them
        """
        allow = frozenset(n.strip() for n in whitelist or () if n.strip())
        deny = frozenset(n.strip() for n in blacklist or () if n.strip())

        if allow and deny:
            raise ConfigurationError(
                f"{whitelist_setting} and {blacklist_setting} are exclusive."
            )

        if query and query.strip():
            if allow or deny:
                raise ConfigurationError(
                    f"{query_setting} may not be combined with whole-table copying settings."
                )
            # The single task runs the query, so every table is filtered out
            return cls(
                mode=FilterMode.ALLOW,
                names=frozenset(),
                query_mode=True,
                whitelist_setting=whitelist_setting,
                blacklist_setting=blacklist_setting,
            )

        if allow:
            mode, names = FilterMode.ALLOW, allow
        elif deny:
            mode, names = FilterMode.DENY, deny
        else:
            mode, names = FilterMode.ALL, frozenset()

        return cls(
            mode=mode,
            names=names,
            whitelist_setting=whitelist_setting,
            blacklist_setting=blacklist_setting,
        )

    def matches(self, table: TableId, dialect: "DatabaseDialect") -> bool:
        """Check whether any spelling of the table's name is in the name set."""
        return (
            dialect.render(table, quoted=False) in self.names
            or dialect.render(table, quoted=True) in self.names
            or table.table_name in self.names
        )

    def apply(
        self, tables: Sequence[TableId], dialect: "DatabaseDialect"
    ) -> list[TableId]:
        """
        Filter a raw table listing, preserving order.

        Args:
            tables: Tables reported by the dialect
            dialect: Dialect used to render names for matching

        Returns:
            The tables that pass the filter
        """
        if self.mode == FilterMode.ALLOW:
            return [t for t in tables if self.matches(t, dialect)]
        if self.mode == FilterMode.DENY:
            return [t for t in tables if not self.matches(t, dialect)]
        return list(tables)

    def setting_hint(self) -> str:
        """Name the setting a user must narrow to resolve duplicate names."""
        if self.mode == FilterMode.ALLOW:
            return f"'{self.whitelist_setting}'"
        if self.mode == FilterMode.DENY:
            return f"'{self.blacklist_setting}'"
        return f"'{self.whitelist_setting}' or '{self.blacklist_setting}'"
