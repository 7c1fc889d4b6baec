"""gamedata-export — Turn game-design spreadsheets into runtime JSON tables."""

__version__ = "0.1.0"

ID_COLUMN: str = "Id"
"""Header key name whose value keys each exported record."""

OUTPUT_PREFIX: str = "GameData"
SCHEMA_FILENAME: str = "schema.json"
DEFAULT_MAX_DEPTH: int = 5
