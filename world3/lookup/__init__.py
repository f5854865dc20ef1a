from .table import LookupTable
from .tables import WorldLookupTables, load_world_tables

__all__ = ["LookupTable", "WorldLookupTables", "load_world_tables"]
