"""
Export - SQL, CSV, JSON and XML downloads of tables and databases.
"""

from .serializer import ExportSerializer
from .renderers import TableSnapshot, ExportContext

__all__ = ["ExportSerializer", "TableSnapshot", "ExportContext"]
