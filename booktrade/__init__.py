"""Book-trade back-office spreadsheet ingestion (Booksonix catalog, Gazelle sales)."""

__version__ = "0.1.0"
