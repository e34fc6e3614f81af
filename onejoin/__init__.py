"""Edit-distance similarity join and DBSCAN clustering of strings via CGK embedding and LSH."""

__version__ = "0.1.0"