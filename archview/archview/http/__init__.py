"""HTTP presentation adapter for the archive viewer."""
