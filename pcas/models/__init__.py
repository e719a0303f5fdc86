"""ORM Models — tables backing the durable local cache."""
