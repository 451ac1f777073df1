# Create the unique indexes the automation relies on for idempotent invoice/payroll creation.
# Usage: set env MONGODB_URI and MONGODB_DB_NAME, then run from a machine with access
# Example: python scripts/ensure_indexes.py
#
# Fails with DuplicateKeyError if duplicates already exist; clean those up first.

from pymongo import MongoClient

from payroll_automation.core.config import settings
from payroll_automation.core.db import INDEXES

client = MongoClient(settings.MONGODB_URI)
db = client[settings.MONGODB_DB_NAME]

for collection_name, keys, options in INDEXES:
    name = db[collection_name].create_index(keys, **options)
    print(f"Ensured index {name} on {collection_name}")

client.close()
