"""
Dry bean records: schemas, SQL, business rules and HTTP routes.
"""
