"""
Sales app: cart engine, checkout pipeline, bills and receipts.
"""
