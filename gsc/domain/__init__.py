"""
Domain layer: business logic without CLI or network dependencies
"""
