# Offer performance scoring for retail catalog exports

__version__ = "0.1.0"
